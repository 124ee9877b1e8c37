"""Client for the ``/knowledge-base`` endpoint served by ``weeklytracker serve``."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.models.pages import KnowledgeBaseResponse, WeekResult

if TYPE_CHECKING:
    from weeklytracker.protocols import FetcherProtocol

log = structlog.get_logger()

DEFAULT_OVERVIEW_WEEKS = 10


def knowledge_base_url(api_base: str, weeks_ago: int = 0) -> str:
    """Endpoint URL for a week offset; the parameter is omitted for the current week."""
    url = f"{api_base.rstrip('/')}/knowledge-base"
    if weeks_ago:
        url += f"?weeksAgo={weeks_ago}"
    return url


class KnowledgeBaseClient:
    """Fetches week payloads through the cached, retrying fetcher.

    Instances are callable, so one can be passed directly as the
    WeekNavigator loader.
    """

    def __init__(self, fetcher: FetcherProtocol, api_base: str) -> None:
        self._fetcher = fetcher
        self._api_base = api_base

    async def fetch_week(self, weeks_ago: int) -> KnowledgeBaseResponse:
        url = knowledge_base_url(self._api_base, weeks_ago)
        response = await self._fetcher.fetch_with_cache(url)
        try:
            return KnowledgeBaseResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise WeeklyTrackerError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"Unexpected knowledge-base payload from {url}",
                suggestion="Check that the API base URL points at a weeklytracker server.",
                recoverable=False,
            ) from exc

    async def __call__(self, weeks_ago: int) -> KnowledgeBaseResponse:
        return await self.fetch_week(weeks_ago)


async def load_weeks(
    client: KnowledgeBaseClient,
    weeks: int = DEFAULT_OVERVIEW_WEEKS,
) -> list[WeekResult]:
    """Load weeks ``0..weeks-1`` concurrently.

    A failing week becomes a WeekResult carrying the error message; the
    others are unaffected. Results are ordered by week index, whatever order
    the requests completed in.
    """

    async def _one(week: int) -> WeekResult:
        try:
            return WeekResult(week=week, response=await client.fetch_week(week))
        except WeeklyTrackerError as exc:
            log.warning("week_load_failed", week=week, code=exc.code, message=exc.message)
            return WeekResult(week=week, error=exc.message)

    results = await asyncio.gather(*(_one(week) for week in range(weeks)))
    return sorted(results, key=lambda result: result.week)
