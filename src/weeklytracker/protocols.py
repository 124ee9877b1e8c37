"""Protocol interfaces for swappable components.

Entrypoints and the navigation controller reference these protocols, not the
concrete implementations, so tests can substitute in-memory fakes for the
network-backed classes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from datetime import datetime

    import httpx

    from weeklytracker.models.pages import KnowledgeBaseResponse, WeekReport


class FetcherProtocol(Protocol):
    """Interface for the retrying, caching HTTP fetcher."""

    async def fetch_with_retry(
        self,
        url: str,
        *,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> httpx.Response: ...

    async def fetch_with_cache(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> httpx.Response: ...


class WorkspaceProtocol(Protocol):
    """Interface for collecting one week of workspace pages."""

    async def collect_week(self, weeks_ago: int, now: datetime | None = None) -> WeekReport: ...


class WeekLoader(Protocol):
    """Loads the knowledge-base payload for a week offset."""

    async def __call__(self, weeks_ago: int) -> KnowledgeBaseResponse: ...
