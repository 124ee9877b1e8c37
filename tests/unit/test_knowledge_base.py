"""Unit tests for weeklytracker.knowledge_base."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from weeklytracker.config import HttpSettings
from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.fetcher import ResilientFetcher
from weeklytracker.knowledge_base import (
    KnowledgeBaseClient,
    knowledge_base_url,
    load_weeks,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

API_BASE = "http://localhost:3000"


def _payload(weeks_ago: int, count: int = 0) -> dict:
    return {
        "dateRange": f"range-{weeks_ago}",
        "pages": [
            {
                "id": f"w{weeks_ago}-{i}",
                "title": "A page",
                "url": f"https://www.notion.so/w{weeks_ago}-{i}",
                "createdTime": "2026-10-13T09:00:00.000Z",
                "linkProperty": None,
                "parentInfo": {"type": "database", "title": "Inbox", "id": "db-1"},
            }
            for i in range(count)
        ],
        "totalCount": count,
    }


@pytest.fixture()
async def kb_client() -> AsyncIterator[KnowledgeBaseClient]:
    async with httpx.AsyncClient() as http:
        fetcher = ResilientFetcher(http, HttpSettings(max_retries=1, base_delay_seconds=0.0))
        yield KnowledgeBaseClient(fetcher, API_BASE)


class TestKnowledgeBaseUrl:
    def test_current_week_has_no_parameter(self) -> None:
        assert knowledge_base_url(API_BASE) == "http://localhost:3000/knowledge-base"
        assert knowledge_base_url(API_BASE, 0) == "http://localhost:3000/knowledge-base"

    def test_past_week(self) -> None:
        assert knowledge_base_url(API_BASE, 3) == "http://localhost:3000/knowledge-base?weeksAgo=3"

    def test_trailing_slash(self) -> None:
        url = knowledge_base_url("http://kb.local/", 1)
        assert url == "http://kb.local/knowledge-base?weeksAgo=1"


class TestFetchWeek:
    @respx.mock
    async def test_parses_camel_case_payload(self, kb_client: KnowledgeBaseClient) -> None:
        respx.get(f"{API_BASE}/knowledge-base").mock(
            return_value=httpx.Response(200, json=_payload(0, count=2))
        )
        response = await kb_client.fetch_week(0)
        assert response.date_range == "range-0"
        assert response.total_count == 2
        assert response.pages[0].parent_info is not None
        assert response.pages[0].parent_info.title == "Inbox"

    @respx.mock
    async def test_cached_within_ttl(self, kb_client: KnowledgeBaseClient) -> None:
        route = respx.get(f"{API_BASE}/knowledge-base?weeksAgo=2").mock(
            return_value=httpx.Response(200, json=_payload(2))
        )
        await kb_client.fetch_week(2)
        await kb_client(2)
        assert route.call_count == 1

    @respx.mock
    async def test_invalid_payload(self, kb_client: KnowledgeBaseClient) -> None:
        respx.get(f"{API_BASE}/knowledge-base").mock(
            return_value=httpx.Response(200, json={"unexpected": True})
        )
        with pytest.raises(WeeklyTrackerError) as exc_info:
            await kb_client.fetch_week(0)
        assert exc_info.value.code == ErrorCode.INVALID_RESPONSE

    @respx.mock
    async def test_client_error_not_retried(self, kb_client: KnowledgeBaseClient) -> None:
        route = respx.get(f"{API_BASE}/knowledge-base").mock(return_value=httpx.Response(400))
        with pytest.raises(WeeklyTrackerError) as exc_info:
            await kb_client.fetch_week(0)
        assert exc_info.value.code == ErrorCode.HTTP_CLIENT_ERROR
        assert route.call_count == 1


class TestLoadWeeks:
    @respx.mock
    async def test_loads_default_ten_weeks_in_order(self, kb_client: KnowledgeBaseClient) -> None:
        respx.get(url__startswith=f"{API_BASE}/knowledge-base").mock(
            side_effect=lambda request: httpx.Response(
                200, json=_payload(int(request.url.params.get("weeksAgo", "0")))
            )
        )
        results = await load_weeks(kb_client)
        assert [result.week for result in results] == list(range(10))
        assert all(result.ok for result in results)
        assert results[4].response is not None
        assert results[4].response.date_range == "range-4"

    @respx.mock
    async def test_failing_week_does_not_affect_others(
        self, kb_client: KnowledgeBaseClient
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            week = int(request.url.params.get("weeksAgo", "0"))
            if week == 3:
                return httpx.Response(500)
            return httpx.Response(200, json=_payload(week))

        respx.get(url__startswith=f"{API_BASE}/knowledge-base").mock(side_effect=respond)
        with patch("asyncio.sleep", AsyncMock()):
            results = await load_weeks(kb_client, weeks=5)

        assert [result.week for result in results] == [0, 1, 2, 3, 4]
        failed = [result for result in results if not result.ok]
        assert [result.week for result in failed] == [3]
        assert failed[0].response is None
        assert "500" in (failed[0].error or "")

    @respx.mock
    async def test_zero_weeks(self, kb_client: KnowledgeBaseClient) -> None:
        assert await load_weeks(kb_client, weeks=0) == []
