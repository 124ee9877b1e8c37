"""Integration test fixtures.

Provides a fully wired AppState (real fetcher, real workspace service) whose
Notion traffic is mocked with respx, plus a Starlette app built on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from weeklytracker.config import Settings
from weeklytracker.fetcher import ResilientFetcher, ResponseCache
from weeklytracker.server import create_app
from weeklytracker.state import AppState
from weeklytracker.workspace import build_workspace_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.applications import Starlette

NOTION_API = "https://api.notion.com/v1"


@pytest.fixture()
def notion_api() -> str:
    return NOTION_API


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncIterator[AppState]:
    """AppState wired the way build_state wires it, with a test-owned client."""
    async with httpx.AsyncClient() as client:
        fetcher = ResilientFetcher(client, settings.http)
        yield AppState(
            settings=settings,
            http_client=client,
            fetcher=fetcher,
            workspace=build_workspace_service(fetcher, "secret_test", settings.notion),
            response_cache=ResponseCache(ttl_seconds=settings.http.cache_ttl_seconds),
        )


@pytest.fixture()
def app(app_state: AppState) -> Starlette:
    return create_app(state=app_state)


@pytest.fixture()
async def client(app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client talking to the app in-process."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
