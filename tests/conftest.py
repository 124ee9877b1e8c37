"""Shared test fixtures for the weeklytracker test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from weeklytracker.config import Settings

# A Wednesday; the containing week runs Mon 2026-10-12 .. Sun 2026-10-18 (UTC)
FIXED_NOW = datetime(2026, 10, 14, 15, 30, tzinfo=UTC)
FIXED_MONDAY = datetime(2026, 10, 12, tzinfo=UTC)


def _notion_timestamp(moment: datetime) -> str:
    """Format like the Notion API: ``2026-10-13T09:00:00.000Z``."""
    utc = moment.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _make_page(
    page_id: str,
    created: datetime,
    *,
    title: str | None = "A page",
    link: str | None = None,
    parent: dict[str, Any] | None = None,
    last_edited: datetime | None = None,
) -> dict[str, Any]:
    """A Notion page object with only the fields the tracker reads."""
    properties: dict[str, Any] = {}
    if title is not None:
        properties["Name"] = {
            "id": "title",
            "type": "title",
            "title": [{"type": "text", "text": {"content": title}, "plain_text": title}],
        }
    if link is not None:
        properties["Link"] = {"id": "abcd", "type": "url", "url": link}
    return {
        "object": "page",
        "id": page_id,
        "created_time": _notion_timestamp(created),
        "last_edited_time": _notion_timestamp(last_edited or created),
        "url": f"https://www.notion.so/{page_id}",
        "parent": parent or {"type": "workspace", "workspace": True},
        "properties": properties,
    }


def _search_payload(
    pages: list[dict[str, Any]],
    *,
    next_cursor: str | None = None,
) -> dict[str, Any]:
    return {
        "object": "list",
        "results": pages,
        "next_cursor": next_cursor,
        "has_more": next_cursor is not None,
    }


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def monday() -> datetime:
    return FIXED_MONDAY


@pytest.fixture()
def day() -> timedelta:
    return timedelta(days=1)


@pytest.fixture()
def settings() -> Settings:
    """Settings with a token and no backoff delay."""
    return Settings(
        notion_token="secret_test",
        http={"base_delay_seconds": 0.0},
    )


@pytest.fixture()
def make_page():
    """Factory for Notion page objects."""
    return _make_page


@pytest.fixture()
def search_payload():
    """Factory for Notion search responses."""
    return _search_payload
