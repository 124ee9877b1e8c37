"""Notion workspace access: search, creation-week filtering and page enrichment.

The Notion search endpoint has no creation-time filter, so pages are searched
newest-edit-first and filtered locally against the week window. Each match is
then enriched with its title, first URL property and parent container.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from weeklytracker.config import NotionSettings
from weeklytracker.dates import get_week_window
from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.models.pages import (
    UNTITLED,
    UNTITLED_DATABASE,
    PageRecord,
    ParentInfo,
    ParentKind,
    ParentLookup,
    WeekReport,
)

if TYPE_CHECKING:
    from weeklytracker.dates import WeekWindow
    from weeklytracker.protocols import FetcherProtocol

log = structlog.get_logger()


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _first_text(segments: Any) -> str | None:
    """Text of the first rich-text segment, or None."""
    if not segments:
        return None
    first = segments[0]
    text = (first.get("text") or {}).get("content") or first.get("plain_text")
    return text or None


def get_page_title(page: dict) -> str:
    """Title from the page's first ``title``-typed property."""
    for prop in (page.get("properties") or {}).values():
        if prop.get("type") == "title":
            return _first_text(prop.get("title")) or UNTITLED
    return UNTITLED


def get_link_property(page: dict) -> str | None:
    """Value of the page's first ``url``-typed property, if set."""
    for prop in (page.get("properties") or {}).values():
        if prop.get("type") == "url":
            return prop.get("url") or None
    return None


def get_database_title(database: dict) -> str:
    return _first_text(database.get("title")) or UNTITLED_DATABASE


class NotionClient:
    """Minimal Notion REST client on top of the resilient fetcher."""

    def __init__(
        self,
        fetcher: FetcherProtocol,
        token: str,
        settings: NotionSettings | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._token = token
        self._settings = settings or NotionSettings()

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Notion-Version": self._settings.api_version,
        }

    def _url(self, path: str) -> str:
        return f"{self._settings.api_base.rstrip('/')}/{path}"

    async def search(self, start_cursor: str | None = None) -> dict:
        """One page of search results: pages only, last edited first."""
        body: dict[str, Any] = {
            "filter": {"property": "object", "value": "page"},
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
            "page_size": self._settings.page_size,
        }
        if start_cursor:
            body["start_cursor"] = start_cursor
        response = await self._fetcher.fetch_with_retry(
            self._url("search"), method="POST", json=body, headers=self._headers
        )
        return response.json()

    async def retrieve_database(self, database_id: str) -> dict:
        # Sibling pages usually share a parent, so lookups go through the cache
        response = await self._fetcher.fetch_with_cache(
            self._url(f"databases/{database_id}"), headers=self._headers
        )
        return response.json()

    async def retrieve_page(self, page_id: str) -> dict:
        response = await self._fetcher.fetch_with_cache(
            self._url(f"pages/{page_id}"), headers=self._headers
        )
        return response.json()


class WorkspaceService:
    """Collects the pages created in a given week, with parent metadata."""

    def __init__(self, client: NotionClient, settings: NotionSettings | None = None) -> None:
        self._client = client
        self._settings = settings or NotionSettings()

    async def search_pages(self, window: WeekWindow) -> list[dict]:
        """Return raw page objects created inside ``window``, in search order.

        Follows search pagination until results run out, the page limit is
        hit, or a result was last edited before the window opened. Errors from
        the search call propagate.
        """
        matches: list[dict] = []
        cursor: str | None = None
        scanned = 0

        for _ in range(self._settings.max_search_pages):
            payload = await self._client.search(cursor)
            results = payload.get("results")
            if not isinstance(results, list):
                raise WeeklyTrackerError(
                    code=ErrorCode.INVALID_RESPONSE,
                    message="Notion search response has no 'results' list",
                    suggestion="Check the configured Notion API base URL and version.",
                    recoverable=False,
                )

            scanned += len(results)
            for page in results:
                created = _parse_timestamp(page.get("created_time"))
                if created is not None and window.contains(created):
                    matches.append(page)

            # Sorted by last edit, newest first: once an edit predates the
            # window, no later result can have been created inside it.
            last_edited = _parse_timestamp(results[-1].get("last_edited_time")) if results else None
            if last_edited is not None and last_edited < window.start:
                break
            cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not cursor:
                break

        log.info(
            "search_complete",
            weeks_ago=window.weeks_ago,
            scanned=scanned,
            matched=len(matches),
        )
        return matches

    async def lookup_parent(self, page: dict) -> ParentLookup:
        """Resolve the page's parent database or page.

        Never raises: a failed lookup is reported through ``ParentLookup.error``.
        """
        parent = page.get("parent") or {}
        parent_type = parent.get("type")
        try:
            if parent_type == "database_id":
                database_id = parent["database_id"]
                database = await self._client.retrieve_database(database_id)
                return ParentLookup(
                    info=ParentInfo(
                        kind=ParentKind.DATABASE,
                        title=get_database_title(database),
                        id=database_id,
                    )
                )
            if parent_type == "page_id":
                page_id = parent["page_id"]
                parent_page = await self._client.retrieve_page(page_id)
                return ParentLookup(
                    info=ParentInfo(
                        kind=ParentKind.PAGE,
                        title=get_page_title(parent_page),
                        id=page_id,
                    )
                )
        except Exception as exc:
            log.warning(
                "parent_lookup_failed",
                page_id=page.get("id"),
                parent_type=parent_type,
                reason=str(exc),
            )
            return ParentLookup(error=str(exc))
        return ParentLookup()

    async def format_page_info(self, page: dict) -> PageRecord:
        lookup = await self.lookup_parent(page)
        return PageRecord(
            id=page["id"],
            title=get_page_title(page),
            url=page.get("url", ""),
            created_time=page["created_time"],
            link_property=get_link_property(page),
            parent_info=lookup.info,
        )

    async def collect_week(self, weeks_ago: int, now: datetime | None = None) -> WeekReport:
        """Search, filter and enrich one week of pages.

        Pages are enriched one after another; a failed parent lookup only
        drops that page's parent metadata.
        """
        window = get_week_window(weeks_ago, now)
        pages = await self.search_pages(window)

        records: list[PageRecord] = []
        for page in pages:
            records.append(await self.format_page_info(page))

        return WeekReport(
            week=weeks_ago,
            week_label=window.label,
            date_range=window.date_range,
            start=window.start,
            end=window.end,
            pages=records,
            generated_at=datetime.now(tz=UTC),
        )


def build_workspace_service(
    fetcher: FetcherProtocol,
    token: str,
    settings: NotionSettings | None = None,
) -> WorkspaceService:
    return WorkspaceService(NotionClient(fetcher, token, settings), settings)
