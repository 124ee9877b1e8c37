"""Resilient HTTP client: bounded retries with exponential backoff, plus a TTL cache.

All outbound traffic (Notion API and the knowledge-base proxy) goes through a
single ResilientFetcher. The fetcher receives an httpx.AsyncClient via
constructor injection; the entrypoint owns the client lifecycle.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from weeklytracker import __version__
from weeklytracker.config import HttpSettings
from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.models.cache import CacheEntry

if TYPE_CHECKING:
    from weeklytracker.config import Settings

log = structlog.get_logger()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once per process."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.http.timeout_seconds),
        headers={"User-Agent": f"notion-weekly-tracker/{__version__}"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before retrying after ``attempt`` (0-based) failed."""
    return base_delay * 2**attempt


class ResponseCache:
    """In-memory response cache keyed by the exact URL string.

    Entries older than ``ttl_seconds`` are evicted when read; nothing sweeps
    them proactively. Only successful responses are stored.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp < self._ttl:
            return entry
        del self._entries[key]
        return None

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(key=key, data=data, timestamp=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class ResilientFetcher:
    """HTTP fetcher with retry/backoff and an optional response cache."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: HttpSettings | None = None,
        cache: ResponseCache | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or HttpSettings()
        self._cache = cache or ResponseCache(ttl_seconds=self._settings.cache_ttl_seconds)

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def fetch_with_retry(
        self,
        url: str,
        *,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> httpx.Response:
        """Issue a request, retrying transient failures.

        Makes up to ``max_retries + 1`` attempts, sleeping
        ``base_delay * 2**attempt`` seconds between them. A 4xx on the first
        attempt is not retried. Raises WeeklyTrackerError once attempts are
        exhausted.
        """
        if max_retries is None:
            max_retries = self._settings.max_retries
        if base_delay is None:
            base_delay = self._settings.base_delay_seconds

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.request(method, url, json=json, headers=headers)
            except httpx.HTTPError as exc:
                if attempt == max_retries:
                    log.warning("fetch_failed", url=url, attempts=attempt + 1, reason=str(exc))
                    raise WeeklyTrackerError(
                        code=ErrorCode.NETWORK_ERROR,
                        message=f"Network error fetching {url}: {exc}",
                        suggestion="Check your internet connection and try again.",
                        recoverable=True,
                    ) from exc
                delay = backoff_delay(base_delay, attempt)
                log.info("fetch_retry", url=url, attempt=attempt, delay=delay, reason=str(exc))
                await asyncio.sleep(delay)
                continue

            if response.is_success:
                log.debug("fetch_complete", url=url, status_code=response.status_code)
                return response

            status = response.status_code
            detail = f"HTTP {status}: {response.reason_phrase}"

            # Client errors are not transient
            if 400 <= status < 500 and attempt == 0:
                log.warning("fetch_rejected", url=url, status_code=status)
                raise WeeklyTrackerError(
                    code=ErrorCode.HTTP_CLIENT_ERROR,
                    message=f"{detail} fetching {url}",
                    suggestion="Check the request URL and the integration's access rights.",
                    recoverable=False,
                )

            if attempt == max_retries:
                log.warning("fetch_failed", url=url, attempts=attempt + 1, status_code=status)
                raise WeeklyTrackerError(
                    code=ErrorCode.HTTP_FETCH_FAILED,
                    message=f"{detail} fetching {url}",
                    suggestion="The service may be temporarily unavailable. Try again later.",
                    recoverable=True,
                )

            delay = backoff_delay(base_delay, attempt)
            log.info("fetch_retry", url=url, attempt=attempt, delay=delay, status_code=status)
            await asyncio.sleep(delay)

        # Unreachable but satisfies the type checker
        raise WeeklyTrackerError(
            code=ErrorCode.HTTP_FETCH_FAILED,
            message=f"No attempts made fetching {url}",
            suggestion="",
            recoverable=False,
        )

    async def fetch_with_cache(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> httpx.Response:
        """GET a JSON resource, serving repeat requests from the cache.

        A fresh cache hit is returned as a synthetic 200 response without any
        network call. Misses go through fetch_with_retry; the parsed body of a
        successful response is stored under ``url``.
        """
        cached = self._cache.get(url)
        if cached is not None:
            log.debug("cache_hit", url=url)
            return httpx.Response(200, json=cached.data, request=httpx.Request("GET", url))

        log.debug("cache_miss", url=url)
        response = await self.fetch_with_retry(
            url,
            headers=headers,
            max_retries=max_retries,
            base_delay=base_delay,
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise WeeklyTrackerError(
                code=ErrorCode.INVALID_RESPONSE,
                message=f"Response from {url} is not valid JSON",
                suggestion="Check that the URL points at a JSON endpoint.",
                recoverable=False,
            ) from exc

        self._cache.set(url, data)
        return response
