"""Application state container.

AppState is created once per process by the entrypoint (a CLI command or the
Starlette lifespan) and handed to everything that needs shared resources.
The workspace service is only present when a Notion token is configured;
``browse`` and ``overview`` talk to the knowledge-base endpoint and run
without one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from weeklytracker.config import Settings
    from weeklytracker.fetcher import ResponseCache
    from weeklytracker.protocols import FetcherProtocol, WorkspaceProtocol


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    http_client: httpx.AsyncClient | None = None
    fetcher: FetcherProtocol | None = None
    workspace: WorkspaceProtocol | None = None
    # Server-side cache of /knowledge-base payloads, keyed by request URL
    response_cache: ResponseCache | None = None
