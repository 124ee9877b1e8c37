"""Backend proxy and web view.

Responsibilities (and nothing more):
- Build AppState in the Starlette lifespan (http client, fetcher, workspace)
- Serve ``GET /knowledge-base`` for remote front ends
- Serve ``GET /`` as a paginated, server-rendered week view
- Run under uvicorn
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from weeklytracker import __version__
from weeklytracker.config import Settings
from weeklytracker.dates import get_week_window
from weeklytracker.errors import ErrorCode, WeeklyTrackerError, missing_token_error
from weeklytracker.fetcher import ResilientFetcher, ResponseCache, build_http_client
from weeklytracker.logging_setup import setup_logging
from weeklytracker.models.pages import KnowledgeBaseResponse
from weeklytracker.navigation import NavigationState, WeekNavigator
from weeklytracker.render import build_week_view, render_html
from weeklytracker.state import AppState
from weeklytracker.workspace import build_workspace_service

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def parse_weeks_ago(raw: str | None) -> int:
    """``weeksAgo`` query value; absent means the current week."""
    if raw is None or raw == "":
        return 0
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        raise WeeklyTrackerError(
            code=ErrorCode.INVALID_INPUT,
            message=f"weeksAgo must be a non-negative integer, got {raw!r}",
            suggestion="Use weeksAgo=0 for this week, 1 for last week, and so on.",
            recoverable=False,
        )
    return value


def _status_for(error: WeeklyTrackerError) -> int:
    if error.code == ErrorCode.INVALID_INPUT:
        return 400
    if error.code == ErrorCode.MISSING_TOKEN:
        return 500
    return 502


async def knowledge_base_payload(state: AppState, weeks_ago: int) -> KnowledgeBaseResponse:
    """Collect one week through the workspace, memoised in the response cache."""
    if state.workspace is None:
        raise missing_token_error()

    key = f"knowledge-base?weeksAgo={weeks_ago}"
    if state.response_cache is not None:
        cached = state.response_cache.get(key)
        if cached is not None:
            log.debug("cache_hit", key=key)
            return KnowledgeBaseResponse.model_validate(cached.data)

    report = await state.workspace.collect_week(weeks_ago)
    payload = KnowledgeBaseResponse(
        date_range=report.date_range,
        pages=report.pages,
        total_count=len(report.pages),
    )
    if state.response_cache is not None:
        state.response_cache.set(key, payload.model_dump(mode="json", by_alias=True))
    return payload


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def knowledge_base(request: Request) -> JSONResponse:
    state: AppState = request.app.state.app_state
    try:
        weeks_ago = parse_weeks_ago(request.query_params.get("weeksAgo"))
        payload = await knowledge_base_payload(state, weeks_ago)
    except WeeklyTrackerError as exc:
        log.warning(
            "request_error",
            path="/knowledge-base",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return JSONResponse(exc.to_dict(), status_code=_status_for(exc))

    log.info("knowledge_base_served", weeks_ago=weeks_ago, total_count=payload.total_count)
    return JSONResponse(payload.model_dump(mode="json", by_alias=True))


async def week_page(request: Request) -> HTMLResponse:
    state: AppState = request.app.state.app_state
    try:
        weeks_ago = parse_weeks_ago(request.query_params.get("weeksAgo"))
    except WeeklyTrackerError as exc:
        return HTMLResponse(exc.message, status_code=400)

    async def loader(week: int) -> KnowledgeBaseResponse:
        return await knowledge_base_payload(state, week)

    # Seeded with the requested week so a failed load still describes it
    requested = NavigationState(
        weeks_ago=weeks_ago,
        target=weeks_ago,
        date_range=get_week_window(weeks_ago).date_range,
    )
    navigation = await WeekNavigator(loader).load(requested)
    view = build_week_view(navigation)
    return HTMLResponse(render_html(view, base_path=request.url.path))


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": __version__})


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Wire the shared client, fetcher and (when a token is set) the workspace."""
    http_client = build_http_client(settings)
    fetcher = ResilientFetcher(http_client, settings.http)
    state = AppState(
        settings=settings,
        http_client=http_client,
        fetcher=fetcher,
        response_cache=ResponseCache(ttl_seconds=settings.http.cache_ttl_seconds),
    )
    try:
        token = settings.require_token()
    except WeeklyTrackerError:
        log.warning("notion_token_missing", message="/knowledge-base will return errors")
    else:
        state.workspace = build_workspace_service(fetcher, token, settings.notion)
    return state


def create_app(settings: Settings | None = None, state: AppState | None = None) -> Starlette:
    """Build the Starlette app.

    A pre-built ``state`` (tests) is used as-is; otherwise the lifespan
    creates one from ``settings`` and closes its http client on shutdown.
    """
    settings = settings or (state.settings if state is not None else Settings())

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        owned = getattr(app.state, "app_state", None) is None
        if owned:
            app.state.app_state = build_state(settings)
        log.info("server_started", version=__version__, port=settings.server.port)
        try:
            yield
        finally:
            client = app.state.app_state.http_client
            if owned and client is not None:
                await client.aclose()
            log.info("server_stopping")

    middleware = []
    if settings.server.cors_origins:
        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=settings.server.cors_origins,
                allow_methods=["GET"],
            )
        )

    app = Starlette(
        routes=[
            Route("/", week_page),
            Route("/knowledge-base", knowledge_base),
            Route("/health", health),
        ],
        middleware=middleware,
        lifespan=lifespan,
    )
    if state is not None:
        app.state.app_state = state
    return app


def run_server(settings: Settings) -> None:
    """Start the web server."""
    setup_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )
