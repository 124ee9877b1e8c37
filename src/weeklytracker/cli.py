"""Command-line entrypoint.

``weeklytracker -w N`` (or ``weeklytracker report -w N``) prints the pages
created N weeks ago. The other commands export JSON, serve the web view, and
browse a running server from the terminal.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from weeklytracker import __version__
from weeklytracker.browser import browse as browse_loop
from weeklytracker.config import Settings
from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.export import export_weeks
from weeklytracker.fetcher import ResilientFetcher, build_http_client
from weeklytracker.knowledge_base import KnowledgeBaseClient, load_weeks
from weeklytracker.logging_setup import setup_logging
from weeklytracker.navigation import WeekNavigator
from weeklytracker.render import build_report_view, render_console, render_overview_console
from weeklytracker.server import run_server
from weeklytracker.workspace import build_workspace_service

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="weeklytracker",
    help="Track new Notion pages by week.",
    epilog=(
        "Examples:\n\n"
        "  weeklytracker              Show pages from this week\n\n"
        "  weeklytracker -w 1         Show pages from last week\n\n"
        "  weeklytracker -w 2         Show pages from 2 weeks ago"
    ),
    no_args_is_help=False,
    add_completion=False,
)

WeeksOption = Annotated[
    int,
    typer.Option(
        "-w",
        "--weeks",
        min=0,
        help="Number of weeks ago (0 = this week, 1 = last week, etc.)",
    ),
]


def _report_error(exc: WeeklyTrackerError) -> None:
    if exc.code == ErrorCode.MISSING_TOKEN:
        err_console.print("[red]❌ Error: NOTION_TOKEN environment variable is required.[/red]")
        err_console.print("[yellow]💡 Create a .env file with your Notion integration token:[/yellow]")
        err_console.print("[bright_black]   NOTION_TOKEN=your_token_here[/bright_black]\n")
        return
    err_console.print(f"[red]❌ Error:[/red] {exc.message}")


def _load_settings() -> Settings:
    settings = Settings()
    setup_logging(settings)
    return settings


def _run_report(weeks: int) -> None:
    settings = _load_settings()

    async def _collect():
        token = settings.require_token()
        async with build_http_client(settings) as client:
            fetcher = ResilientFetcher(client, settings.http)
            workspace = build_workspace_service(fetcher, token, settings.notion)
            return await workspace.collect_week(weeks)

    try:
        report = asyncio.run(_collect())
    except WeeklyTrackerError as exc:
        _report_error(exc)
        raise typer.Exit(1) from exc

    render_console(build_report_view(report), console)


def _version_callback(value: bool) -> None:
    if value:
        console.print(__version__)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    weeks: WeeksOption = 0,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version."),
    ] = False,
) -> None:
    """Track new Notion pages by week."""
    if ctx.invoked_subcommand is None:
        _run_report(weeks)


@app.command()
def report(weeks: WeeksOption = 0) -> None:
    """Print the pages created in one week."""
    _run_report(weeks)


@app.command()
def export(
    weeks: Annotated[
        int | None,
        typer.Option("--weeks", min=1, help="How many weeks to export, starting with this week."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory for week-<N>.json files."),
    ] = None,
) -> None:
    """Write one JSON file per week for static hosting."""
    settings = _load_settings()
    weeks = weeks or settings.export.weeks
    output_dir = output or Path(settings.export.output_dir)

    def _progress(report, path: Path) -> None:
        console.print(f"✅ {report.week_label}: {len(report.pages)} pages")

    async def _export() -> list[Path]:
        token = settings.require_token()
        async with build_http_client(settings) as client:
            fetcher = ResilientFetcher(client, settings.http)
            workspace = build_workspace_service(fetcher, token, settings.notion)
            return await export_weeks(workspace, output_dir, weeks, on_week=_progress)

    console.print(f"Generating data for last {weeks} weeks...")
    try:
        asyncio.run(_export())
    except WeeklyTrackerError as exc:
        _report_error(exc)
        raise typer.Exit(1) from exc

    console.print("\n🎉 Data generation complete!")
    console.print(f"Files generated in {output_dir}/")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address.")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port.")] = None,
) -> None:
    """Serve /knowledge-base and the paginated week view."""
    settings = Settings()
    try:
        settings.require_token()
    except WeeklyTrackerError as exc:
        _report_error(exc)
        raise typer.Exit(1) from exc
    if host is not None:
        settings.server.host = host
    if port is not None:
        settings.server.port = port
    run_server(settings)


ApiBaseOption = Annotated[
    str | None,
    typer.Option("--api-base", help="Base URL of a server exposing /knowledge-base."),
]


@app.command()
def browse(api_base: ApiBaseOption = None) -> None:
    """Page through weeks interactively against a knowledge-base server."""
    settings = _load_settings()
    base = api_base or settings.browser.api_base

    async def _read_command() -> str:
        return await asyncio.to_thread(console.input, "> ")

    async def _browse() -> None:
        async with build_http_client(settings) as client:
            fetcher = ResilientFetcher(client, settings.http)
            navigator = WeekNavigator(KnowledgeBaseClient(fetcher, base))
            await browse_loop(navigator, console, _read_command)

    try:
        asyncio.run(_browse())
    except (EOFError, KeyboardInterrupt):
        console.print()


@app.command()
def overview(
    api_base: ApiBaseOption = None,
    weeks: Annotated[int, typer.Option("--weeks", min=1, help="Number of weeks to load.")] = 10,
) -> None:
    """Load several weeks concurrently and print them in order."""
    settings = _load_settings()
    base = api_base or settings.browser.api_base

    async def _overview():
        async with build_http_client(settings) as client:
            fetcher = ResilientFetcher(client, settings.http)
            return await load_weeks(KnowledgeBaseClient(fetcher, base), weeks)

    results = asyncio.run(_overview())
    render_overview_console(results, console)
    if not any(result.ok for result in results):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
