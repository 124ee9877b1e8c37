"""Rendering for every front end.

Data is first reduced to a WeekView by pure functions; the console (rich)
and HTML (jinja2) outputs only lay that view out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from jinja2 import Environment, PackageLoader, select_autoescape
from rich.markup import escape

from weeklytracker.dates import week_label
from weeklytracker.models.pages import ParentKind
from weeklytracker.navigation import controls_for

if TYPE_CHECKING:
    from datetime import datetime

    from rich.console import Console

    from weeklytracker.models.pages import PageRecord, WeekReport, WeekResult
    from weeklytracker.navigation import NavigationState

_PARENT_ICONS = {ParentKind.DATABASE: "📊", ParentKind.PAGE: "📄"}

_env = Environment(
    loader=PackageLoader("weeklytracker", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class PageView:
    title: str
    created: str
    url: str
    link: str | None = None
    parent_icon: str | None = None
    parent_title: str | None = None


@dataclass(frozen=True)
class WeekView:
    weeks_ago: int
    label: str
    date_range: str
    page_count: str
    pages: tuple[PageView, ...] = ()
    error: str | None = None
    loading: bool = False
    previous_enabled: bool = True
    next_enabled: bool = False


def format_created(moment: datetime) -> str:
    """Local calendar date, ``M/D/YYYY``."""
    local = moment.astimezone()
    return f"{local.month}/{local.day}/{local.year}"


def page_count_text(count: int) -> str:
    return f"{count} page" if count == 1 else f"{count} pages"


def build_page_view(page: PageRecord) -> PageView:
    parent = page.parent_info
    return PageView(
        title=page.title,
        created=format_created(page.created_time),
        url=page.url,
        link=page.link_property,
        parent_icon=_PARENT_ICONS[parent.kind] if parent else None,
        parent_title=parent.title if parent else None,
    )


def build_week_view(state: NavigationState) -> WeekView:
    controls = controls_for(state)
    return WeekView(
        weeks_ago=state.weeks_ago,
        label=state.label,
        date_range=state.date_range,
        page_count=page_count_text(state.total_count),
        pages=tuple(build_page_view(page) for page in state.pages),
        error=state.error,
        loading=state.loading,
        previous_enabled=controls.previous_enabled,
        next_enabled=controls.next_enabled,
    )


def build_report_view(report: WeekReport) -> WeekView:
    return WeekView(
        weeks_ago=report.week,
        label=report.week_label,
        date_range=report.date_range,
        page_count=page_count_text(len(report.pages)),
        pages=tuple(build_page_view(page) for page in report.pages),
        next_enabled=report.week > 0,
    )


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


def render_console(view: WeekView, console: Console) -> None:
    console.print(f"\n[bold blue]📅 {escape(view.label)}[/bold blue]")
    console.print(f"[bright_black]{escape(view.date_range)}[/bright_black]\n")

    if view.error:
        console.print(f"[red]❌ Error loading data: {escape(view.error)}[/red]")
        return

    if not view.pages:
        console.print("[yellow]No new pages found for this week.[/yellow]")
        return

    console.print(f"[bold green]Found {len(view.pages)} new page(s):[/bold green]\n")
    for index, page in enumerate(view.pages, start=1):
        console.print(f"{index}. [bold]{escape(page.title)}[/bold]")
        console.print(f"[bright_black]   Created: {page.created}[/bright_black]")
        if page.parent_title is not None:
            console.print(
                f"[magenta]   {page.parent_icon} Parent: {escape(page.parent_title)}[/magenta]"
            )
        if page.link:
            console.print(f"[cyan]   Link: {escape(page.link)}[/cyan]")
        console.print(f"[blue]   Page URL: {escape(page.url)}[/blue]\n")


def render_overview_console(results: list[WeekResult], console: Console) -> None:
    """Successful weeks in order, preceded by an advisory for the failed ones."""
    failed = [result for result in results if not result.ok]
    if failed:
        plural = "s" if len(failed) > 1 else ""
        console.print(f"[yellow]Warning: {len(failed)} week{plural} could not be loaded[/yellow]")

    for result in results:
        if result.response is None:
            continue
        response = result.response
        view = WeekView(
            weeks_ago=result.week,
            label=week_label(result.week),
            date_range=response.date_range,
            page_count=page_count_text(response.total_count),
            pages=tuple(build_page_view(page) for page in response.pages),
        )
        render_console(view, console)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def render_html(view: WeekView, base_path: str = "/") -> str:
    return _env.get_template("week.html").render(view=view, base_path=base_path)
