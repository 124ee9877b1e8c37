"""Interactive terminal week browser.

Renders the current NavigationState, reads one command, applies the matching
transition and repeats until the user quits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from weeklytracker.navigation import LoadStatus, controls_for, initial_state
from weeklytracker.render import build_week_view, render_console

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from rich.console import Console

    from weeklytracker.navigation import NavigationState, WeekNavigator

PREVIOUS_COMMANDS = frozenset({"p", "prev", "previous"})
NEXT_COMMANDS = frozenset({"n", "next"})
RELOAD_COMMANDS = frozenset({"r", "reload"})
QUIT_COMMANDS = frozenset({"q", "quit", "exit"})


def controls_line(state: NavigationState) -> str:
    """Rich markup for the command hint line."""
    previous_hint = escape("[p] Previous week")
    next_hint = escape("[n] Next week")
    if not controls_for(state).next_enabled:
        next_hint = "[dim]" + escape("[n] Next week (disabled)") + "[/dim]"
    rest = escape("[r] Reload   [q] Quit")
    return f"{previous_hint}   {next_hint}   {rest}"


async def browse(
    navigator: WeekNavigator,
    console: Console,
    read_command: Callable[[], Awaitable[str]],
) -> NavigationState:
    """Run the browse loop; returns the final state when the user quits."""
    console.print("[bright_black]Loading…[/bright_black]")
    state = await navigator.load(initial_state())

    while True:
        render_console(build_week_view(state), console)
        if state.status is LoadStatus.FAILED:
            console.print(f"[bright_black]Still showing {state.label}.[/bright_black]")
        console.print(controls_line(state), highlight=False)

        command = (await read_command()).strip().lower()
        if command in QUIT_COMMANDS:
            return state
        if command in PREVIOUS_COMMANDS:
            console.print("[bright_black]Loading…[/bright_black]")
            state = await navigator.previous(state)
        elif command in NEXT_COMMANDS:
            if not controls_for(state).next_enabled:
                console.print("[yellow]Already at the current week.[/yellow]")
                continue
            console.print("[bright_black]Loading…[/bright_black]")
            state = await navigator.next(state)
        elif command in RELOAD_COMMANDS:
            console.print("[bright_black]Loading…[/bright_black]")
            state = await navigator.load(state)
        else:
            console.print(f"[yellow]Unknown command: {command!r}[/yellow]")
