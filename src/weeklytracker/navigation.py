"""Week navigation controller.

Navigation state is an immutable value: each transition takes the current
state and returns the next one. A transition only commits its target week
once the loader succeeds. On failure the state keeps the week and pages that
were displayed before, marked ``failed`` with the error message, so the
pagination controls always describe what is on screen.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from weeklytracker.dates import week_label
from weeklytracker.errors import WeeklyTrackerError

if TYPE_CHECKING:
    from weeklytracker.models.pages import PageRecord
    from weeklytracker.protocols import WeekLoader

log = structlog.get_logger()


class LoadStatus(StrEnum):
    PENDING = "pending"
    SETTLED = "settled"
    FAILED = "failed"


@dataclass(frozen=True)
class NavigationState:
    weeks_ago: int = 0
    status: LoadStatus = LoadStatus.PENDING
    # Week being loaded while PENDING; equals weeks_ago otherwise
    target: int = 0
    date_range: str = ""
    pages: tuple[PageRecord, ...] = ()
    total_count: int = 0
    error: str | None = None

    @property
    def label(self) -> str:
        return week_label(self.weeks_ago)

    @property
    def loading(self) -> bool:
        return self.status is LoadStatus.PENDING


@dataclass(frozen=True)
class PaginationControls:
    previous_enabled: bool
    next_enabled: bool


def initial_state() -> NavigationState:
    return NavigationState()


def controls_for(state: NavigationState) -> PaginationControls:
    """Going back is always possible; the current week has nothing after it."""
    return PaginationControls(previous_enabled=True, next_enabled=state.weeks_ago > 0)


class WeekNavigator:
    """Drives NavigationState transitions through a week loader."""

    def __init__(self, loader: WeekLoader) -> None:
        self._loader = loader

    def begin(self, state: NavigationState, target: int) -> NavigationState:
        """Mark ``target`` as loading and clear any previous error."""
        if target < 0:
            raise ValueError(f"target week must be >= 0, got {target}")
        return replace(state, status=LoadStatus.PENDING, target=target, error=None)

    async def load(self, state: NavigationState, target: int | None = None) -> NavigationState:
        """Load ``target`` (default: the state's current week) and commit it on success."""
        if target is None:
            target = state.weeks_ago
        pending = self.begin(state, target)

        try:
            response = await self._loader(target)
        except WeeklyTrackerError as exc:
            log.warning(
                "week_navigation_failed",
                weeks_ago=state.weeks_ago,
                target=target,
                code=exc.code,
                message=exc.message,
            )
            return replace(
                pending,
                status=LoadStatus.FAILED,
                target=state.weeks_ago,
                error=exc.message,
            )

        log.debug("week_navigation_settled", weeks_ago=target, pages=len(response.pages))
        return NavigationState(
            weeks_ago=target,
            status=LoadStatus.SETTLED,
            target=target,
            date_range=response.date_range,
            pages=tuple(response.pages),
            total_count=response.total_count,
        )

    async def previous(self, state: NavigationState) -> NavigationState:
        """One week further back."""
        return await self.load(state, state.weeks_ago + 1)

    async def next(self, state: NavigationState) -> NavigationState:
        """One week forward; a no-op at the current week."""
        if not controls_for(state).next_enabled:
            return state
        return await self.load(state, state.weeks_ago - 1)
