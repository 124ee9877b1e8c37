"""Monday-aligned week windows.

A window covers Monday 00:00:00.000 through Sunday 23:59:59.999 in the
timezone of the reference instant. ``weeks_ago=0`` is the week containing
that instant, ``weeks_ago=N`` the week N weeks before it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

WEEK_LENGTH = timedelta(days=7)
_END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class WeekWindow:
    weeks_ago: int
    start: datetime  # Monday 00:00:00.000
    end: datetime  # Sunday 23:59:59.999

    @property
    def label(self) -> str:
        return week_label(self.weeks_ago)

    @property
    def date_range(self) -> str:
        return format_date_range(self.start, self.end)

    def contains(self, moment: datetime) -> bool:
        return in_window(moment, self)


def get_week_window(weeks_ago: int = 0, now: datetime | None = None) -> WeekWindow:
    """Return the window ``weeks_ago`` weeks before the week containing ``now``.

    ``now`` defaults to the current local time. A naive ``now`` is treated as
    local time. Bounds are wall-clock midnight in ``now``'s zone, so a window
    that contains a DST change is an hour shorter or longer than a week.
    """
    if weeks_ago < 0:
        raise ValueError(f"weeks_ago must be >= 0, got {weeks_ago}")

    if now is None:
        now = datetime.now()

    # weekday(): Monday == 0 ... Sunday == 6
    monday = now.date() - timedelta(days=now.weekday() + 7 * weeks_ago)
    sunday = monday + WEEK_LENGTH - timedelta(days=1)
    start = datetime.combine(monday, time.min, tzinfo=now.tzinfo)
    end = datetime.combine(sunday, _END_OF_DAY, tzinfo=now.tzinfo)
    if now.tzinfo is None:
        # Local wall clock: each bound takes the UTC offset in force on its own date
        start, end = start.astimezone(), end.astimezone()
    return WeekWindow(weeks_ago=weeks_ago, start=start, end=end)


def week_label(weeks_ago: int = 0) -> str:
    if weeks_ago == 0:
        return "This Week"
    if weeks_ago == 1:
        return "Last Week"
    return f"{weeks_ago} Weeks Ago"


def _short_date(moment: datetime) -> str:
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_date_range(start: datetime, end: datetime) -> str:
    """``'Jan 5, 2026 - Jan 11, 2026'``."""
    return f"{_short_date(start)} - {_short_date(end)}"


def in_window(moment: datetime, window: WeekWindow) -> bool:
    """Inclusive on both ends."""
    return window.start <= moment <= window.end
