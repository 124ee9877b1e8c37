"""Static JSON export: one ``week-<N>.json`` file per week.

Weeks are processed strictly one after another. Each file is written
atomically and is complete on its own, so a failure in a later week leaves
the earlier files valid.
"""

from __future__ import annotations

import os
from contextlib import suppress
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from weeklytracker.models.pages import WeekReport
    from weeklytracker.protocols import WorkspaceProtocol

log = structlog.get_logger()


def week_filename(week: int) -> str:
    return f"week-{week}.json"


def write_week_report(report: WeekReport, output_dir: Path) -> Path:
    """Write ``report`` to ``output_dir/week-<N>.json`` with atomic replace semantics."""
    path = output_dir / week_filename(report.week)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp_path.write_text(report.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)
    return path


async def export_weeks(
    workspace: WorkspaceProtocol,
    output_dir: Path,
    weeks: int,
    *,
    now: datetime | None = None,
    on_week: Callable[[WeekReport, Path], None] | None = None,
) -> list[Path]:
    """Export weeks ``0..weeks-1``; the first failure propagates."""
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for week in range(weeks):
        report = await workspace.collect_week(week, now)
        path = write_week_report(report, output_dir)
        log.info("week_exported", week=week, pages=len(report.pages), path=str(path))
        written.append(path)
        if on_week is not None:
            on_week(report, path)
    return written
