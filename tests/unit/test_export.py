"""Unit tests for weeklytracker.export."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from weeklytracker.dates import get_week_window
from weeklytracker.errors import ErrorCode, WeeklyTrackerError
from weeklytracker.export import export_weeks, week_filename, write_week_report
from weeklytracker.models.pages import PageRecord, WeekReport

if TYPE_CHECKING:
    from pathlib import Path


def _report(week: int, now: datetime, pages: list[PageRecord] | None = None) -> WeekReport:
    window = get_week_window(week, now)
    return WeekReport(
        week=week,
        week_label=window.label,
        date_range=window.date_range,
        start=window.start,
        end=window.end,
        pages=pages or [],
        generated_at=now,
    )


class FakeWorkspace:
    """Returns canned reports; weeks in ``failing`` raise."""

    def __init__(self, failing: set[int] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[int] = []

    async def collect_week(self, weeks_ago: int, now: datetime | None = None) -> WeekReport:
        self.calls.append(weeks_ago)
        if weeks_ago in self.failing:
            raise WeeklyTrackerError(
                code=ErrorCode.NETWORK_ERROR,
                message="Network error fetching search",
                suggestion="Check your connection.",
                recoverable=True,
            )
        assert now is not None
        return _report(weeks_ago, now)


class TestWriteWeekReport:
    def test_camel_case_file(self, tmp_path: Path, fixed_now: datetime) -> None:
        record = PageRecord(
            id="p1",
            title="Notes",
            url="https://www.notion.so/p1",
            created_time=datetime(2026, 10, 13, 9, 0, tzinfo=UTC),
            link_property="https://example.com",
        )
        path = write_week_report(_report(0, fixed_now, [record]), tmp_path)

        assert path == tmp_path / "week-0.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["week"] == 0
        assert data["weekLabel"] == "This Week"
        assert data["dateRange"] == "Oct 12, 2026 - Oct 18, 2026"
        assert {"start", "end", "generatedAt"} <= data.keys()
        assert data["pages"][0]["linkProperty"] == "https://example.com"
        assert data["pages"][0]["createdTime"].startswith("2026-10-13T09:00:00")
        assert data["pages"][0]["parentInfo"] is None

    def test_overwrites_existing_file(self, tmp_path: Path, fixed_now: datetime) -> None:
        (tmp_path / "week-1.json").write_text("stale", encoding="utf-8")
        write_week_report(_report(1, fixed_now), tmp_path)
        assert json.loads((tmp_path / "week-1.json").read_text())["weekLabel"] == "Last Week"

    def test_no_temp_file_left(self, tmp_path: Path, fixed_now: datetime) -> None:
        write_week_report(_report(0, fixed_now), tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["week-0.json"]

    def test_filename(self) -> None:
        assert week_filename(7) == "week-7.json"


class TestExportWeeks:
    async def test_writes_one_file_per_week(self, tmp_path: Path, fixed_now: datetime) -> None:
        workspace = FakeWorkspace()
        output_dir = tmp_path / "docs" / "data"

        written = await export_weeks(workspace, output_dir, 3, now=fixed_now)

        assert workspace.calls == [0, 1, 2]
        assert [path.name for path in written] == ["week-0.json", "week-1.json", "week-2.json"]
        assert all(path.exists() for path in written)

    async def test_reports_progress(self, tmp_path: Path, fixed_now: datetime) -> None:
        seen: list[tuple[int, str]] = []
        await export_weeks(
            FakeWorkspace(),
            tmp_path,
            2,
            now=fixed_now,
            on_week=lambda report, path: seen.append((report.week, path.name)),
        )
        assert seen == [(0, "week-0.json"), (1, "week-1.json")]

    async def test_failure_keeps_earlier_files(self, tmp_path: Path, fixed_now: datetime) -> None:
        workspace = FakeWorkspace(failing={2})

        with pytest.raises(WeeklyTrackerError):
            await export_weeks(workspace, tmp_path, 5, now=fixed_now)

        assert workspace.calls == [0, 1, 2]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["week-0.json", "week-1.json"]
        assert json.loads((tmp_path / "week-1.json").read_text())["week"] == 1

    async def test_zero_weeks_creates_directory_only(self, tmp_path: Path) -> None:
        output_dir = tmp_path / "out"
        assert await export_weeks(FakeWorkspace(), output_dir, 0) == []
        assert output_dir.is_dir()
