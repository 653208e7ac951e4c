"""Tests for bar, gap and holiday placement."""

from datetime import date, timedelta

import pytest

from tui_timeline.axis import build_axis
from tui_timeline.geometry import (
    MIN_HOLIDAY_WIDTH,
    bar_position,
    gap_position,
    gap_range,
    holiday_segments,
    position,
)
from tui_timeline.layout import build_layout
from tui_timeline.models import (
    DatePreview,
    Holiday,
    ItemKind,
    ProjectItem,
    Row,
    TaskItem,
    ZoomMode,
)


def _row(start: date, end: date, gap: int = 0, kind: ItemKind = ItemKind.TASK) -> Row:
    return Row(
        id="r", kind=kind, label="r",
        start_date=start, end_date=end,
        display_start=start, display_end=end,
        gap_days=gap,
    )


@pytest.fixture
def month_axis():
    rows = [
        _row(date(2025, 1, 15), date(2025, 3, 30), kind=ItemKind.PROJECT),
        _row(date(2025, 2, 1), date(2025, 5, 15), kind=ItemKind.PROJECT),
    ]
    return build_axis(rows, ZoomMode.MONTH)


class TestPosition:
    def test_left_and_width(self, month_axis):
        pos = position(date(2025, 1, 15), date(2025, 1, 24), month_axis)
        assert pos.left_fraction == pytest.approx(14 / 181)
        assert pos.width_fraction == pytest.approx(10 / 181)

    def test_same_day_is_one_day_wide(self, month_axis):
        pos = position(date(2025, 2, 1), date(2025, 2, 1), month_axis)
        assert pos.width_fraction == pytest.approx(1 / 181)

    def test_whole_axis(self, month_axis):
        pos = position(month_axis.range_start, month_axis.range_end, month_axis)
        assert pos.left_fraction == 0.0
        assert pos.width_fraction == pytest.approx(1.0)

    def test_not_clamped_outside_axis(self, month_axis):
        pos = position(date(2024, 12, 22), date(2025, 1, 5), month_axis)
        assert pos.left_fraction < 0

    def test_geometry_inverse(self, month_axis):
        total = month_axis.total_days
        for offset in range(0, total, 7):
            start = month_axis.range_start + timedelta(days=offset)
            end = min(start + timedelta(days=3), month_axis.range_end)
            pos = position(start, end, month_axis)
            assert round(pos.left_fraction * total) == offset

    def test_bar_position_uses_display_dates(self, month_axis):
        row = Row(
            id="r", kind=ItemKind.TASK, label="r",
            start_date=date(2025, 2, 1), end_date=date(2025, 2, 10),
            display_start=date(2025, 2, 3), display_end=date(2025, 2, 10),
        )
        assert bar_position(row, month_axis) == position(date(2025, 2, 3), date(2025, 2, 10), month_axis)


class TestGap:
    def test_gap_before_start(self):
        row = _row(date(2025, 2, 5), date(2025, 2, 20), gap=5)
        assert gap_range(row) == (date(2025, 1, 31), date(2025, 2, 4))

    def test_gap_width_is_gap_days(self, month_axis):
        row = _row(date(2025, 2, 5), date(2025, 2, 20), gap=5)
        pos = gap_position(row, month_axis)
        assert pos.width_fraction == pytest.approx(5 / 181)
        assert pos.left_fraction + pos.width_fraction == pytest.approx(
            bar_position(row, month_axis).left_fraction
        )

    def test_no_gap(self, month_axis):
        row = _row(date(2025, 2, 5), date(2025, 2, 20))
        assert gap_range(row) is None
        assert gap_position(row, month_axis) is None

    def test_gap_follows_preview_start(self):
        row = Row(
            id="r", kind=ItemKind.TASK, label="r",
            start_date=date(2025, 2, 5), end_date=date(2025, 2, 20),
            display_start=date(2025, 2, 8), display_end=date(2025, 2, 20),
            gap_days=2,
        )
        assert gap_range(row) == (date(2025, 2, 6), date(2025, 2, 7))


class TestHolidaySegments:
    def test_single_day_holiday_at_axis_start(self, month_axis):
        segments = holiday_segments([Holiday(date(2025, 1, 1), date(2025, 1, 1))], month_axis)
        assert len(segments) == 1
        assert segments[0].date == date(2025, 1, 1)
        assert segments[0].left_fraction == 0.0

    def test_one_segment_per_day(self, month_axis):
        segments = holiday_segments([Holiday(date(2025, 4, 18), date(2025, 4, 21))], month_axis)
        assert [s.date for s in segments] == [
            date(2025, 4, 18), date(2025, 4, 19), date(2025, 4, 20), date(2025, 4, 21),
        ]

    def test_days_outside_axis_dropped(self, month_axis):
        segments = holiday_segments([Holiday(date(2024, 12, 30), date(2025, 1, 2))], month_axis)
        assert [s.date for s in segments] == [date(2025, 1, 1), date(2025, 1, 2)]

    def test_minimum_width(self):
        axis = build_axis([_row(date(2020, 1, 1), date(2024, 12, 31))], ZoomMode.YEAR)
        segments = holiday_segments([Holiday(date(2021, 7, 4), date(2021, 7, 4))], axis)
        assert 1 / axis.total_days < MIN_HOLIDAY_WIDTH
        assert segments[0].width_fraction == MIN_HOLIDAY_WIDTH

    def test_day_width_when_wider_than_minimum(self, month_axis):
        segments = holiday_segments([Holiday(date(2025, 3, 3), date(2025, 3, 3))], month_axis)
        assert segments[0].width_fraction == pytest.approx(1 / 181)


class TestBuildLayout:
    def _projects(self):
        task = TaskItem("Design", "web", date(2025, 2, 5), date(2025, 2, 20), id="t1", gap_days_before=5)
        return [
            ProjectItem("Website", date(2025, 1, 15), date(2025, 3, 30), id="web", tasks=(task,)),
            ProjectItem("App", date(2025, 2, 1), date(2025, 5, 15), id="app"),
        ]

    def test_one_pass(self):
        layout = build_layout(
            self._projects(),
            ZoomMode.MONTH,
            holidays=[Holiday(date(2025, 1, 1), date(2025, 1, 1))],
            today=date(2025, 2, 10),
        )
        assert [r.id for r in layout.rows] == ["web", "t1", "app"]
        assert layout.axis.range_start == date(2025, 1, 1)
        assert layout.axis.range_end == date(2025, 6, 30)
        assert len(layout.holidays) == 1
        assert layout.row_index("app") == 2
        assert layout.row_index("missing") == -1

    def test_row_index_by_kind(self):
        shared = TaskItem("Review", "app", date(2025, 3, 1), date(2025, 3, 5), id="app")
        projects = self._projects()
        projects[1] = ProjectItem("App", date(2025, 2, 1), date(2025, 5, 15), id="app", tasks=(shared,))
        layout = build_layout(projects, ZoomMode.MONTH, today=date(2025, 2, 10))
        assert [(r.id, r.kind) for r in layout.rows][2:] == [("app", ItemKind.PROJECT), ("app", ItemKind.TASK)]
        assert layout.row_index("app", ItemKind.TASK) == 3
        assert layout.row_index("app", ItemKind.PROJECT) == 2
        assert layout.row_index("app") == 2
        assert layout.row_index("t1", ItemKind.PROJECT) == -1

    def test_preview_moves_bar_but_not_axis(self):
        preview = DatePreview("t1", ItemKind.TASK, date(2025, 2, 5), date(2025, 6, 20))
        plain = build_layout(self._projects(), ZoomMode.MONTH, today=date(2025, 2, 10))
        live = build_layout(self._projects(), ZoomMode.MONTH, preview=preview, today=date(2025, 2, 10))
        assert live.axis == plain.axis
        assert live.rows[1].display_end == date(2025, 6, 20)

    def test_collapsed_tasks_do_not_widen_axis(self):
        task = TaskItem("Late", "web", date(2025, 1, 20), date(2025, 12, 1), id="late")
        projects = [ProjectItem("Website", date(2025, 1, 15), date(2025, 3, 30), id="web", tasks=(task,))]
        open_layout = build_layout(projects, ZoomMode.MONTH)
        folded = build_layout(projects, ZoomMode.MONTH, collapsed={"web"})
        assert folded.axis.range_end < open_layout.axis.range_end
