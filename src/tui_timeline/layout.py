"""One render pass over the timeline: rows, the shared axis and holiday bands."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from tui_timeline.axis import TimelineAxis, build_axis
from tui_timeline.geometry import MIN_HOLIDAY_WIDTH, holiday_segments
from tui_timeline.models import (
    DatePreview,
    Holiday,
    HolidaySegment,
    ItemKind,
    ProjectItem,
    Row,
    ZoomMode,
)
from tui_timeline.rows import project_rows


@dataclass(frozen=True)
class TimelineLayout:
    rows: tuple[Row, ...]
    axis: TimelineAxis
    holidays: tuple[HolidaySegment, ...] = ()
    today: date = field(default_factory=date.today)

    def row_index(self, row_id: str, kind: ItemKind | None = None) -> int:
        """Index of the row with this id (and kind, when given), or -1."""
        for i, row in enumerate(self.rows):
            if row.id == row_id and (kind is None or row.kind is kind):
                return i
        return -1


def build_layout(
    projects: Iterable[ProjectItem],
    mode: ZoomMode,
    collapsed: set[str] | frozenset[str] = frozenset(),
    holidays: Iterable[Holiday] = (),
    preview: DatePreview | None = None,
    today: date | None = None,
    holiday_min_width: float = MIN_HOLIDAY_WIDTH,
) -> TimelineLayout:
    """Recompute everything the chart draws from the current inputs."""
    today = today or date.today()
    rows = project_rows(projects, collapsed, preview)
    axis = build_axis(rows, mode, today)
    segments = holiday_segments(holidays, axis, holiday_min_width)
    return TimelineLayout(
        rows=tuple(rows),
        axis=axis,
        holidays=tuple(segments),
        today=today,
    )
