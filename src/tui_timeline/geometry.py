"""Bar and holiday placement on a timeline axis, as fractions of its width."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from tui_timeline.axis import TimelineAxis, fraction
from tui_timeline.models import BarPosition, Holiday, HolidaySegment, Row

MIN_HOLIDAY_WIDTH = 0.003


def position(start: date, end: date, axis: TimelineAxis) -> BarPosition:
    """Place the inclusive range start..end on *axis*.

    Nothing is clamped: a drag preview may run past either edge of the axis
    and the bar is then drawn partly outside the visible area.
    """
    total = axis.total_days
    return BarPosition(
        left_fraction=fraction((start - axis.range_start).days, total),
        width_fraction=fraction((end - start).days + 1, total),
    )


def bar_position(row: Row, axis: TimelineAxis) -> BarPosition:
    return position(row.display_start, row.display_end, axis)


def gap_range(row: Row) -> tuple[date, date] | None:
    """Idle days right before the row's displayed start, or None."""
    if row.gap_days <= 0:
        return None
    return (
        row.display_start - timedelta(days=row.gap_days),
        row.display_start - timedelta(days=1),
    )


def gap_position(row: Row, axis: TimelineAxis) -> BarPosition | None:
    span = gap_range(row)
    if span is None:
        return None
    return position(span[0], span[1], axis)


def holiday_segments(
    holidays: Iterable[Holiday],
    axis: TimelineAxis,
    min_width: float = MIN_HOLIDAY_WIDTH,
) -> list[HolidaySegment]:
    """One overlay segment per holiday day that falls on the axis.

    Days outside the axis are dropped.  Each segment is at least *min_width*
    wide so a single day still shows at year zoom.
    """
    total = axis.total_days
    width = max(fraction(1, total), min_width)
    segments: list[HolidaySegment] = []
    for holiday in holidays:
        for day in holiday.days():
            if not axis.range.contains(day):
                continue
            segments.append(HolidaySegment(
                date=day,
                left_fraction=fraction((day - axis.range_start).days, total),
                width_fraction=width,
            ))
    return segments
