"""Time-axis partitioning for the Gantt chart.

Given the projected rows and a zoom mode, ``build_axis`` finds the visible
date window, splits it into header buckets (one row, plus a month grouping
row in day mode) and places sub-grid markers.  Every width and position is a
fraction of the axis, so the renderer can map it onto any column count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Iterable

from tui_timeline.models import (
    AxisRange,
    HeaderBucket,
    Row,
    ZoomMode,
    check_range,
    end_of_month,
    end_of_week,
    end_of_year,
    next_month,
    start_of_month,
    start_of_week,
    start_of_year,
)

EMPTY_WINDOW_DAYS = 90

# Look-ahead added past the latest row end, before snapping.
LOOKAHEAD_DAYS: dict[ZoomMode, int] = {
    ZoomMode.DAY: 7,
    ZoomMode.WEEK: 14,
    ZoomMode.MONTH: 30,
    ZoomMode.YEAR: 365,
}

_SNAP: dict[ZoomMode, tuple[Callable[[date], date], Callable[[date], date]]] = {
    ZoomMode.DAY: (lambda d: d, lambda d: d),
    ZoomMode.WEEK: (start_of_week, end_of_week),
    ZoomMode.MONTH: (start_of_month, end_of_month),
    ZoomMode.YEAR: (start_of_year, end_of_year),
}


@dataclass(frozen=True)
class TimelineAxis:
    """The shared axis for one render pass."""

    mode: ZoomMode
    range: AxisRange
    buckets: tuple[HeaderBucket, ...] = ()
    group_buckets: tuple[HeaderBucket, ...] = ()
    markers: tuple[float, ...] = field(default=())

    @property
    def range_start(self) -> date:
        return self.range.range_start

    @property
    def range_end(self) -> date:
        return self.range.range_end

    @property
    def total_days(self) -> int:
        return self.range.total_days

    def offset_fraction(self, d: date) -> float:
        return fraction((d - self.range_start).days, self.total_days)


def fraction(days: int, total_days: int) -> float:
    """days / total_days, with a degenerate axis counting as one full unit."""
    if total_days <= 0:
        return 1.0
    return days / total_days


def _day_label(d: date) -> str:
    return str(d.day)


def _week_label(d: date) -> str:
    return f"Week {d.isocalendar()[1]}"


def _month_label(d: date) -> str:
    return d.strftime("%b %Y")


def _year_label(d: date) -> str:
    return d.strftime("%Y")


def _group_label(d: date) -> str:
    return d.strftime("%B")


def _walk_units(start: date, end: date, step: Callable[[date], date]) -> Iterable[tuple[date, date]]:
    """Yield (unit_start, unit_end) pairs covering start..end, clipped to both ends."""
    cur = start
    while cur <= end:
        nxt = step(cur)
        yield cur, min(nxt - timedelta(days=1), end)
        cur = nxt


def _next_day(d: date) -> date:
    return d + timedelta(days=1)


def _next_week(d: date) -> date:
    return start_of_week(d) + timedelta(days=7)


def _next_year(d: date) -> date:
    return date(d.year + 1, 1, 1)


_BUCKET_UNITS: dict[ZoomMode, tuple[Callable[[date], date], Callable[[date], str]]] = {
    ZoomMode.DAY: (_next_day, _day_label),
    ZoomMode.WEEK: (_next_week, _week_label),
    ZoomMode.MONTH: (next_month, _month_label),
    ZoomMode.YEAR: (_next_year, _year_label),
}

_MARKER_UNITS: dict[ZoomMode, Callable[[date], date]] = {
    ZoomMode.DAY: _next_day,
    ZoomMode.WEEK: _next_week,
    ZoomMode.MONTH: _next_week,
    ZoomMode.YEAR: next_month,
}


def _buckets(
    axis: AxisRange,
    step: Callable[[date], date],
    label: Callable[[date], str],
) -> tuple[HeaderBucket, ...]:
    total = axis.total_days
    return tuple(
        HeaderBucket(
            label=label(start),
            width_fraction=fraction((end - start).days + 1, total),
            start=start,
            end=end,
        )
        for start, end in _walk_units(axis.range_start, axis.range_end, step)
    )


def _markers(axis: AxisRange, step: Callable[[date], date]) -> tuple[float, ...]:
    """Unit boundaries inside the axis, as fractions in [0, 1)."""
    total = axis.total_days
    return tuple(
        fraction((start - axis.range_start).days, total)
        for start, _ in _walk_units(axis.range_start, axis.range_end, step)
        if _is_unit_start(start, step)
    )


def _is_unit_start(d: date, step: Callable[[date], date]) -> bool:
    if step is _next_week:
        return d.weekday() == 0
    if step is next_month:
        return d.day == 1
    return True


def axis_range(rows: Iterable[Row], mode: ZoomMode, today: date | None = None) -> AxisRange:
    """Visible window: the rows' span plus look-ahead, snapped to calendar units."""
    rows = list(rows)
    if not rows:
        start = start_of_month(today or date.today())
        return AxisRange(start, start + timedelta(days=EMPTY_WINDOW_DAYS - 1))

    for row in rows:
        check_range(row.id, row.start_date, row.end_date)
    lo = min(row.start_date for row in rows)
    hi = max(row.end_date for row in rows)

    snap_start, snap_end = _SNAP[mode]
    return AxisRange(
        snap_start(lo),
        snap_end(hi + timedelta(days=LOOKAHEAD_DAYS[mode])),
    )


def build_axis(rows: Iterable[Row], mode: ZoomMode, today: date | None = None) -> TimelineAxis:
    """Compute the axis, header buckets and sub-grid markers for *rows*.

    The window comes from each row's own dates, not its drag preview, so the
    axis stays still while a bar is being resized.
    """
    rng = axis_range(rows, mode, today)

    if rng.total_days <= 0:
        whole = HeaderBucket(_group_label(rng.range_start), 1.0, rng.range_start, rng.range_end)
        return TimelineAxis(mode=mode, range=rng, buckets=(whole,), markers=(0.0,))

    step, label = _BUCKET_UNITS[mode]
    buckets = _buckets(rng, step, label)

    group_buckets: tuple[HeaderBucket, ...] = ()
    if mode is ZoomMode.DAY:
        group_buckets = _buckets(rng, next_month, _group_label)

    markers = _markers(rng, _MARKER_UNITS[mode])

    return TimelineAxis(
        mode=mode,
        range=rng,
        buckets=buckets,
        group_buckets=group_buckets,
        markers=markers,
    )
