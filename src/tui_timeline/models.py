"""Data models for TUI Timeline."""

from __future__ import annotations

import calendar
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum


DEFAULT_PROJECT_COLOR = "#3b82f6"
DATE_FORMAT = "%Y-%m-%d"


class ZoomMode(Enum):
    """Timeline zoom granularity."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class ItemKind(Enum):
    """Tag for the two kinds of timeline items."""

    PROJECT = "project"
    TASK = "task"


class Edge(Enum):
    """Bar edge grabbed by a resize gesture."""

    LEFT = "left"
    RIGHT = "right"


ZOOM_LABELS = {
    ZoomMode.DAY: "D",
    ZoomMode.WEEK: "W",
    ZoomMode.MONTH: "M",
    ZoomMode.YEAR: "Y",
}


class InvalidRangeError(ValueError):
    """Raised when an item ends before it starts."""

    def __init__(self, item_id: str, start: date, end: date) -> None:
        super().__init__(f"{item_id}: end {end.isoformat()} is before start {start.isoformat()}")
        self.item_id = item_id
        self.start = start
        self.end = end


class ItemNotFoundError(KeyError):
    """Raised by the store for an unknown project, task or holiday id."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        return self.args[0]


def new_id() -> str:
    return str(uuid.uuid4())


def parse_date(value: str | date) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string. Dates pass through unchanged."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def check_range(item_id: str, start: date, end: date) -> None:
    """Raise InvalidRangeError unless start <= end."""
    if end < start:
        raise InvalidRangeError(item_id, start, end)


def duration_days(start: date, end: date) -> int:
    """Inclusive day count: a same-day item lasts 1 day."""
    return (end - start).days + 1


# ── Calendar snapping ─────────────────────────────────────────────

def start_of_week(d: date) -> date:
    """Monday of d's week."""
    return d - timedelta(days=d.weekday())


def end_of_week(d: date) -> date:
    """Sunday of d's (Monday-start) week."""
    return d + timedelta(days=6 - d.weekday())


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def end_of_month(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def start_of_year(d: date) -> date:
    return date(d.year, 1, 1)


def end_of_year(d: date) -> date:
    return date(d.year, 12, 31)


def next_month(d: date) -> date:
    """First day of the month after d."""
    return end_of_month(d) + timedelta(days=1)


# ── Items ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TaskItem:
    """A task bar. Belongs to exactly one project."""

    label: str
    project_id: str
    start_date: date
    end_date: date
    id: str = field(default_factory=new_id)
    gap_days_before: int = 0  # idle days right before start_date
    archived: bool = False

    @property
    def duration(self) -> int:
        return duration_days(self.start_date, self.end_date)


@dataclass(frozen=True)
class ProjectItem:
    """A project bar and its tasks. Immutable; use dataclasses.replace() to edit."""

    label: str
    start_date: date
    end_date: date
    id: str = field(default_factory=new_id)
    color: str = DEFAULT_PROJECT_COLOR
    notes: str = ""
    archived: bool = False
    tasks: tuple[TaskItem, ...] = ()

    @property
    def duration(self) -> int:
        return duration_days(self.start_date, self.end_date)

    @property
    def active_tasks(self) -> list[TaskItem]:
        return [t for t in self.tasks if not t.archived]


@dataclass(frozen=True)
class Holiday:
    """An inclusive range of non-working days."""

    start_date: date
    end_date: date
    id: str = field(default_factory=new_id)

    def days(self) -> list[date]:
        return [
            self.start_date + timedelta(days=i)
            for i in range(duration_days(self.start_date, self.end_date))
        ]


@dataclass
class CapacitySettings:
    """Global working capacity."""

    hours_per_day: int = 8
    days_per_week: int = 5
    holidays: list[Holiday] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return f"{self.hours_per_day} hrs/day • {self.days_per_week} days/week"


# ── Render-pass values ────────────────────────────────────────────

@dataclass(frozen=True)
class Row:
    """One projected timeline entry for a single render pass."""

    id: str
    kind: ItemKind
    label: str
    start_date: date
    end_date: date
    display_start: date
    display_end: date
    color: str = DEFAULT_PROJECT_COLOR
    project_id: str = ""
    gap_days: int = 0
    has_children: bool = False
    collapsed: bool = False

    @property
    def is_project(self) -> bool:
        return self.kind is ItemKind.PROJECT


@dataclass(frozen=True)
class AxisRange:
    """Visible window, both ends inclusive."""

    range_start: date
    range_end: date

    @property
    def total_days(self) -> int:
        return duration_days(self.range_start, self.range_end)

    def contains(self, d: date) -> bool:
        return self.range_start <= d <= self.range_end


@dataclass(frozen=True)
class HeaderBucket:
    label: str
    width_fraction: float
    start: date
    end: date


@dataclass(frozen=True)
class HolidaySegment:
    date: date
    left_fraction: float
    width_fraction: float


@dataclass(frozen=True)
class BarPosition:
    left_fraction: float
    width_fraction: float


@dataclass(frozen=True)
class DragSession:
    """An in-progress edge drag. Exists only between pointer down and up."""

    row_id: str
    kind: ItemKind
    edge: Edge
    pointer_start_x: float
    original_start: date
    original_end: date


@dataclass(frozen=True)
class DatePreview:
    """Live dates shown for the dragged row."""

    row_id: str
    kind: ItemKind
    start: date
    end: date

    def matches(self, row: Row) -> bool:
        return self.row_id == row.id and self.kind is row.kind


# ── Configuration ─────────────────────────────────────────────────

@dataclass
class ViewConfig:
    """Chart view state stored in .tui-timeline/config.toml."""

    zoom: ZoomMode = ZoomMode.MONTH
    collapsed: list[str] = field(default_factory=list)
    label_width: int = 28
    show_archived: bool = False


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    name: str = ""
    view: ViewConfig = field(default_factory=ViewConfig)


@dataclass
class TimelineSettings:
    """Chart tuning read from default_settings.yaml (+ project override)."""

    capacity: CapacitySettings = field(default_factory=CapacitySettings)
    holiday_min_width: float = 0.003
    drag_threshold: float = 1.0
