"""Gantt chart custom widget."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable

from textual import events
from textual.app import ComposeResult
from textual.containers import Container
from textual.css.query import NoMatches
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget

from rich.segment import Segment
from rich.style import Style
from rich.text import Text

from tui_timeline import theme
from tui_timeline.axis import TimelineAxis
from tui_timeline.drag import DragController
from tui_timeline.geometry import MIN_HOLIDAY_WIDTH, bar_position, gap_position
from tui_timeline.layout import TimelineLayout, build_layout
from tui_timeline.log import get_logger
from tui_timeline.models import (
    ZOOM_LABELS,
    CapacitySettings,
    Edge,
    HeaderBucket,
    Holiday,
    HolidaySegment,
    ItemKind,
    ProjectItem,
    Row,
    ZoomMode,
)

log = get_logger(__name__)

DEFAULT_LABEL_WIDTH = 28
SEPARATOR = "│"
LABEL_TITLE = "Project / Task"

BAR_CHARS = {True: "█", False: "▓"}  # keyed by Row.is_project
GAP_CHAR = "─"
MARKER_CHAR = "┊"
TODAY_CHAR = "│"
HANDLE_CHAR = "┃"

# Float slack so exact day boundaries land on their own column
_COL_EPSILON = 1e-9


# ── Column math ───────────────────────────────────────────────────

def frac_to_col(fraction: float, width: int) -> int:
    """Character column of an axis fraction on a *width*-cell chart."""
    return int(math.floor(fraction * width + _COL_EPSILON))


def span_cols(left: float, span: float, width: int) -> tuple[int, int]:
    """[start, end) columns of a fractional span; never narrower than one cell."""
    start = frac_to_col(left, width)
    end = frac_to_col(left + span, width)
    return start, max(end, start + 1)


def bucket_spans(buckets: Iterable[HeaderBucket], width: int) -> list[tuple[str, int, int]]:
    """(label, start_col, end_col) per bucket, tiling 0..width without gaps."""
    spans: list[tuple[str, int, int]] = []
    buckets = list(buckets)
    cum = 0.0
    col = 0
    for i, bucket in enumerate(buckets):
        cum += bucket.width_fraction
        end = width if i == len(buckets) - 1 else min(width, frac_to_col(cum, width))
        spans.append((bucket.label, col, max(col, end)))
        col = max(col, end)
    return spans


def marker_cols(markers: Iterable[float], width: int) -> set[int]:
    return {frac_to_col(m, width) for m in markers if 0.0 < m < 1.0}


def holiday_cols(segments: Iterable[HolidaySegment], width: int) -> set[int]:
    cols: set[int] = set()
    for seg in segments:
        start, end = span_cols(seg.left_fraction, seg.width_fraction, width)
        cols.update(range(max(0, start), min(width, end)))
    return cols


def today_col(axis: TimelineAxis, today: date, width: int) -> int | None:
    if not axis.range.contains(today):
        return None
    return frac_to_col(axis.offset_fraction(today), width)


def timeline_width(total_width: int, label_width: int) -> int:
    return max(1, total_width - label_width - len(SEPARATOR))


# ── Styles ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChartStyles:
    base: Style
    band: Style
    highlight: Style
    holiday: Style
    header: Style
    group_header: Style
    marker: Style
    today: Style
    gap: Style
    handle: Style
    label_project: Style
    label_task: Style


def build_styles(is_dark: bool = True) -> ChartStyles:
    """Resolve the current theme into rich styles."""
    return ChartStyles(
        base=Style(bgcolor=theme.GANTT_BASE_BG.resolve(is_dark)),
        band=Style(bgcolor=theme.GANTT_BAND_BG.resolve(is_dark)),
        highlight=Style(bgcolor=theme.GANTT_HIGHLIGHT_BG.resolve(is_dark)),
        holiday=Style(bgcolor=theme.GANTT_HOLIDAY_BG.resolve(is_dark)),
        header=Style(bold=True, color=theme.GANTT_HEADER.resolve(is_dark)),
        group_header=Style(bold=True, color=theme.GANTT_GROUP_HEADER.resolve(is_dark)),
        marker=Style(color=theme.GANTT_GRID_MARKER.resolve(is_dark)),
        today=Style(color=theme.GANTT_TODAY_MARKER.resolve(is_dark)),
        gap=Style(color=theme.GANTT_GAP.resolve(is_dark)),
        handle=Style(bold=True, color=theme.GANTT_DRAG_HANDLE.resolve(is_dark)),
        label_project=Style(bold=True, color=theme.LABEL_PROJECT.resolve(is_dark)),
        label_task=Style(color=theme.LABEL_TASK.resolve(is_dark)),
    )


# ── Pure renderers ────────────────────────────────────────────────

def row_label(row: Row, label_width: int) -> str:
    """Label column text: fold arrow for projects with tasks, indent for tasks."""
    if row.is_project:
        arrow = ("▸ " if row.collapsed else "▾ ") if row.has_children else "  "
        text = arrow + row.label
    else:
        text = "    " + row.label
    if len(text) > label_width:
        text = text[: max(0, label_width - 1)] + "…"
    return text.ljust(label_width)


def _label_segments(text: str, style: Style, label_width: int, bg: Style) -> list[Segment]:
    return [
        Segment(text[:label_width].ljust(label_width), style + bg),
        Segment(SEPARATOR, bg),
    ]


def render_bucket_line(
    buckets: Iterable[HeaderBucket],
    total_width: int,
    label_width: int,
    styles: ChartStyles,
    title: str = LABEL_TITLE,
    header_style: Style | None = None,
) -> Strip:
    """One header row: bucket labels centred in their spans, alternating bands."""
    width = timeline_width(total_width, label_width)
    style = header_style or styles.header
    segments = _label_segments(" " + title, style, label_width, styles.base)
    for i, (label, start, end) in enumerate(bucket_spans(buckets, width)):
        span = end - start
        if span <= 0:
            continue
        bg = styles.band if i % 2 == 1 else styles.base
        segments.append(Segment(label[:span].center(span), style + bg))
    return Strip(segments)


def render_group_line(
    axis: TimelineAxis,
    total_width: int,
    label_width: int,
    styles: ChartStyles,
) -> Strip:
    """Top header row: month groups in day mode, otherwise the axis range."""
    if axis.group_buckets:
        return render_bucket_line(
            axis.group_buckets, total_width, label_width, styles,
            title="", header_style=styles.group_header,
        )
    width = timeline_width(total_width, label_width)
    span = f"{axis.range_start.isoformat()} → {axis.range_end.isoformat()}"
    segments = _label_segments("", styles.group_header, label_width, styles.base)
    segments.append(Segment(span[:width].ljust(width), styles.group_header + styles.base))
    return Strip(segments)


def render_row_line(
    row: Row,
    layout: TimelineLayout,
    total_width: int,
    label_width: int,
    styles: ChartStyles,
    highlighted: bool = False,
    dragging: bool = False,
) -> Strip:
    """Label, separator and timeline cells for one row."""
    width = timeline_width(total_width, label_width)
    axis = layout.axis
    base = styles.highlight if highlighted else styles.base
    label_style = styles.label_project if row.is_project else styles.label_task
    segments = _label_segments(row_label(row, label_width), label_style, label_width, base)

    bar = bar_position(row, axis)
    bar_start, bar_end = span_cols(bar.left_fraction, bar.width_fraction, width)
    gap = gap_position(row, axis)
    gap_start, gap_end = span_cols(gap.left_fraction, gap.width_fraction, width) if gap else (0, 0)
    holidays = holiday_cols(layout.holidays, width)
    markers = marker_cols(axis.markers, width)
    now_col = today_col(axis, layout.today, width)
    show_handles = (highlighted or dragging) and bar_end - bar_start >= 2

    bar_style = Style(color=row.color)
    handle_style = styles.handle + Style(bgcolor=row.color)
    bar_char = BAR_CHARS[row.is_project]

    for c in range(width):
        bg = styles.holiday if c in holidays else base
        if bar_start <= c < bar_end:
            if show_handles and c in (bar_start, bar_end - 1):
                segments.append(Segment(HANDLE_CHAR, handle_style))
            else:
                segments.append(Segment(bar_char, bar_style + bg))
        elif gap_start <= c < gap_end:
            segments.append(Segment(GAP_CHAR, styles.gap + bg))
        elif c == now_col:
            segments.append(Segment(TODAY_CHAR, styles.today + bg))
        elif c in markers:
            segments.append(Segment(MARKER_CHAR, styles.marker + bg))
        else:
            segments.append(Segment(" ", bg))
    return Strip(segments)


def render_timeline(
    layout: TimelineLayout,
    total_width: int,
    label_width: int = DEFAULT_LABEL_WIDTH,
    styles: ChartStyles | None = None,
    highlighted_row: int = -1,
) -> list[Strip]:
    """The whole chart (two header rows, then one line per row)."""
    styles = styles or build_styles()
    lines = [
        render_group_line(layout.axis, total_width, label_width, styles),
        render_bucket_line(layout.axis.buckets, total_width, label_width, styles),
    ]
    for i, row in enumerate(layout.rows):
        lines.append(render_row_line(
            row, layout, total_width, label_width, styles, highlighted=(i == highlighted_row),
        ))
    return lines


def edge_at(row: Row, axis: TimelineAxis, x: int, width: int) -> Edge | None:
    """Which resize handle of *row*'s bar sits at timeline column *x*, if any."""
    bar = bar_position(row, axis)
    start, end = span_cols(bar.left_fraction, bar.width_fraction, width)
    if end - start == 1:
        return Edge.RIGHT if x == start else None
    if x == start:
        return Edge.LEFT
    if x == end - 1:
        return Edge.RIGHT
    return None


def on_bar(row: Row, axis: TimelineAxis, x: int, width: int) -> bool:
    bar = bar_position(row, axis)
    start, end = span_cols(bar.left_fraction, bar.width_fraction, width)
    return start <= x < end


# ── Widgets ───────────────────────────────────────────────────────

class _ThemedMixin:
    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark  # type: ignore[attr-defined]
        except Exception:
            return True


class GanttToolbar(_ThemedMixin, Widget):
    """1-line toolbar showing today's date, zoom buttons and capacity."""

    class ZoomChanged(Message):
        def __init__(self, mode: ZoomMode) -> None:
            super().__init__()
            self.mode = mode

    DEFAULT_CSS = """
    GanttToolbar {
        height: 1;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._mode: ZoomMode = ZoomMode.MONTH
        self._today: date = date.today()
        self._capacity: CapacitySettings = CapacitySettings()
        self._button_regions: list[tuple[int, int, ZoomMode]] = []

    def update_toolbar(
        self,
        mode: ZoomMode,
        today: date | None = None,
        capacity: CapacitySettings | None = None,
    ) -> None:
        self._mode = mode
        if today is not None:
            self._today = today
        if capacity is not None:
            self._capacity = capacity
        self.refresh()

    def render(self) -> Text:
        dark = self._is_dark
        text = Text()
        text.append(f"Today: {self._today.isoformat()}", Style(bold=True, color=theme.GANTT_TODAY_MARKER.resolve(dark)))

        self._button_regions = []
        text.append("  │ ", Style(dim=True))
        modes = list(ZoomMode)
        for i, mode in enumerate(modes):
            label = ZOOM_LABELS[mode]
            start = len(text)
            if mode is self._mode:
                text.append(f" {label} ", Style(bold=True, reverse=True))
            else:
                text.append(f" {label} ", Style(dim=True))
            self._button_regions.append((start, len(text), mode))
            if i < len(modes) - 1:
                text.append("│", Style(dim=True))

        text.append("  │ ", Style(dim=True))
        text.append(f"Capacity: {self._capacity.summary}", Style(dim=True))
        return text

    def on_click(self, event: events.Click) -> None:
        for start, end, mode in self._button_regions:
            if start <= event.x < end:
                if mode is not self._mode:
                    self.post_message(self.ZoomChanged(mode))
                return


class GanttHeader(_ThemedMixin, Widget):
    """Fixed two-line header: group labels and bucket labels."""

    DEFAULT_CSS = """
    GanttHeader {
        height: 2;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._layout: TimelineLayout | None = None
        self._label_width: int = DEFAULT_LABEL_WIDTH

    def update_header(self, layout: TimelineLayout, label_width: int) -> None:
        self._layout = layout
        self._label_width = label_width
        self.refresh()

    def render_line(self, y: int) -> Strip:
        if self._layout is None:
            return Strip.blank(self.size.width)
        styles = build_styles(self._is_dark)
        if y == 0:
            return render_group_line(self._layout.axis, self.size.width, self._label_width, styles)
        if y == 1:
            return render_bucket_line(self._layout.axis.buckets, self.size.width, self._label_width, styles)
        return Strip.blank(self.size.width)


class GanttView(_ThemedMixin, ScrollView):
    """Renders one line per row and handles bar-edge dragging."""

    class ProjectDatesChanged(Message):
        """A drag on a project bar was committed."""

        def __init__(self, project_id: str, changes: dict[str, str]) -> None:
            super().__init__()
            self.project_id = project_id
            self.changes = changes

    class TaskDatesChanged(Message):
        """A drag on a task bar was committed."""

        def __init__(self, task_id: str, changes: dict[str, str]) -> None:
            super().__init__()
            self.task_id = task_id
            self.changes = changes

    class RowClicked(Message):
        def __init__(self, row: Row) -> None:
            super().__init__()
            self.row = row

    class CollapseToggled(Message):
        def __init__(self, project_id: str) -> None:
            super().__init__()
            self.project_id = project_id

    class RowHighlighted(Message):
        def __init__(self, row: Row | None) -> None:
            super().__init__()
            self.row = row

    can_focus = False

    DEFAULT_CSS = """
    GanttView {
        height: 1fr;
        background: $background;
        overflow-y: auto;
        overflow-x: hidden;
    }
    """

    def __init__(self, drag_threshold: float = 1.0, **kwargs) -> None:
        super().__init__(**kwargs)
        self._projects: list[ProjectItem] = []
        self._mode: ZoomMode = ZoomMode.MONTH
        self._collapsed: frozenset[str] = frozenset()
        self._holidays: list[Holiday] = []
        self._today: date = date.today()
        self._label_width: int = DEFAULT_LABEL_WIDTH
        self._holiday_min_width: float = MIN_HOLIDAY_WIDTH
        self._layout: TimelineLayout = build_layout([], self._mode, today=self._today)
        self._highlighted_row: int = -1
        self._suppress_click: bool = False
        self.drag = DragController(
            on_update_project=self._post_project_update,
            on_update_task=self._post_task_update,
            on_row_click=self._post_row_click,
            threshold=drag_threshold,
        )

    @property
    def layout(self) -> TimelineLayout:
        return self._layout

    @property
    def label_width(self) -> int:
        return self._label_width

    @property
    def highlighted_row(self) -> Row | None:
        if 0 <= self._highlighted_row < len(self._layout.rows):
            return self._layout.rows[self._highlighted_row]
        return None

    def update_timeline(
        self,
        projects: list[ProjectItem],
        mode: ZoomMode,
        collapsed: Iterable[str] = (),
        holidays: Iterable[Holiday] = (),
        today: date | None = None,
        label_width: int = DEFAULT_LABEL_WIDTH,
        holiday_min_width: float = MIN_HOLIDAY_WIDTH,
    ) -> None:
        self._projects = list(projects)
        self._mode = mode
        self._collapsed = frozenset(collapsed)
        self._holidays = list(holidays)
        if today is not None:
            self._today = today
        self._label_width = label_width
        self._holiday_min_width = holiday_min_width
        self._rebuild()

    def _rebuild(self) -> None:
        """Recompute the layout from the current inputs and the live preview."""
        highlighted = self.highlighted_row
        self._layout = build_layout(
            self._projects,
            self._mode,
            collapsed=self._collapsed,
            holidays=self._holidays,
            preview=self.drag.preview,
            today=self._today,
            holiday_min_width=self._holiday_min_width,
        )
        if highlighted is not None:
            self._highlighted_row = self._layout.row_index(highlighted.id, highlighted.kind)
        if self._highlighted_row >= len(self._layout.rows):
            self._highlighted_row = len(self._layout.rows) - 1
        self.virtual_size = Size(self.size.width, len(self._layout.rows))
        self.refresh()

    def move_highlight(self, delta: int) -> Row | None:
        rows = self._layout.rows
        if not rows:
            return None
        if self._highlighted_row < 0:
            self._highlighted_row = 0
        else:
            self._highlighted_row = max(0, min(len(rows) - 1, self._highlighted_row + delta))
        # Keep the highlighted row on screen
        if self._highlighted_row < self.scroll_y:
            self.scroll_to(y=self._highlighted_row, animate=False)
        elif self.size.height and self._highlighted_row >= self.scroll_y + self.size.height:
            self.scroll_to(y=self._highlighted_row - self.size.height + 1, animate=False)
        self.refresh()
        row = self.highlighted_row
        self.post_message(self.RowHighlighted(row))
        return row

    def highlight_id(self, row_id: str, kind: ItemKind | None = None) -> None:
        self._highlighted_row = self._layout.row_index(row_id, kind)
        self.refresh()

    # ── Rendering ──

    def render_line(self, y: int) -> Strip:
        width = self.size.width
        virtual_y = y + int(self.scroll_y)
        rows = self._layout.rows

        if not rows:
            if y == 0:
                text = Text("  No projects yet. Add a project to see the timeline.", style="dim")
                return Strip(text.render(self.app.console))
            return Strip.blank(width)

        if virtual_y < 0 or virtual_y >= len(rows):
            return Strip.blank(width)

        row = rows[virtual_y]
        session = self.drag.session
        return render_row_line(
            row,
            self._layout,
            width,
            self._label_width,
            build_styles(self._is_dark),
            highlighted=(virtual_y == self._highlighted_row),
            dragging=session is not None and session.row_id == row.id and session.kind is row.kind,
        )

    # ── Pointer handling ──

    def _timeline_x(self, x: int) -> int:
        return x - self._label_width - len(SEPARATOR)

    def _row_at(self, y: int) -> tuple[int, Row] | None:
        index = y + int(self.scroll_y)
        if 0 <= index < len(self._layout.rows):
            return index, self._layout.rows[index]
        return None

    def _capture_pointer(self) -> Callable[[], None]:
        """Route all mouse events here until the gesture ends."""
        self.capture_mouse()
        return self.release_mouse

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button != 1 or self.drag.active:
            return
        # Each press starts a fresh gesture
        self._suppress_click = False
        hit = self._row_at(event.y)
        if hit is None:
            return
        index, row = hit
        self._highlighted_row = index
        self.post_message(self.RowHighlighted(row))

        if event.x < self._label_width:
            if row.is_project and row.has_children and event.x < 2:
                self.post_message(self.CollapseToggled(row.id))
            self._suppress_click = True
            self.refresh()
            return

        width = timeline_width(self.size.width, self._label_width)
        tx = self._timeline_x(event.x)
        edge = edge_at(row, self._layout.axis, tx, width)
        if edge is not None:
            self.drag.begin(row, edge, tx, capture=self._capture_pointer)
            self._suppress_click = True
            event.stop()
        self.refresh()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if not self.drag.active:
            return
        width = timeline_width(self.size.width, self._label_width)
        self.drag.move(self._timeline_x(event.x), width, self._layout.axis.total_days)
        self._rebuild()
        event.stop()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if not self.drag.active:
            return
        self.drag.release()
        self._rebuild()
        event.stop()

    def on_mouse_release(self, event: events.MouseRelease) -> None:
        """Capture lost mid-gesture: settle it with the preview we have."""
        self.release_drag()

    def release_drag(self) -> None:
        if self.drag.active:
            log.debug("pointer capture lost; releasing drag")
            self.drag.release()
            self._rebuild()

    def on_click(self, event: events.Click) -> None:
        if self._suppress_click:
            self._suppress_click = False
            return
        hit = self._row_at(event.y)
        if hit is None:
            return
        _, row = hit
        width = timeline_width(self.size.width, self._label_width)
        if on_bar(row, self._layout.axis, self._timeline_x(event.x), width):
            self.post_message(self.RowClicked(row))

    # ── Drag callbacks ──

    def _post_project_update(self, project_id: str, changes: dict[str, str]) -> None:
        self.post_message(self.ProjectDatesChanged(project_id, changes))

    def _post_task_update(self, task_id: str, changes: dict[str, str]) -> None:
        self.post_message(self.TaskDatesChanged(task_id, changes))

    def _post_row_click(self, row: Row) -> None:
        self.post_message(self.RowClicked(row))


class GanttChart(Container):
    """Gantt chart: fixed header above the scrolling bar view."""

    DEFAULT_CSS = """
    GanttChart {
        width: 1fr;
        height: 1fr;
    }
    GanttChart #gantt-header {
        height: 2;
    }
    GanttChart #gantt-view {
        height: 1fr;
    }
    """

    def __init__(self, drag_threshold: float = 1.0, **kwargs) -> None:
        super().__init__(**kwargs)
        self._drag_threshold = drag_threshold
        self._projects: list[ProjectItem] = []
        self._mode: ZoomMode = ZoomMode.MONTH
        self._collapsed: set[str] = set()
        self._holidays: list[Holiday] = []
        self._today: date = date.today()
        self._label_width: int = DEFAULT_LABEL_WIDTH
        self._holiday_min_width: float = MIN_HOLIDAY_WIDTH

    def compose(self) -> ComposeResult:
        yield GanttHeader(id="gantt-header")
        yield GanttView(drag_threshold=self._drag_threshold, id="gantt-view")

    def on_mount(self) -> None:
        self._push_to_view()

    @property
    def mode(self) -> ZoomMode:
        return self._mode

    def update_data(
        self,
        projects: list[ProjectItem],
        collapsed: Iterable[str] = (),
        holidays: Iterable[Holiday] = (),
        today: date | None = None,
    ) -> None:
        self._projects = list(projects)
        self._collapsed = set(collapsed)
        self._holidays = list(holidays)
        if today is not None:
            self._today = today
        self._push_to_view()

    def configure(self, label_width: int | None = None, holiday_min_width: float | None = None) -> None:
        if label_width is not None:
            self._label_width = label_width
        if holiday_min_width is not None:
            self._holiday_min_width = holiday_min_width
        self._push_to_view()

    def set_zoom(self, mode: ZoomMode) -> None:
        self._mode = mode
        self._push_to_view()

    def _push_to_view(self) -> None:
        """Push current inputs to the GanttView, then its axis to the header."""
        try:
            view = self.query_one("#gantt-view", GanttView)
            header = self.query_one("#gantt-header", GanttHeader)
        except NoMatches:
            return
        view.update_timeline(
            self._projects,
            self._mode,
            collapsed=self._collapsed,
            holidays=self._holidays,
            today=self._today,
            label_width=self._label_width,
            holiday_min_width=self._holiday_min_width,
        )
        header.update_header(view.layout, self._label_width)
