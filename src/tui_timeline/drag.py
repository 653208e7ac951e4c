"""Edge-drag resizing of timeline bars.

A gesture runs Idle -> Dragging -> Idle.  ``begin`` opens a session when the
pointer goes down on a bar edge, ``move`` turns pointer travel into a whole-day
delta and a live ``DatePreview``, and ``release`` either commits the new date
through the update callback for the row's kind or, when the pointer barely
moved, reports a plain click on the row.  Nothing is written to the store
while the gesture is in progress.
"""

from __future__ import annotations

import math
from contextlib import ExitStack
from datetime import timedelta
from typing import Callable

from tui_timeline.log import get_logger
from tui_timeline.models import (
    DatePreview,
    DragSession,
    Edge,
    ItemKind,
    Row,
    format_date,
)

log = get_logger(__name__)

DRAG_THRESHOLD = 3.0

DateUpdate = Callable[[str, dict[str, str]], None]
RowCallback = Callable[[Row], None]
# Registers the gesture's move/release listeners; returns their remover.
CaptureFn = Callable[[], Callable[[], None]]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def pointer_delta_days(dx: float, axis_pixel_width: float, total_days: int) -> int:
    """Whole days covered by dx pointer units on an axis this wide."""
    if axis_pixel_width <= 0 or total_days <= 0:
        return 0
    return _round_half_up(dx / axis_pixel_width * total_days)


def resolve_dates(session: DragSession, delta_days: int) -> DatePreview:
    """Move the grabbed edge by delta_days, keeping start strictly before end."""
    start, end = session.original_start, session.original_end
    one_day = timedelta(days=1)
    if session.edge is Edge.LEFT:
        start = session.original_start + timedelta(days=delta_days)
        if start >= session.original_end:
            start = session.original_end - one_day
    else:
        end = session.original_end + timedelta(days=delta_days)
        if end <= session.original_start:
            end = session.original_start + one_day
    return DatePreview(row_id=session.row_id, kind=session.kind, start=start, end=end)


class DragController:
    """Owns the single drag session and its preview."""

    def __init__(
        self,
        on_update_project: DateUpdate | None = None,
        on_update_task: DateUpdate | None = None,
        on_row_click: RowCallback | None = None,
        threshold: float = DRAG_THRESHOLD,
    ) -> None:
        self.on_update_project = on_update_project
        self.on_update_task = on_update_task
        self.on_row_click = on_row_click
        self.threshold = threshold
        self._session: DragSession | None = None
        self._row: Row | None = None
        self._preview: DatePreview | None = None
        self._travel: float = 0.0
        self._listeners = ExitStack()

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def preview(self) -> DatePreview | None:
        return self._preview

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def dragged(self) -> bool:
        """True once the pointer has travelled at least the threshold."""
        return self._travel >= self.threshold

    def begin(
        self,
        row: Row,
        edge: Edge,
        pointer_x: float,
        capture: CaptureFn | None = None,
    ) -> DragSession | None:
        """Start a gesture on *row*'s *edge*. Ignored while another is live."""
        if self._session is not None:
            log.debug("drag already active on %s; ignoring %s", self._session.row_id, row.id)
            return None
        release_capture = capture() if capture is not None else None
        self._session = DragSession(
            row_id=row.id,
            kind=row.kind,
            edge=edge,
            pointer_start_x=pointer_x,
            original_start=row.start_date,
            original_end=row.end_date,
        )
        self._row = row
        self._preview = None
        self._travel = 0.0
        if release_capture is not None:
            self._listeners.callback(release_capture)
        log.debug("drag begin %s %s edge at x=%s", row.kind.value, row.id, pointer_x)
        return self._session

    def move(self, pointer_x: float, axis_pixel_width: float, total_days: int) -> DatePreview | None:
        session = self._session
        if session is None:
            return None
        dx = pointer_x - session.pointer_start_x
        self._travel = max(self._travel, abs(dx))
        delta = pointer_delta_days(dx, axis_pixel_width, total_days)
        self._preview = resolve_dates(session, delta)
        return self._preview

    def release(self) -> None:
        """End the gesture: commit the preview, or report a click.

        Also used when pointer capture is lost mid-gesture.  The listeners
        registered by ``begin`` are removed on every path out of here.
        """
        session, row, preview = self._session, self._row, self._preview
        dragged = self.dragged
        listeners = self._listeners
        self._session = None
        self._row = None
        self._preview = None
        self._travel = 0.0
        self._listeners = ExitStack()

        with listeners:
            if session is None or row is None:
                return
            if dragged and preview is not None:
                self._commit(session, preview)
            elif self.on_row_click is not None:
                self.on_row_click(row)

    def _commit(self, session: DragSession, preview: DatePreview) -> None:
        if session.edge is Edge.LEFT:
            changes = {"start_date": format_date(preview.start)}
        else:
            changes = {"end_date": format_date(preview.end)}
        callback = self.on_update_project if session.kind is ItemKind.PROJECT else self.on_update_task
        log.info("drag commit %s %s %s", session.kind.value, session.row_id, changes)
        if callback is not None:
            callback(session.row_id, changes)
