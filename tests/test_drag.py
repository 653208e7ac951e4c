"""Tests for the edge-drag state machine."""

from datetime import date

import pytest

from tui_timeline.drag import (
    DRAG_THRESHOLD,
    DragController,
    pointer_delta_days,
    resolve_dates,
)
from tui_timeline.models import DragSession, Edge, ItemKind, Row

# 100 units across a 100-day axis: one unit per day
WIDTH = 100
TOTAL = 100


def _row(kind: ItemKind = ItemKind.TASK, row_id: str = "t1") -> Row:
    return Row(
        id=row_id, kind=kind, label=row_id,
        start_date=date(2025, 3, 10), end_date=date(2025, 3, 20),
        display_start=date(2025, 3, 10), display_end=date(2025, 3, 20),
    )


class Recorder:
    def __init__(self):
        self.projects: list[tuple[str, dict]] = []
        self.tasks: list[tuple[str, dict]] = []
        self.clicks: list[Row] = []

    def controller(self, threshold: float = DRAG_THRESHOLD) -> DragController:
        return DragController(
            on_update_project=lambda i, c: self.projects.append((i, c)),
            on_update_task=lambda i, c: self.tasks.append((i, c)),
            on_row_click=self.clicks.append,
            threshold=threshold,
        )


@pytest.fixture
def rec():
    return Recorder()


class TestPointerDelta:
    def test_one_unit_per_day(self):
        assert pointer_delta_days(5, WIDTH, TOTAL) == 5
        assert pointer_delta_days(-5, WIDTH, TOTAL) == -5

    def test_rounds_half_up(self):
        assert pointer_delta_days(1, 4, 2) == 1  # 0.5 day
        assert pointer_delta_days(-1, 4, 2) == 0  # -0.5 day
        assert pointer_delta_days(1, 3, 1) == 0  # 0.33 day

    def test_degenerate_inputs(self):
        assert pointer_delta_days(10, 0, TOTAL) == 0
        assert pointer_delta_days(10, WIDTH, 0) == 0


class TestResolveDates:
    def _session(self, edge: Edge) -> DragSession:
        return DragSession(
            row_id="t1", kind=ItemKind.TASK, edge=edge, pointer_start_x=0,
            original_start=date(2025, 3, 10), original_end=date(2025, 3, 20),
        )

    def test_left_edge_moves_start_only(self):
        preview = resolve_dates(self._session(Edge.LEFT), -3)
        assert (preview.start, preview.end) == (date(2025, 3, 7), date(2025, 3, 20))

    def test_right_edge_moves_end_only(self):
        preview = resolve_dates(self._session(Edge.RIGHT), 4)
        assert (preview.start, preview.end) == (date(2025, 3, 10), date(2025, 3, 24))

    def test_left_edge_clamped_before_end(self):
        preview = resolve_dates(self._session(Edge.LEFT), 30)
        assert preview.start == date(2025, 3, 19)
        assert preview.start < preview.end

    def test_left_edge_to_exact_end_clamped(self):
        assert resolve_dates(self._session(Edge.LEFT), 10).start == date(2025, 3, 19)

    def test_right_edge_clamped_after_start(self):
        preview = resolve_dates(self._session(Edge.RIGHT), -30)
        assert preview.end == date(2025, 3, 11)
        assert preview.end > preview.start


class TestDragController:
    def test_idle_by_default(self, rec):
        drag = rec.controller()
        assert not drag.active
        assert drag.session is None
        assert drag.preview is None

    def test_begin_records_original_dates(self, rec):
        drag = rec.controller()
        session = drag.begin(_row(), Edge.LEFT, 10)
        assert drag.active
        assert session.original_start == date(2025, 3, 10)
        assert session.original_end == date(2025, 3, 20)
        assert session.edge is Edge.LEFT

    def test_second_begin_ignored(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.LEFT, 10)
        assert drag.begin(_row(row_id="t2"), Edge.RIGHT, 50) is None
        assert drag.session.row_id == "t1"

    def test_move_without_session_is_noop(self, rec):
        assert rec.controller().move(10, WIDTH, TOTAL) is None

    def test_move_updates_preview(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        preview = drag.move(25, WIDTH, TOTAL)
        assert preview.end == date(2025, 3, 25)
        assert drag.preview == preview

    def test_small_movement_is_a_click(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.move(22, WIDTH, TOTAL)
        drag.release()
        assert [r.id for r in rec.clicks] == ["t1"]
        assert rec.tasks == []
        assert rec.projects == []

    def test_threshold_movement_commits_once(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.move(23, WIDTH, TOTAL)
        drag.release()
        assert rec.tasks == [("t1", {"end_date": "2025-03-23"})]
        assert rec.clicks == []

    def test_left_edge_commits_start_date_only(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.LEFT, 20)
        drag.move(15, WIDTH, TOTAL)
        drag.release()
        assert rec.tasks == [("t1", {"start_date": "2025-03-05"})]

    def test_project_rows_use_project_callback(self, rec):
        drag = rec.controller()
        drag.begin(_row(ItemKind.PROJECT, "p1"), Edge.RIGHT, 0)
        drag.move(10, WIDTH, TOTAL)
        drag.release()
        assert rec.projects == [("p1", {"end_date": "2025-03-30"})]
        assert rec.tasks == []

    def test_travel_counts_furthest_point(self, rec):
        # Out and back to the start is still a drag
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.move(30, WIDTH, TOTAL)
        drag.move(20, WIDTH, TOTAL)
        drag.release()
        assert rec.tasks == [("t1", {"end_date": "2025-03-20"})]
        assert rec.clicks == []

    def test_release_clears_state(self, rec):
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.move(40, WIDTH, TOTAL)
        drag.release()
        assert not drag.active
        assert drag.preview is None
        assert not drag.dragged

    def test_release_when_idle_does_nothing(self, rec):
        drag = rec.controller()
        drag.release()
        assert rec.clicks == [] and rec.tasks == [] and rec.projects == []

    def test_custom_threshold(self, rec):
        drag = rec.controller(threshold=1)
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.move(21, WIDTH, TOTAL)
        drag.release()
        assert rec.tasks == [("t1", {"end_date": "2025-03-21"})]


class TestListenerScope:
    def test_capture_released_after_commit(self, rec):
        events = []

        def capture():
            events.append("capture")
            return lambda: events.append("release")

        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20, capture=capture)
        assert events == ["capture"]
        drag.move(30, WIDTH, TOTAL)
        drag.release()
        assert events == ["capture", "release"]

    def test_capture_released_after_click(self, rec):
        events = []
        drag = rec.controller()
        drag.begin(_row(), Edge.LEFT, 20, capture=lambda: (lambda: events.append("release")))
        drag.release()
        assert events == ["release"]
        assert len(rec.clicks) == 1

    def test_capture_released_when_callback_raises(self):
        events = []

        def boom(task_id, changes):
            raise RuntimeError("store down")

        drag = DragController(on_update_task=boom)
        drag.begin(_row(), Edge.RIGHT, 20, capture=lambda: (lambda: events.append("release")))
        drag.move(30, WIDTH, TOTAL)
        with pytest.raises(RuntimeError):
            drag.release()
        assert events == ["release"]
        assert not drag.active

    def test_ignored_begin_does_not_capture(self, rec):
        events = []
        drag = rec.controller()
        drag.begin(_row(), Edge.RIGHT, 20)
        drag.begin(_row(), Edge.RIGHT, 20, capture=lambda: events.append("capture") or (lambda: None))
        assert events == []

    def test_failed_capture_leaves_controller_idle(self, rec):
        def capture():
            raise RuntimeError("mouse unavailable")

        drag = rec.controller()
        with pytest.raises(RuntimeError):
            drag.begin(_row(), Edge.RIGHT, 20, capture=capture)
        assert not drag.active
        assert drag.session is None

        drag.begin(_row(), Edge.RIGHT, 20)
        assert drag.active
