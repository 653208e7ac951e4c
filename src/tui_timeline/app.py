"""Main Textual App for TUI Timeline."""

from __future__ import annotations

import os
from datetime import date, timedelta
from pathlib import Path
from typing import Callable

from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Static

from tui_timeline import theme
from tui_timeline.commands import TimelineCommandProvider
from tui_timeline.config import (
    get_timeline_settings,
    load_config,
    load_settings,
    parse_zoom,
    save_config,
)
from tui_timeline.log import get_logger
from tui_timeline.models import (
    ZOOM_LABELS,
    InvalidRangeError,
    ItemKind,
    ItemNotFoundError,
    ProjectConfig,
    ProjectItem,
    Row,
    TaskItem,
    TimelineSettings,
    ZoomMode,
)
from tui_timeline.screens.confirm_screen import ConfirmScreen
from tui_timeline.screens.details_screen import DetailsScreen
from tui_timeline.screens.help_screen import HelpScreen
from tui_timeline.store import StoreError, TimelineStore, load_store
from tui_timeline.widgets.gantt_chart import GanttChart, GanttToolbar, GanttView

log = get_logger(__name__)

NEW_PROJECT_DAYS = 30
NEW_TASK_DAYS = 7


class TimelineApp(App):
    """TUI Timeline Application."""

    TITLE = "TUI Timeline"
    CSS = """
    #main-content {
        height: 1fr;
        border: round $surface-lighten-2;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    COMMANDS = App.COMMANDS | {TimelineCommandProvider}

    BINDINGS = [
        Binding("question_mark", "help", "Help"),
        Binding("q", "quit_app", "Quit"),
        Binding("space", "toggle_collapse", "Fold/Unfold", show=False),
        Binding("enter", "details", "Details"),
        Binding("j", "cursor_down", show=False),
        Binding("down", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
        Binding("up", "cursor_up", show=False),
        Binding("a", "toggle_archived", "Archive", show=False),
        Binding("A", "toggle_show_archived", "Show Archived", show=False),
        Binding("x", "export", "Export", show=False),
        Binding("n", "add_task", "New task", show=False),
        Binding("N", "add_project", "New project", show=False),
        Binding("d", "delete", "Delete", show=False),
        # Zoom
        Binding("D", "zoom('day')", show=False),
        Binding("W", "zoom('week')", show=False),
        Binding("M", "zoom('month')", show=False),
        Binding("Y", "zoom('year')", show=False),
    ]

    def __init__(
        self,
        project_dir: Path | None = None,
        no_color: bool = False,
        demo_mode: bool = False,
        today: date | None = None,
    ) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.project_dir = project_dir or Path.cwd()
        self.no_color = no_color
        self.demo_mode = demo_mode
        self.today = today or date.today()
        self.config: ProjectConfig = ProjectConfig()
        self.settings: TimelineSettings = TimelineSettings()
        self.store: TimelineStore = TimelineStore()
        self._read_only: bool = demo_mode

    def compose(self) -> ComposeResult:
        yield Header()
        yield GanttToolbar(id="timeline-toolbar")
        yield GanttChart(id="main-content")
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.set_timer(0.01, self._load_project)

    # ── Loading ──

    def _load_project(self) -> None:
        if self.demo_mode:
            from tui_timeline.demo_data import build_demo_store

            theme.load_theme()
            self.settings = get_timeline_settings(load_settings())
            self.store = build_demo_store(self.today)
            self.config = ProjectConfig(name="Demo")
        else:
            theme.load_theme(self.project_dir)
            self.settings = get_timeline_settings(load_settings(self.project_dir))
            self.config = load_config(self.project_dir)
            try:
                self.store = load_store(self.project_dir, self.settings.capacity)
            except StoreError as e:
                log.error("cannot load store: %s", e)
                self.notify(f"Cannot load data: {e}", severity="error", timeout=10)
                self.store = TimelineStore(path=None, settings=self.settings.capacity)
                self._read_only = True

        chart = self.query_one(GanttChart)
        chart.query_one(GanttView).drag.threshold = self.settings.drag_threshold
        chart.configure(
            label_width=self.config.view.label_width,
            holiday_min_width=self.settings.holiday_min_width,
        )
        chart.set_zoom(self.config.view.zoom)
        log.info("loaded %s (demo=%s)", self.project_dir, self.demo_mode)
        self._refresh_ui()

    # ── UI Refresh ──

    def _visible_projects(self):
        return self.store.list_projects(include_archived=self.config.view.show_archived)

    def _refresh_ui(self) -> None:
        try:
            chart = self.query_one(GanttChart)
            toolbar = self.query_one(GanttToolbar)
        except NoMatches:
            return
        chart.update_data(
            self._visible_projects(),
            collapsed=self.config.view.collapsed,
            holidays=self.store.get_holiday_settings(),
            today=self.today,
        )
        toolbar.update_toolbar(self.config.view.zoom, self.today, self.store.get_settings())
        self._update_title()
        self._update_status_bar()

    def _update_title(self) -> None:
        project_name = self.config.name or self.project_dir.name
        demo = " [DEMO]" if self.demo_mode else ""
        self.title = f"TUI Timeline - {project_name}{demo}"

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        parts: list[str] = []
        if self.demo_mode:
            color = theme.STATUSBAR_DEMO.dark
            parts.append(f"[bold {color}]DEMO[/bold {color}]")
        elif self._read_only:
            parts.append("[bold]READ-ONLY[/bold]")
        parts.append(f"Zoom: {ZOOM_LABELS[self.config.view.zoom]}")
        parts.append(f"{len(self._visible_projects())} project(s)")
        if self.config.view.show_archived:
            parts.append("showing archived")
        row = self._highlighted_row()
        if row is not None:
            parts.append(f"{escape(row.label)}: {row.start_date.isoformat()} → {row.end_date.isoformat()}")
        bar.update(" | ".join(parts))

    def _gantt_view(self) -> GanttView | None:
        try:
            return self.query_one(GanttView)
        except NoMatches:
            return None

    def _highlighted_row(self) -> Row | None:
        view = self._gantt_view()
        return view.highlighted_row if view else None

    # ── Persistence ──

    def _save(self) -> bool:
        """Write the store. On failure the error is shown and the data stays modified."""
        if self._read_only:
            return True
        try:
            self.store.save()
        except OSError as e:
            log.error("save failed: %s", e)
            self.notify(f"Save failed: {e}", severity="error", timeout=10)
            return False
        return True

    def _persist_config(self) -> None:
        if self._read_only:
            return
        try:
            save_config(self.project_dir, self.config)
        except OSError as e:
            log.error("cannot write config: %s", e)
            self.notify(f"Cannot write config: {e}", severity="error")

    def _commit(self, update: Callable[[], object]) -> object | None:
        """Apply one store mutation, then save and re-render."""
        result = None
        try:
            result = update()
        except (ItemNotFoundError, InvalidRangeError) as e:
            log.warning("update rejected: %s", e)
            self.notify(str(e), severity="error")
        else:
            self._save()
        self._refresh_ui()
        return result

    # ── Chart events ──

    def on_gantt_toolbar_zoom_changed(self, event: GanttToolbar.ZoomChanged) -> None:
        self._set_zoom(event.mode)

    def on_gantt_view_project_dates_changed(self, event: GanttView.ProjectDatesChanged) -> None:
        self._commit(lambda: self.store.update_project_dates(event.project_id, **event.changes))

    def on_gantt_view_task_dates_changed(self, event: GanttView.TaskDatesChanged) -> None:
        self._commit(lambda: self.store.update_task_dates(event.task_id, **event.changes))

    def on_gantt_view_row_clicked(self, event: GanttView.RowClicked) -> None:
        self._show_details(event.row)

    def on_gantt_view_collapse_toggled(self, event: GanttView.CollapseToggled) -> None:
        self._toggle_collapse(event.project_id)

    def on_gantt_view_row_highlighted(self, event: GanttView.RowHighlighted) -> None:
        self._update_status_bar()

    def on_app_blur(self, event: events.AppBlur) -> None:
        view = self._gantt_view()
        if view is not None:
            view.release_drag()

    # ── Actions ──

    def action_zoom(self, mode: str) -> None:
        self._set_zoom(parse_zoom(mode, self.config.view.zoom))

    def _set_zoom(self, mode: ZoomMode) -> None:
        self.config.view.zoom = mode
        try:
            self.query_one(GanttChart).set_zoom(mode)
        except NoMatches:
            return
        self._persist_config()
        self._refresh_ui()

    def action_cursor_down(self) -> None:
        view = self._gantt_view()
        if view is not None:
            view.move_highlight(1)

    def action_cursor_up(self) -> None:
        view = self._gantt_view()
        if view is not None:
            view.move_highlight(-1)

    def action_toggle_collapse(self) -> None:
        row = self._highlighted_row()
        if row is None:
            return
        project_id = row.id if row.is_project else row.project_id
        self._toggle_collapse(project_id)
        view = self._gantt_view()
        if view is not None:
            view.highlight_id(project_id, ItemKind.PROJECT)

    def _toggle_collapse(self, project_id: str) -> None:
        collapsed = self.config.view.collapsed
        if project_id in collapsed:
            collapsed.remove(project_id)
        else:
            collapsed.append(project_id)
        self._persist_config()
        self._refresh_ui()

    def action_details(self) -> None:
        row = self._highlighted_row()
        if row is not None:
            self._show_details(row)

    def _show_details(self, row: Row) -> None:
        try:
            if row.is_project:
                screen = DetailsScreen(self.store.get_project(row.id))
            else:
                task = self.store.get_task(row.id)
                screen = DetailsScreen(task, self.store.get_project(task.project_id))
        except ItemNotFoundError as e:
            self.notify(str(e), severity="error")
            return
        self.push_screen(screen)

    def action_toggle_archived(self) -> None:
        row = self._highlighted_row()
        if row is None:
            return
        if row.is_project:
            self._commit(lambda: self.store.toggle_project_archived(row.id))
        else:
            self._commit(lambda: self.store.toggle_task_archived(row.id))

    def action_toggle_show_archived(self) -> None:
        self.config.view.show_archived = not self.config.view.show_archived
        self._persist_config()
        self._refresh_ui()
        state = "shown" if self.config.view.show_archived else "hidden"
        self.notify(f"Archived projects {state}", severity="information")

    def action_export(self) -> None:
        from tui_timeline.export import export_project

        if self.demo_mode:
            self.notify("Demo mode: export disabled", severity="warning")
            return
        row = self._highlighted_row()
        if row is None:
            self.notify("Select a project to export", severity="warning")
            return
        try:
            project = self.store.get_project(row.id if row.is_project else row.project_id)
            path = export_project(project, self.project_dir)
        except ItemNotFoundError as e:
            self.notify(str(e), severity="error")
            return
        except OSError as e:
            log.error("export failed: %s", e)
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported to {path.name}", severity="information")

    def action_init_theme(self) -> None:
        if self.demo_mode:
            self.notify("Demo mode: init-theme disabled", severity="warning")
            return
        try:
            dest = theme.init_theme(self.project_dir)
        except FileExistsError:
            self.notify(".tui-timeline/theme.yaml already exists", severity="warning")
            return
        self.notify(f"Created {dest.name}", severity="information")

    def action_help(self) -> None:
        self.push_screen(HelpScreen(), callback=self._on_help_action)

    def _on_help_action(self, action: str | None) -> None:
        if action:
            self.call_later(self.run_action, action)

    def action_quit_app(self) -> None:
        if self._read_only or not self.store.modified or self._save():
            self.exit()
            return
        self.push_screen(
            ConfirmScreen("Changes could not be saved. Quit anyway?"),
            callback=self._on_quit_confirmed,
        )

    def _on_quit_confirmed(self, confirmed: bool | None) -> None:
        if confirmed:
            self.exit()

    # ── Add / delete ──

    def action_add_project(self) -> None:
        start = self.today
        project = self._commit(
            lambda: self.store.create_project("New Project", start, start + timedelta(days=NEW_PROJECT_DAYS - 1))
        )
        if isinstance(project, ProjectItem):
            self._highlight(project.id, ItemKind.PROJECT)
            self.notify("Added 'New Project'. Drag its edges to set the dates.", severity="information")

    def action_add_task(self) -> None:
        row = self._highlighted_row()
        if row is None:
            self.notify("Select a project to add a task to", severity="warning")
            return
        project_id = row.id if row.is_project else row.project_id
        try:
            project = self.store.get_project(project_id)
        except ItemNotFoundError as e:
            self.notify(str(e), severity="error")
            return
        start = project.start_date
        if project_id in self.config.view.collapsed:
            self.config.view.collapsed.remove(project_id)
            self._persist_config()
        task = self._commit(
            lambda: self.store.create_task(project_id, "New Task", start, start + timedelta(days=NEW_TASK_DAYS - 1))
        )
        if isinstance(task, TaskItem):
            self._highlight(task.id, ItemKind.TASK)

    def action_delete(self) -> None:
        row = self._highlighted_row()
        if row is None:
            return
        if row.is_project:
            count = len(self.store.list_tasks(row.id))
            msg = f"Delete project '{row.label}'"
            if count:
                msg += f" and its {count} task(s)"
            msg += "?"
        else:
            msg = f"Delete task '{row.label}'?"
        self.push_screen(
            ConfirmScreen(msg),
            callback=lambda confirmed: self._delete_row(row) if confirmed else None,
        )

    def _delete_row(self, row: Row) -> None:
        if row.is_project:
            self._commit(lambda: self.store.delete_project(row.id))
            if row.id in self.config.view.collapsed:
                self.config.view.collapsed.remove(row.id)
                self._persist_config()
        else:
            self._commit(lambda: self.store.delete_task(row.id))
        self.notify(f"Deleted '{row.label}'", severity="information")

    def _highlight(self, row_id: str, kind: ItemKind) -> None:
        view = self._gantt_view()
        if view is not None:
            view.highlight_id(row_id, kind)
            self._update_status_bar()
