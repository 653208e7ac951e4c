"""Read-only project / task details modal."""

from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from tui_timeline.export import _long_date, _plural, _short_date
from tui_timeline.models import ProjectItem, TaskItem


def project_lines(project: ProjectItem) -> list[str]:
    lines = [
        f"[bold]Status:[/bold] {'Archived' if project.archived else 'Active'}",
        f"[bold]Start:[/bold] {_long_date(project.start_date)}",
        f"[bold]End:[/bold] {_long_date(project.end_date)}",
        f"[bold]Duration:[/bold] {_plural(project.duration, 'day')}",
        "",
    ]
    if project.notes.strip():
        lines += ["[bold]Notes[/bold]", escape(project.notes), ""]
    lines.append(f"[bold]Tasks ({len(project.tasks)})[/bold]")
    if not project.tasks:
        lines.append("  [dim]No tasks[/dim]")
    for task in project.tasks:
        suffix = "  [dim](archived)[/dim]" if task.archived else ""
        lines.append(
            f"  • {escape(task.label)}  "
            f"{_short_date(task.start_date)} – {_short_date(task.end_date)}{suffix}"
        )
    return lines


def task_lines(task: TaskItem, project: ProjectItem | None = None) -> list[str]:
    lines = []
    if project is not None:
        lines.append(f"[bold]Project:[/bold] {escape(project.label)}")
    lines += [
        f"[bold]Status:[/bold] {'Archived' if task.archived else 'Active'}",
        f"[bold]Start:[/bold] {_long_date(task.start_date)}",
        f"[bold]End:[/bold] {_long_date(task.end_date)}",
        f"[bold]Duration:[/bold] {_plural(task.duration, 'day')}",
    ]
    if task.gap_days_before > 0:
        lines.append(f"[bold]Gap before:[/bold] {_plural(task.gap_days_before, 'day')}")
    return lines


class DetailsScreen(ModalScreen[None]):
    """Shows one project (with its tasks) or one task."""

    BINDINGS = [("escape", "dismiss", "Close")]

    DEFAULT_CSS = """
    DetailsScreen {
        align: center middle;
    }
    #details-container {
        width: 70;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #details-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self, item: ProjectItem | TaskItem, project: ProjectItem | None = None) -> None:
        super().__init__()
        self.item = item
        self.project = project

    def compose(self) -> ComposeResult:
        if isinstance(self.item, ProjectItem):
            title = f"Project: {escape(self.item.label)}"
            lines = project_lines(self.item)
        else:
            title = f"Task: {escape(self.item.label)}"
            lines = task_lines(self.item, self.project)
        with VerticalScroll(id="details-container"):
            yield Static(f"[bold]{title}[/bold]", id="details-title")
            yield Static("\n".join(lines), id="details-body")
