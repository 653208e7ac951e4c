"""Help modal screen showing keybindings."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option


HELP_ITEMS: list[tuple[str, str, str]] = [
    # (key_display, description, action_name_or_empty)
    ("↑ / k", "Previous row", "cursor_up"),
    ("↓ / j", "Next row", "cursor_down"),
    ("Space", "Fold/unfold project", "toggle_collapse"),
    ("Enter", "Project / task details", "details"),
    ("a", "Archive / unarchive", "toggle_archived"),
    ("n", "New task in selected project", "add_task"),
    ("N", "New project", "add_project"),
    ("d", "Delete selected row", "delete"),
    ("A", "Show / hide archived projects", "toggle_show_archived"),
    ("x", "Export selected project", "export"),
    ("D/W/M/Y", "Zoom: day / week / month / year", ""),
    ("Drag edge", "Resize a bar (left = start, right = end)", ""),
    ("Click bar", "Open details", ""),
    ("?", "This help", ""),
    ("Esc", "Close modal", ""),
    ("q", "Quit", "quit_app"),
    ("--demo", "Launch demo mode (tui-timeline --demo)", ""),
    ("Cmd Palette", "Init theme (copy default to project)", "init_theme"),
]


class HelpScreen(ModalScreen[str]):
    """Modal screen showing keybindings as a selectable list."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("question_mark", "close", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-container {
        width: 72;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #help-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #help-list {
        height: auto;
        max-height: 100%;
    }
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-container"):
            yield Static(
                "[bold]Keybindings[/bold]  (Enter to execute)", id="help-title"
            )
            ol = OptionList(id="help-list")
            for key_display, desc, action in HELP_ITEMS:
                label = f"  {key_display:<14} {desc}"
                ol.add_option(Option(label, id=action if action else None))
            yield ol

    def on_mount(self) -> None:
        self.query_one("#help-list", OptionList).focus()

    def on_option_list_option_selected(
        self, event: OptionList.OptionSelected
    ) -> None:
        self.dismiss(event.option.id or "")

    def action_close(self) -> None:
        self.dismiss("")
