"""Command Palette provider for TUI Timeline."""

from __future__ import annotations

from dataclasses import dataclass

from textual.command import Hit, Hits, Provider


@dataclass(frozen=True)
class CommandDef:
    """A single command entry for the palette."""

    display: str
    action: str
    help: str = ""
    category: str = ""
    demo: bool = True  # available in demo mode


COMMANDS: list[CommandDef] = [
    # -- File --
    CommandDef("Export Project", "export", "Export selected project as text (x)", "File", demo=False),
    CommandDef("Init Theme", "init_theme", "Copy default theme to project (.tui-timeline/theme.yaml)", "File", demo=False),
    CommandDef("Quit", "quit_app", "Quit application (q)", "File"),
    # -- Edit --
    CommandDef("New Project", "add_project", "Add a project starting today (N)", "Edit"),
    CommandDef("New Task", "add_task", "Add a task to the selected project (n)", "Edit"),
    CommandDef("Delete", "delete", "Delete the selected project or task (d)", "Edit"),
    CommandDef("Archive / Unarchive", "toggle_archived", "Toggle archived on the selected row (a)", "Edit"),
    # -- View --
    CommandDef("Fold/Unfold", "toggle_collapse", "Toggle tasks of the selected project (Space)", "View"),
    CommandDef("Details", "details", "Show details of the selected row (Enter)", "View"),
    CommandDef("Show/Hide Archived", "toggle_show_archived", "Toggle archived projects (A)", "View"),
    CommandDef("Help", "help", "Show keybindings (?)", "View"),
    # -- Zoom --
    CommandDef("Zoom: Day", "zoom('day')", "Day columns grouped by month (D)", "Zoom"),
    CommandDef("Zoom: Week", "zoom('week')", "Monday-to-Sunday weeks (W)", "Zoom"),
    CommandDef("Zoom: Month", "zoom('month')", "Calendar months (M)", "Zoom"),
    CommandDef("Zoom: Year", "zoom('year')", "Calendar years (Y)", "Zoom"),
]


class TimelineCommandProvider(Provider):
    """Textual Command Palette provider for TUI Timeline actions."""

    @property
    def _demo_mode(self) -> bool:
        return bool(getattr(self.app, "demo_mode", False))

    def _available(self) -> list[CommandDef]:
        demo = self._demo_mode
        return [cmd for cmd in COMMANDS if cmd.demo or not demo]

    async def discover(self) -> Hits:
        """Yield all commands available in the current mode."""
        for cmd in self._available():
            yield Hit(
                1.0,
                cmd.display,
                self._make_callback(cmd.action),
                help=cmd.help,
            )

    async def search(self, query: str) -> Hits:
        """Search commands with fuzzy matching."""
        query = query.lower()
        for cmd in self._available():
            searchable = f"{cmd.display} {cmd.help} {cmd.category}".lower()
            if self._fuzzy_match(query, searchable):
                yield Hit(
                    self._score(query, cmd.display.lower()),
                    cmd.display,
                    self._make_callback(cmd.action),
                    help=cmd.help,
                )

    def _make_callback(self, action: str):
        """Create a callback that runs the given action on the app."""
        async def callback() -> None:
            await self.app.run_action(action)
        return callback

    @staticmethod
    def _fuzzy_match(query: str, text: str) -> bool:
        """Check if all characters of query appear in order in text."""
        it = iter(text)
        return all(ch in it for ch in query)

    @staticmethod
    def _score(query: str, text: str) -> float:
        """Score a match: higher is better (closer to 1.0)."""
        if not query:
            return 0.5
        if text == query:
            return 1.0
        if text.startswith(query):
            return 0.9
        if query in text:
            return 0.8
        return 0.7
