"""CLI entry point using Click."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import click

from tui_timeline.log import configure_logging

JSON_EXPORT_FILE = "timeline_export.json"

LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False)


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-timeline` routes to run

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


def _project_dir(path: str) -> Path:
    project_dir = Path(path).resolve()
    if project_dir.exists() and not project_dir.is_dir():
        click.echo(f"Error: '{project_dir}' is not a directory.", err=True)
        raise SystemExit(1)
    return project_dir


def _fail(message: str) -> NoReturn:
    click.echo(message, err=True)
    raise SystemExit(1)


def _save_store(store) -> None:
    try:
        store.save()
    except OSError as e:
        _fail(f"Cannot write {store.path}: {e}")


def _open_store(project_dir: Path):
    from tui_timeline.config import get_timeline_settings, load_settings
    from tui_timeline.store import StoreError, load_store

    settings = get_timeline_settings(load_settings(project_dir))
    try:
        return load_store(project_dir, settings.capacity)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("--demo", is_flag=True, help="Launch with sample data (nothing is saved)")
@click.option("--log-level", type=LOG_LEVELS, default="WARNING", show_default=True, help="Log level")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write logs to this file")
@click.version_option(package_name="tui-timeline")
@click.pass_context
def main(ctx, no_color: bool, demo: bool, log_level: str, log_file: str | None) -> None:
    """TUI Timeline - terminal Gantt timeline for projects and tasks."""
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    ctx.obj["demo"] = demo
    configure_logging(log_level, Path(log_file) if log_file else None)


@main.command()
@click.argument("path", default=".", type=click.Path())
@click.pass_context
def run(ctx, path: str) -> None:
    """Open the timeline stored in PATH/timeline.yaml."""
    from tui_timeline.app import TimelineApp

    no_color = ctx.obj["no_color"]
    if ctx.obj["demo"]:
        app = TimelineApp(no_color=no_color, demo_mode=True)
    else:
        project_dir = _project_dir(path)
        if not project_dir.exists():
            if click.confirm(f"'{project_dir}' does not exist. Create it?"):
                project_dir.mkdir(parents=True, exist_ok=True)
                click.echo(f"Created {project_dir}")
            else:
                raise SystemExit(0)
        app = TimelineApp(project_dir=project_dir, no_color=no_color)
    app.run()


@main.command("init")
@click.argument("path", default=".", type=click.Path())
@click.option("--name", prompt="Project name", default="My Project", help="Name of the first project")
def init_cmd(path: str, name: str) -> None:
    """Initialize a new timeline (config.toml + sample timeline.yaml)."""
    from tui_timeline.config import save_config
    from tui_timeline.demo_data import build_sample_store
    from tui_timeline.models import ProjectConfig
    from tui_timeline.store import data_path

    project_dir = _project_dir(path)
    target = data_path(project_dir)
    if target.exists():
        click.echo(f"Timeline already exists: {target}", err=True)
        raise SystemExit(1)

    project_dir.mkdir(parents=True, exist_ok=True)
    save_config(project_dir, ProjectConfig(name=name))
    click.echo(f"Created {project_dir / '.tui-timeline' / 'config.toml'}")

    build_sample_store(name, path=target).save()
    click.echo(f"Created {target}")

    click.echo(f"\nTimeline initialized at {project_dir}")
    click.echo("Run 'tui-timeline' to open it.")


@main.command("export")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--project", "project_key", default=None, help="Project id or name")
@click.option("--json", "as_json", is_flag=True, help="Dump every project, task and setting as JSON")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Output file")
def export_cmd(path: str, project_key: str | None, as_json: bool, output: str | None) -> None:
    """Write the text report of one project, or a JSON dump of everything."""
    from tui_timeline.export import export_filename, export_json, export_project_text

    project_dir = _project_dir(path)
    store = _open_store(project_dir)

    if as_json:
        output_path = Path(output) if output else project_dir / JSON_EXPORT_FILE
        export_json(store, output_path)
        click.echo(f"Exported {len(store.list_projects())} project(s) to {output_path}")
        return

    if project_key is None:
        _fail("Use --project NAME_OR_ID, or --json for everything.")
    project = store.find_project(project_key)
    if project is None:
        _fail(f"No project matches '{project_key}'")

    output_path = Path(output) if output else project_dir / export_filename(project.label)
    output_path.write_text(export_project_text(project), encoding="utf-8")
    click.echo(f"Exported {project.label} to {output_path}")


@main.command("show")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--zoom", type=click.Choice(["day", "week", "month", "year"]), default=None,
    help="Zoom mode (defaults to the saved view)",
)
@click.option("--width", type=int, default=None, help="Chart width in columns")
@click.option("--archived", is_flag=True, help="Include archived projects")
@click.pass_context
def show_cmd(ctx, path: str, zoom: str | None, width: int | None, archived: bool) -> None:
    """Print the timeline to the terminal without starting the TUI."""
    from rich.console import Console
    from rich.segment import Segments

    from tui_timeline import theme
    from tui_timeline.config import load_config, parse_zoom
    from tui_timeline.layout import build_layout
    from tui_timeline.widgets.gantt_chart import build_styles, render_timeline

    project_dir = _project_dir(path)
    theme.load_theme(project_dir)
    config = load_config(project_dir)
    store = _open_store(project_dir)

    console = Console(no_color=ctx.obj["no_color"])
    layout = build_layout(
        store.list_projects(include_archived=archived or config.view.show_archived),
        parse_zoom(zoom, config.view.zoom),
        collapsed=frozenset(config.view.collapsed),
        holidays=store.get_holiday_settings(),
    )
    for strip in render_timeline(layout, width or console.width, config.view.label_width, build_styles()):
        console.print(Segments(list(strip)), soft_wrap=True)


@main.command("init-theme")
@click.argument("path", default=".", type=click.Path())
def init_theme_cmd(path: str) -> None:
    """Copy default theme to .tui-timeline/theme.yaml for customization."""
    from tui_timeline.theme import init_theme

    project_dir = _project_dir(path)
    project_dir.mkdir(parents=True, exist_ok=True)
    try:
        dest = init_theme(project_dir)
    except FileExistsError as e:
        click.echo(f"Already exists: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Created {dest}")


# ── Editing ──

@main.command("add-project")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--name", required=True, help="Project name")
@click.option("--start", "start_date", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, help="End date (YYYY-MM-DD)")
@click.option("--color", default=None, help="Bar colour, e.g. #3b82f6")
@click.option("--notes", default="", help="Free-form notes")
def add_project_cmd(path: str, name: str, start_date: str, end_date: str, color: str | None, notes: str) -> None:
    """Add a project to the timeline."""
    from tui_timeline.models import DEFAULT_PROJECT_COLOR

    project_dir = _project_dir(path)
    store = _open_store(project_dir)
    try:
        project = store.create_project(name, start_date, end_date, color=color or DEFAULT_PROJECT_COLOR, notes=notes)
    except ValueError as e:
        _fail(f"Error: {e}")
    _save_store(store)
    click.echo(f"Added project {project.label} ({project.id})")


@main.command("add-task")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--project", "project_key", required=True, help="Project id or name")
@click.option("--name", required=True, help="Task name")
@click.option("--start", "start_date", required=True, help="Start date (YYYY-MM-DD)")
@click.option("--end", "end_date", required=True, help="End date (YYYY-MM-DD)")
@click.option("--gap", "gap_days", type=click.IntRange(min=0), default=0, help="Idle days before the task")
def add_task_cmd(path: str, project_key: str, name: str, start_date: str, end_date: str, gap_days: int) -> None:
    """Add a task to a project."""
    project_dir = _project_dir(path)
    store = _open_store(project_dir)
    project = store.find_project(project_key)
    if project is None:
        _fail(f"No project matches '{project_key}'")
    try:
        task = store.create_task(project.id, name, start_date, end_date, gap_days=gap_days)
    except ValueError as e:
        _fail(f"Error: {e}")
    _save_store(store)
    click.echo(f"Added task {task.label} ({task.id}) to {project.label}")


@main.command("delete-project")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("project_key")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def delete_project_cmd(path: str, project_key: str, yes: bool) -> None:
    """Delete a project and all of its tasks."""
    project_dir = _project_dir(path)
    store = _open_store(project_dir)
    project = store.find_project(project_key)
    if project is None:
        _fail(f"No project matches '{project_key}'")
    if not yes and not click.confirm(f"Delete '{project.label}' and {len(project.tasks)} task(s)?"):
        raise SystemExit(0)
    store.delete_project(project.id)
    _save_store(store)
    click.echo(f"Deleted project {project.label}")


@main.command("delete-task")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("task_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def delete_task_cmd(path: str, task_id: str, yes: bool) -> None:
    """Delete one task by id."""
    from tui_timeline.models import ItemNotFoundError

    project_dir = _project_dir(path)
    store = _open_store(project_dir)
    try:
        task = store.get_task(task_id)
    except ItemNotFoundError as e:
        _fail(str(e))
    if not yes and not click.confirm(f"Delete task '{task.label}'?"):
        raise SystemExit(0)
    store.delete_task(task.id)
    _save_store(store)
    click.echo(f"Deleted task {task.label}")


# ── Capacity ──

@main.group("holiday")
def holiday_group() -> None:
    """List, add or remove holidays."""


@holiday_group.command("list")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
def holiday_list_cmd(path: str) -> None:
    """Print every holiday with its id."""
    store = _open_store(_project_dir(path))
    holidays = store.get_holiday_settings()
    if not holidays:
        click.echo("No holidays.")
    for h in holidays:
        span = h.start_date.isoformat()
        if h.end_date != h.start_date:
            span += f" → {h.end_date.isoformat()}"
        click.echo(f"{h.id}  {span}")


@holiday_group.command("add")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("start_date")
@click.argument("end_date", required=False)
def holiday_add_cmd(path: str, start_date: str, end_date: str | None) -> None:
    """Add a holiday from START_DATE to END_DATE (a single day when omitted)."""
    store = _open_store(_project_dir(path))
    try:
        holiday = store.add_holiday(start_date, end_date or start_date)
    except ValueError as e:
        _fail(f"Error: {e}")
    _save_store(store)
    click.echo(f"Added holiday {holiday.id}")


@holiday_group.command("remove")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("holiday_id")
def holiday_remove_cmd(path: str, holiday_id: str) -> None:
    """Remove a holiday by id (see `holiday list`)."""
    from tui_timeline.models import ItemNotFoundError

    store = _open_store(_project_dir(path))
    try:
        store.remove_holiday(holiday_id)
    except ItemNotFoundError as e:
        _fail(str(e))
    _save_store(store)
    click.echo(f"Removed holiday {holiday_id}")


@main.command("settings")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--hours-per-day", type=click.IntRange(1, 24), default=None, help="Working hours per day")
@click.option("--days-per-week", type=click.IntRange(1, 7), default=None, help="Working days per week")
def settings_cmd(path: str, hours_per_day: int | None, days_per_week: int | None) -> None:
    """Show the capacity settings, updating them when options are given."""
    store = _open_store(_project_dir(path))
    if hours_per_day is not None or days_per_week is not None:
        store.update_settings(hours_per_day=hours_per_day, days_per_week=days_per_week)
        _save_store(store)
    settings = store.get_settings()
    click.echo(f"Capacity: {settings.summary}")
    click.echo(f"Holidays: {len(settings.holidays)}")
