"""Export projects as a plain-text report or a JSON dump."""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from pathlib import Path

from tui_timeline.models import ProjectItem, duration_days
from tui_timeline.store import TimelineStore

RULE = "=" * 50
THIN_RULE = "-" * 50


def _long_date(d: date) -> str:
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def _short_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def _timestamp(dt: datetime) -> str:
    return f"{_long_date(dt.date())} at {dt.strftime('%I:%M %p')}"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def export_project_text(project: ProjectItem, now: datetime | None = None) -> str:
    """Render the PROJECT EXPORT report for one project and all of its tasks."""
    now = now or datetime.now()
    lines: list[str] = ["PROJECT EXPORT", RULE, ""]

    lines.append(f"Project Title: {project.label}")
    lines.append(f"Status: {'Archived' if project.archived else 'Active'}")
    lines.append("")

    lines.append("Timeline:")
    lines.append(f"  Start Date: {_long_date(project.start_date)}")
    lines.append(f"  End Date: {_long_date(project.end_date)}")
    lines.append("")

    if project.notes.strip():
        lines.append("Notes:")
        lines.append(project.notes)
        lines.append("")

    lines.append(f"Tasks ({len(project.tasks)}):")
    lines.append(THIN_RULE)

    if not project.tasks:
        lines.append("  No tasks")
    for index, task in enumerate(project.tasks, start=1):
        lines.append("")
        lines.append(f"{index}. {task.label}")
        lines.append(f"   Start: {_short_date(task.start_date)}")
        lines.append(f"   End: {_short_date(task.end_date)}")
        lines.append(f"   Duration: {_plural(duration_days(task.start_date, task.end_date), 'day')}")
        if task.gap_days_before > 0:
            lines.append(f"   Gap Before Task: {_plural(task.gap_days_before, 'day')}")
        if task.archived:
            lines.append("   Status: Archived")

    lines.append("")
    lines.append(RULE)
    lines.append(f"Exported on: {_timestamp(now)}")
    return "\n".join(lines) + "\n"


def export_filename(project_name: str) -> str:
    """'Q1 Launch!' -> 'Q1_Launch__export.txt'."""
    return re.sub(r"[^a-z0-9]", "_", project_name, flags=re.IGNORECASE) + "_export.txt"


def export_project(project: ProjectItem, output_dir: Path, now: datetime | None = None) -> Path:
    """Write the text report into *output_dir* and return its path."""
    output_path = output_dir / export_filename(project.label)
    output_path.write_text(export_project_text(project, now), encoding="utf-8")
    return output_path


def export_json(store: TimelineStore, output_path: Path) -> None:
    """Export every project, task and setting to a JSON file."""
    output_path.write_text(
        json.dumps(store.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
