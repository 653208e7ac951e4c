"""Flatten projects and their tasks into the rows of one render pass."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from tui_timeline.models import DatePreview, ItemKind, ProjectItem, Row, TaskItem


def _project_row(project: ProjectItem, collapsed: bool) -> Row:
    return Row(
        id=project.id,
        kind=ItemKind.PROJECT,
        label=project.label,
        start_date=project.start_date,
        end_date=project.end_date,
        display_start=project.start_date,
        display_end=project.end_date,
        color=project.color,
        has_children=bool(project.tasks),
        collapsed=collapsed,
    )


def _task_row(task: TaskItem, project: ProjectItem) -> Row:
    return Row(
        id=task.id,
        kind=ItemKind.TASK,
        label=task.label,
        start_date=task.start_date,
        end_date=task.end_date,
        display_start=task.start_date,
        display_end=task.end_date,
        color=project.color,
        project_id=project.id,
        gap_days=task.gap_days_before,
    )


def apply_preview(row: Row, preview: DatePreview | None) -> Row:
    """Return *row* showing the preview dates if the preview targets it."""
    if preview is None or not preview.matches(row):
        return row
    return replace(row, display_start=preview.start, display_end=preview.end)


def project_rows(
    projects: Iterable[ProjectItem],
    collapsed: set[str] | frozenset[str] = frozenset(),
    preview: DatePreview | None = None,
) -> list[Row]:
    """Project rows in input order, each followed by its visible task rows.

    Tasks of a collapsed project are left out entirely, so they do not widen
    the axis either.  Archived tasks are never emitted.
    """
    rows: list[Row] = []
    for project in projects:
        is_collapsed = project.id in collapsed
        rows.append(apply_preview(_project_row(project, is_collapsed), preview))
        if is_collapsed:
            continue
        for task in project.active_tasks:
            rows.append(apply_preview(_task_row(task, project), preview))
    return rows
