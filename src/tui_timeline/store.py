"""Project, task and capacity storage backed by a YAML file.

The chart never writes here itself; the app calls the update methods when a
drag is committed and then saves.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from tui_timeline.log import get_logger
from tui_timeline.models import (
    DEFAULT_PROJECT_COLOR,
    CapacitySettings,
    Holiday,
    ItemNotFoundError,
    ProjectItem,
    TaskItem,
    check_range,
    format_date,
    new_id,
    parse_date,
)

log = get_logger(__name__)

DATA_FILE = "timeline.yaml"


class StoreError(Exception):
    """The data file could not be read."""


def data_path(project_dir: Path) -> Path:
    return project_dir / DATA_FILE


class TimelineStore:
    """In-memory repository of projects, tasks and capacity settings."""

    def __init__(self, path: Path | None = None, settings: CapacitySettings | None = None) -> None:
        self.path = path
        self._projects: dict[str, ProjectItem] = {}
        self._tasks: dict[str, TaskItem] = {}
        self._settings = settings or CapacitySettings()
        self.modified = False

    # ── Projects ──

    def _project(self, project_id: str) -> ProjectItem:
        try:
            return self._projects[project_id]
        except KeyError:
            raise ItemNotFoundError("project", project_id) from None

    def _with_tasks(self, project: ProjectItem) -> ProjectItem:
        return replace(project, tasks=tuple(self.list_tasks(project.id)))

    def get_project(self, project_id: str) -> ProjectItem:
        return self._with_tasks(self._project(project_id))

    def list_projects(self, include_archived: bool = True) -> list[ProjectItem]:
        """Projects in insertion order, each carrying all of its tasks."""
        return [
            self._with_tasks(p)
            for p in self._projects.values()
            if include_archived or not p.archived
        ]

    def find_project(self, key: str) -> ProjectItem | None:
        """Look a project up by id, then by exact name."""
        if key in self._projects:
            return self.get_project(key)
        for project in self._projects.values():
            if project.label == key:
                return self._with_tasks(project)
        return None

    def create_project(
        self,
        name: str,
        start_date: str | date,
        end_date: str | date,
        color: str = DEFAULT_PROJECT_COLOR,
        notes: str = "",
        project_id: str | None = None,
    ) -> ProjectItem:
        project = ProjectItem(
            label=name,
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
            id=project_id or new_id(),
            color=color,
            notes=notes,
        )
        check_range(project.id, project.start_date, project.end_date)
        self._projects[project.id] = project
        self._touch("created project %s", project.id)
        return project

    def update_project_dates(
        self,
        project_id: str,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
    ) -> ProjectItem:
        project = self._project(project_id)
        updated = replace(
            project,
            start_date=parse_date(start_date) if start_date is not None else project.start_date,
            end_date=parse_date(end_date) if end_date is not None else project.end_date,
        )
        check_range(project_id, updated.start_date, updated.end_date)
        self._projects[project_id] = updated
        self._touch("project %s dates -> %s..%s", project_id, updated.start_date, updated.end_date)
        return self._with_tasks(updated)

    def toggle_project_archived(self, project_id: str) -> ProjectItem:
        project = self._project(project_id)
        updated = replace(project, archived=not project.archived)
        self._projects[project_id] = updated
        self._touch("project %s archived=%s", project_id, updated.archived)
        return self._with_tasks(updated)

    def delete_project(self, project_id: str) -> None:
        """Remove a project and all of its tasks."""
        self._project(project_id)
        del self._projects[project_id]
        for task_id in [t.id for t in self._tasks.values() if t.project_id == project_id]:
            del self._tasks[task_id]
        self._touch("deleted project %s", project_id)

    # ── Tasks ──

    def _task(self, task_id: str) -> TaskItem:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise ItemNotFoundError("task", task_id) from None

    def get_task(self, task_id: str) -> TaskItem:
        return self._task(task_id)

    def list_tasks(self, project_id: str) -> list[TaskItem]:
        return [t for t in self._tasks.values() if t.project_id == project_id]

    def create_task(
        self,
        project_id: str,
        name: str,
        start_date: str | date,
        end_date: str | date,
        gap_days: int = 0,
        task_id: str | None = None,
    ) -> TaskItem:
        self._project(project_id)
        task = TaskItem(
            label=name,
            project_id=project_id,
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
            id=task_id or new_id(),
            gap_days_before=max(0, int(gap_days)),
        )
        check_range(task.id, task.start_date, task.end_date)
        self._tasks[task.id] = task
        self._touch("created task %s in %s", task.id, project_id)
        return task

    def update_task_dates(
        self,
        task_id: str,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
    ) -> TaskItem:
        task = self._task(task_id)
        updated = replace(
            task,
            start_date=parse_date(start_date) if start_date is not None else task.start_date,
            end_date=parse_date(end_date) if end_date is not None else task.end_date,
        )
        check_range(task_id, updated.start_date, updated.end_date)
        self._tasks[task_id] = updated
        self._touch("task %s dates -> %s..%s", task_id, updated.start_date, updated.end_date)
        return updated

    def toggle_task_archived(self, task_id: str) -> TaskItem:
        task = self._task(task_id)
        updated = replace(task, archived=not task.archived)
        self._tasks[task_id] = updated
        self._touch("task %s archived=%s", task_id, updated.archived)
        return updated

    def delete_task(self, task_id: str) -> None:
        self._task(task_id)
        del self._tasks[task_id]
        self._touch("deleted task %s", task_id)

    # ── Settings ──

    def get_settings(self) -> CapacitySettings:
        return self._settings

    def get_holiday_settings(self) -> list[Holiday]:
        return list(self._settings.holidays)

    def update_settings(
        self,
        hours_per_day: int | None = None,
        days_per_week: int | None = None,
        holidays: list[Holiday] | None = None,
    ) -> CapacitySettings:
        if hours_per_day is not None:
            self._settings.hours_per_day = int(hours_per_day)
        if days_per_week is not None:
            self._settings.days_per_week = int(days_per_week)
        if holidays is not None:
            self._settings.holidays = list(holidays)
        self._touch("settings updated")
        return self._settings

    def add_holiday(self, start_date: str | date, end_date: str | date) -> Holiday:
        holiday = Holiday(start_date=parse_date(start_date), end_date=parse_date(end_date))
        check_range(holiday.id, holiday.start_date, holiday.end_date)
        self._settings.holidays.append(holiday)
        self._touch("added holiday %s..%s", holiday.start_date, holiday.end_date)
        return holiday

    def remove_holiday(self, holiday_id: str) -> None:
        remaining = [h for h in self._settings.holidays if h.id != holiday_id]
        if len(remaining) == len(self._settings.holidays):
            raise ItemNotFoundError("holiday", holiday_id)
        self._settings.holidays = remaining
        self._touch("removed holiday %s", holiday_id)

    # ── Persistence ──

    def _touch(self, msg: str, *args: Any) -> None:
        self.modified = True
        log.debug(msg, *args)

    def to_dict(self) -> dict[str, Any]:
        return {
            "projects": [
                {
                    "id": p.id,
                    "name": p.label,
                    "start_date": format_date(p.start_date),
                    "end_date": format_date(p.end_date),
                    "color": p.color,
                    "notes": p.notes,
                    "archived": p.archived,
                }
                for p in self._projects.values()
            ],
            "tasks": [
                {
                    "id": t.id,
                    "project_id": t.project_id,
                    "name": t.label,
                    "start_date": format_date(t.start_date),
                    "end_date": format_date(t.end_date),
                    "gap_days": t.gap_days_before,
                    "archived": t.archived,
                }
                for t in self._tasks.values()
            ],
            "settings": {
                "hours_per_day": self._settings.hours_per_day,
                "days_per_week": self._settings.days_per_week,
                "holidays": [
                    {
                        "id": h.id,
                        "start_date": format_date(h.start_date),
                        "end_date": format_date(h.end_date),
                    }
                    for h in self._settings.holidays
                ],
            },
        }

    def save(self, path: Path | None = None) -> None:
        """Write the store to its YAML file.

        The file is replaced atomically: the data goes to a temp file in the
        same directory, which is then renamed over the target.
        """
        target = path or self.path
        if target is None:
            return
        content = yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

        target_dir = target.parent
        target_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp", prefix=".tui-timeline-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, target)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        self.modified = False
        log.info("saved %d projects, %d tasks to %s", len(self._projects), len(self._tasks), target)


def _entries(data: dict, key: str) -> list[dict]:
    """The list under *key*, every item a mapping."""
    items = data.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"'{key}' must be a list, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, dict):
            raise ValueError(f"'{key}' entries must be mappings, got {item!r}")
    return items


def _whole_number(data: dict, key: str, default: int) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"'{key}' must be a whole number, got {value!r}")
    return int(value)


def _read_settings(data: dict, defaults: CapacitySettings) -> CapacitySettings:
    holidays = [
        Holiday(
            start_date=parse_date(h["start_date"]),
            end_date=parse_date(h["end_date"]),
            id=str(h.get("id") or new_id()),
        )
        for h in _entries(data, "holidays")
    ]
    for h in holidays:
        check_range(h.id, h.start_date, h.end_date)
    return CapacitySettings(
        hours_per_day=_whole_number(data, "hours_per_day", defaults.hours_per_day),
        days_per_week=_whole_number(data, "days_per_week", defaults.days_per_week),
        holidays=holidays if "holidays" in data else list(defaults.holidays),
    )


def store_from_dict(data: dict, path: Path | None = None, defaults: CapacitySettings | None = None) -> TimelineStore:
    """Build a store from the mapping produced by ``TimelineStore.to_dict``.

    Malformed entries raise ValueError, KeyError or InvalidRangeError.
    """
    defaults = defaults or CapacitySettings()
    settings_data = data.get("settings")
    settings = _read_settings(settings_data if isinstance(settings_data, dict) else {}, defaults)
    store = TimelineStore(path=path, settings=settings)

    for p in _entries(data, "projects"):
        project = store.create_project(
            name=str(p.get("name", "")),
            start_date=p["start_date"],
            end_date=p["end_date"],
            color=str(p.get("color") or DEFAULT_PROJECT_COLOR),
            notes=str(p.get("notes") or ""),
            project_id=str(p.get("id") or new_id()),
        )
        if p.get("archived"):
            store.toggle_project_archived(project.id)

    for t in _entries(data, "tasks"):
        task = store.create_task(
            project_id=str(t["project_id"]),
            name=str(t.get("name", "")),
            start_date=t["start_date"],
            end_date=t["end_date"],
            gap_days=_whole_number(t, "gap_days", 0),
            task_id=str(t.get("id") or new_id()),
        )
        if t.get("archived"):
            store.toggle_task_archived(task.id)

    store.modified = False
    return store


def load_store(project_dir: Path, defaults: CapacitySettings | None = None) -> TimelineStore:
    """Load ``timeline.yaml`` from *project_dir*; a missing file gives an empty store.

    Any file that cannot be turned into a store raises StoreError.
    """
    path = data_path(project_dir)
    if not path.exists():
        defaults = defaults or CapacitySettings()
        return TimelineStore(path=path, settings=replace(defaults, holidays=list(defaults.holidays)))
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError("expected a mapping at the top level")
        return store_from_dict(data, path=path, defaults=defaults)
    except (yaml.YAMLError, KeyError, ValueError, TypeError, AttributeError, OSError) as e:
        raise StoreError(f"{path}: {e}") from e
