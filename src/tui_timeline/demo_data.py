"""Sample data for --demo mode and ``tui-timeline init``.

Provides:
- build_demo_store()    → in-memory store, dates shifted so today is mid-plan
- build_sample_store()  → one starter project for a new folder
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

from tui_timeline.models import CapacitySettings, parse_date
from tui_timeline.store import TimelineStore

# Demo dates are written relative to this day; they are shifted so it lands on today.
DEMO_ANCHOR = date(2025, 2, 10)

_DEMO_PROJECTS = [
    ("demo-web", "Website Redesign", "2025-01-15", "2025-03-30", "#3b82f6",
     "Redesign the company website with modern UI/UX principles"),
    ("demo-app", "Mobile App Development", "2025-02-01", "2025-05-15", "#8b5cf6", ""),
]

_DEMO_TASKS = [
    ("demo-web", "Research & Planning", "2025-01-15", "2025-01-30", 0),
    ("demo-web", "Design Mockups", "2025-02-05", "2025-02-20", 5),
    ("demo-web", "Development", "2025-02-25", "2025-03-20", 3),
    ("demo-app", "Setup & Architecture", "2025-02-01", "2025-02-15", 0),
    ("demo-app", "Core Features", "2025-02-20", "2025-04-10", 3),
]

_DEMO_HOLIDAYS = [
    ("2025-02-17", "2025-02-17"),
    ("2025-04-18", "2025-04-21"),
]


def _shift(value: str, delta: timedelta) -> date:
    return parse_date(value) + delta


def build_demo_store(today: date | None = None) -> TimelineStore:
    """Two sample projects with tasks, gaps and holidays. Never saved."""
    delta = (today or date.today()) - DEMO_ANCHOR
    store = TimelineStore(path=None, settings=CapacitySettings())

    for project_id, name, start, end, color, notes in _DEMO_PROJECTS:
        store.create_project(
            name, _shift(start, delta), _shift(end, delta),
            color=color, notes=notes, project_id=project_id,
        )
    for project_id, name, start, end, gap in _DEMO_TASKS:
        store.create_task(project_id, name, _shift(start, delta), _shift(end, delta), gap_days=gap)
    for start, end in _DEMO_HOLIDAYS:
        store.add_holiday(_shift(start, delta), _shift(end, delta))

    store.modified = False
    return store


def build_sample_store(
    name: str = "My Project",
    today: date | None = None,
    path: Path | None = None,
) -> TimelineStore:
    """A starter project running 30 days from today with two tasks."""
    today = today or date.today()

    def d(offset: int) -> date:
        return today + timedelta(days=offset)

    store = TimelineStore(path=path, settings=CapacitySettings())
    project = store.create_project(name, d(0), d(30), notes="Project overview notes.")
    store.create_task(project.id, "Planning", d(0), d(6))
    store.create_task(project.id, "Implementation", d(9), d(30), gap_days=2)
    return store
