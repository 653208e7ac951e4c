"""TUI Timeline - terminal Gantt timeline for projects and tasks."""

__version__ = "0.1.0"
