"""Project configuration (tomlkit) and settings (YAML) management."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
import yaml

from tui_timeline.log import get_logger
from tui_timeline.models import (
    CapacitySettings,
    ProjectConfig,
    TimelineSettings,
    ViewConfig,
    ZoomMode,
)

log = get_logger(__name__)

CONFIG_DIR = ".tui-timeline"
CONFIG_FILE = "config.toml"
SETTINGS_FILE = "settings.yaml"


def _get_config_path(project_dir: Path) -> Path:
    return project_dir / CONFIG_DIR / CONFIG_FILE


def parse_zoom(value: Any, default: ZoomMode = ZoomMode.MONTH) -> ZoomMode:
    if isinstance(value, ZoomMode):
        return value
    try:
        return ZoomMode(str(value))
    except ValueError:
        return default


def load_config(project_dir: Path) -> ProjectConfig:
    """Load project configuration from .tui-timeline/config.toml."""
    config_path = _get_config_path(project_dir)
    config = ProjectConfig()

    if not config_path.exists():
        return config

    try:
        doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        log.warning("ignoring unreadable config %s: %s", config_path, e)
        return config

    project_section = doc.get("project", {})
    config.name = str(project_section.get("name", ""))

    view_section = doc.get("view", {})
    if isinstance(view_section, dict):
        config.view = _parse_view(view_section)

    return config


def _parse_view(data: dict) -> ViewConfig:
    view = ViewConfig(zoom=parse_zoom(data.get("zoom", "month")))

    collapsed = data.get("collapsed")
    if isinstance(collapsed, list):
        view.collapsed = [str(c) for c in collapsed]

    try:
        view.label_width = max(8, int(data.get("label_width", view.label_width)))
    except (TypeError, ValueError):
        log.warning("invalid label_width %r; using %d", data.get("label_width"), view.label_width)

    view.show_archived = bool(data.get("show_archived", False))
    return view


def save_config(project_dir: Path, config: ProjectConfig) -> None:
    """Save project configuration to .tui-timeline/config.toml."""
    config_path = _get_config_path(project_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    doc = tomlkit.document()

    project_table = tomlkit.table()
    project_table.add("name", config.name)
    doc.add("project", project_table)

    view_table = tomlkit.table()
    view_table.add("zoom", config.view.zoom.value)
    view_table.add("collapsed", list(config.view.collapsed))
    view_table.add("label_width", config.view.label_width)
    view_table.add("show_archived", config.view.show_archived)
    doc.add("view", view_table)

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")


# ── Settings (YAML) ─────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return a dict (empty dict on error)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        log.warning("ignoring unreadable settings %s: %s", path, e)
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (returns a new dict)."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val  # lists are replaced, not appended
    return result


def load_settings(project_dir: Path | None = None) -> dict[str, Any]:
    """Load settings from default_settings.yaml + optional project override.

    1. Load ``default_settings.yaml`` bundled with the package.
    2. If *project_dir* is given and ``{project_dir}/.tui-timeline/settings.yaml``
       exists, deep-merge it on top of the defaults.
    3. Return the merged dict.
    """
    default_path = Path(__file__).parent / "default_settings.yaml"
    data = _load_yaml(default_path)

    if project_dir is not None:
        override_path = project_dir / CONFIG_DIR / SETTINGS_FILE
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    return data


def _number(section: dict, key: str, default: float, cast: type = float) -> Any:
    try:
        return cast(section.get(key, default))
    except (TypeError, ValueError):
        log.warning("invalid setting %s=%r; using %r", key, section.get(key), default)
        return default


def get_timeline_settings(settings: dict[str, Any]) -> TimelineSettings:
    """Typed view of the merged settings dict."""
    capacity = settings.get("capacity", {})
    timeline = settings.get("timeline", {})
    if not isinstance(capacity, dict):
        capacity = {}
    if not isinstance(timeline, dict):
        timeline = {}

    defaults = TimelineSettings()
    hours = _number(capacity, "hours_per_day", defaults.capacity.hours_per_day, int)
    days = _number(capacity, "days_per_week", defaults.capacity.days_per_week, int)
    return TimelineSettings(
        capacity=CapacitySettings(
            hours_per_day=min(24, max(1, hours)),
            days_per_week=min(7, max(1, days)),
        ),
        holiday_min_width=max(0.0, _number(timeline, "holiday_min_width", defaults.holiday_min_width)),
        drag_threshold=max(0.0, _number(timeline, "drag_threshold", defaults.drag_threshold)),
    )
