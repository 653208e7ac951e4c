"""YAML-based colour system for TUI Timeline.

Loads colours from default_theme.yaml and optionally merges
project-level overrides from {project_dir}/.tui-timeline/theme.yaml.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import NamedTuple

import yaml

from tui_timeline.log import get_logger

log = get_logger(__name__)

THEME_FILE = "theme.yaml"


class ColorPair(NamedTuple):
    """A pair of colours for dark and light themes."""

    dark: str
    light: str

    def resolve(self, is_dark: bool) -> str:
        return self.dark if is_dark else self.light


# ── Module-level variables (populated by _apply) ──────────────────

GANTT_HEADER: ColorPair
GANTT_GROUP_HEADER: ColorPair
GANTT_TODAY_MARKER: ColorPair
GANTT_GRID_MARKER: ColorPair
GANTT_GAP: ColorPair
GANTT_BAND_BG: ColorPair
GANTT_BASE_BG: ColorPair
GANTT_HIGHLIGHT_BG: ColorPair
GANTT_HOLIDAY_BG: ColorPair
GANTT_DRAG_HANDLE: ColorPair

LABEL_PROJECT: ColorPair
LABEL_TASK: ColorPair
STATUSBAR_DEMO: ColorPair


# ── Internal helpers ──────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return a dict (empty dict on error)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        log.warning("ignoring unreadable theme %s: %s", path, e)
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _pair(d: dict, fallback: str = "white") -> ColorPair:
    """Convert a {dark: ..., light: ...} dict to a ColorPair."""
    if not isinstance(d, dict):
        d = {}
    return ColorPair(str(d.get("dark", fallback)), str(d.get("light", fallback)))


def _apply(data: dict) -> None:
    """Map parsed YAML data onto module-level constants."""
    mod = sys.modules[__name__]

    gantt = data.get("gantt", {})
    mod.GANTT_HEADER = _pair(gantt.get("header", {}))
    mod.GANTT_GROUP_HEADER = _pair(gantt.get("group_header", {}))
    mod.GANTT_TODAY_MARKER = _pair(gantt.get("today_marker", {}), "red")
    mod.GANTT_GRID_MARKER = _pair(gantt.get("grid_marker", {}), "grey50")
    mod.GANTT_GAP = _pair(gantt.get("gap", {}), "grey50")
    mod.GANTT_BAND_BG = _pair(gantt.get("band_bg", {"dark": "#1e1e2e", "light": "#eeeeee"}))
    mod.GANTT_BASE_BG = _pair(gantt.get("base_bg", {"dark": "#181825", "light": "#ffffff"}))
    mod.GANTT_HIGHLIGHT_BG = _pair(gantt.get("highlight_bg", {"dark": "#313244", "light": "#dde4ee"}))
    mod.GANTT_HOLIDAY_BG = _pair(gantt.get("holiday_bg", {"dark": "#3a2a1a", "light": "#f0e0c8"}))
    mod.GANTT_DRAG_HANDLE = _pair(gantt.get("drag_handle", {}), "yellow")

    ui = data.get("ui", {})
    mod.LABEL_PROJECT = _pair(ui.get("label_project", {}))
    mod.LABEL_TASK = _pair(ui.get("label_task", {}), "grey70")
    mod.STATUSBAR_DEMO = _pair(ui.get("statusbar_demo", {}), "yellow")


# ── Public API ────────────────────────────────────────────────────

def init_theme(project_dir: Path) -> Path:
    """Copy default_theme.yaml → {project_dir}/.tui-timeline/theme.yaml.

    Raises FileExistsError if the destination already exists.
    """
    dest = project_dir / ".tui-timeline" / THEME_FILE
    if dest.exists():
        raise FileExistsError(str(dest))
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(Path(__file__).parent / "default_theme.yaml", dest)
    return dest


def load_theme(project_dir: Path | None = None) -> None:
    """Load the default theme, merge project overrides, apply to this module."""
    data = _load_yaml(Path(__file__).parent / "default_theme.yaml")

    if project_dir is not None:
        override_path = project_dir / ".tui-timeline" / THEME_FILE
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    _apply(data)


# Apply default theme on module import
load_theme()
