"""Logging setup for TUI Timeline.

Modules take a child of the ``tui_timeline`` logger via ``get_logger``.
Nothing is written until ``configure_logging`` installs a handler: while the
TUI owns the terminal, records go to the Textual devtools console
(``textual console``) or to a log file.
"""

from __future__ import annotations

import logging
from pathlib import Path

from textual.logging import TextualHandler

ROOT_LOGGER = "tui_timeline"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str = "") -> logging.Logger:
    """Return the package logger, or a named child of it."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(level: str = "WARNING", log_file: Path | None = None) -> logging.Logger:
    """Attach one handler to the package logger and set its level.

    Calling it again replaces the previous handler.
    """
    logger = get_logger()
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = TextualHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
    return logger
