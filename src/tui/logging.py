"""Structured client event logging.

The terminal owns stdout while the Textual app runs, so every structlog
logger is routed to a rotating file instead.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Optional

import structlog

from ..config.settings import settings

DEFAULT_LOG_FILE = "logs/client-events.log"
MAX_LOG_BYTES = 5 * 1024 * 1024
BACKUP_LOG_FILES = 5
EVENT_LOGGER_NAME = "productreview.events"

_configured_path: Optional[Path] = None


def resolve_log_path(file_path: Optional[str] = None) -> Path:
    configured = file_path or settings.logging.file_path
    if configured:
        return Path(configured).expanduser()
    project_root = Path(__file__).resolve().parents[2]
    return project_root / DEFAULT_LOG_FILE


def _renderer(fmt: str) -> Any:
    if fmt.lower() == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    return structlog.processors.JSONRenderer()


def configure_logging(file_path: Optional[str] = None) -> Path:
    """Send all structlog output to the rotating client log; safe to call twice."""
    global _configured_path
    log_path = resolve_log_path(file_path)
    if _configured_path == log_path:
        return log_path

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=BACKUP_LOG_FILES,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("productreview")
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.logging.level, logging.INFO))
    root.propagate = False

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        _renderer(settings.logging.format),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        # module loggers are children of "productreview" and share its handler
        logger_factory=lambda *args: logging.getLogger(
            f"productreview.{args[0]}" if args and args[0] else "productreview"
        ),
        cache_logger_on_first_use=False,
    )
    _configured_path = log_path
    return log_path


def bind_session(**context: Any) -> None:
    """Attach context (user id, environment) to every later log line."""
    structlog.contextvars.bind_contextvars(**context)


def log_tui_event(event: str, **payload: Any) -> None:
    """Emit a presentation event (route shown, theme applied)."""
    structlog.get_logger(EVENT_LOGGER_NAME).info(event, **payload)
