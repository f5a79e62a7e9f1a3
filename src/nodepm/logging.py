"""Structlog configuration for nodepm.

The terminal belongs to the UI, so log events go to a JSON Lines file only.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import structlog

LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3


def state_dir() -> Path:
    """State directory for logs and other expendable persistent state."""
    return Path.home() / ".local" / "state" / "nodepm"


def default_log_path() -> Path:
    return state_dir() / "nodepm.log"


def configure(log_path: Path | None = None, level: int = logging.INFO) -> Path:
    """Send structlog events as JSON lines to a rotating log file.

    Args:
        log_path: Log file location, defaults to ``default_log_path()``.
        level: Minimum stdlib level written to the file.

    Returns:
        The path being written to.
    """
    log_path = log_path or default_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                structlog.processors.add_log_level,
                structlog.processors.format_exc_info,
            ],
        )
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_path


def get_logger() -> structlog.stdlib.BoundLogger:
    """Get a structlog logger; safe to call before ``configure``."""
    return structlog.get_logger()
