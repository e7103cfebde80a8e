"""Centralized logging configuration for taskweave.

The library itself only creates loggers (``logging.getLogger(__name__)``);
applications decide where the output goes by calling configure_logging()
once at startup. The CLI does this for you.

Usage:
    from taskweave.core.logging_config import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json")
    logger = get_logger(__name__)

Environment Variables:
    TASKWEAVE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    TASKWEAVE_LOG_FORMAT: Output format ("text" or "json")
    TASKWEAVE_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)

_configured = False


@dataclass
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Log level name.
        format: Output format ("text" or "json").
        file_path: Optional file path for file logging.
        include_ms: Include milliseconds in timestamp.
    """

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    file_path: str | None = None
    include_ms: bool = True

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a config from TASKWEAVE_LOG_* environment variables."""
        fmt = os.environ.get("TASKWEAVE_LOG_FORMAT", "text").lower()
        if fmt not in ("text", "json"):
            raise ValueError(f"TASKWEAVE_LOG_FORMAT must be 'text' or 'json', got {fmt!r}")
        return cls(
            level=os.environ.get("TASKWEAVE_LOG_LEVEL", "INFO").upper(),
            format=fmt,  # type: ignore[arg-type]
            file_path=os.environ.get("TASKWEAVE_LOG_FILE") or None,
        )


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs one JSON object per record:
    {
        "timestamp": "2026-10-18T14:30:00.123",
        "level": "DEBUG",
        "logger": "taskweave.tasks.manager",
        "message": "[manager] task_start: task=fetch",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def _level_number(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
) -> None:
    """Configure logging for the application.

    Should be called once at startup. Subsequent calls are ignored
    unless force=True. Arguments left as None fall back to the
    TASKWEAVE_LOG_* environment variables.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Output format.
        file_path: Optional file path.
        include_ms: Include milliseconds in timestamp.
        force: Force reconfiguration even if already configured.

    Raises:
        ValueError: If the level or format is not recognised.
    """
    global _configured
    if _configured and not force:
        return

    env = LogConfig.from_env()
    level = level or env.level
    format = format or env.format
    file_path = file_path or env.file_path

    root_logger = logging.getLogger()
    root_logger.setLevel(_level_number(level))
    root_logger.handlers.clear()

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        fmt = TEXT_FORMAT_WITH_MS if include_ms else TEXT_FORMAT
        formatter = logging.Formatter(fmt, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically ``__name__``)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str | None = None) -> None:
    """Set log level for a specific logger or the root logger."""
    logging.getLogger(logger_name).setLevel(_level_number(level))
