"""
Logging configuration for the park finder.

Console output is colored by level; an optional rotating log file can be
written as plain text or as one JSON object per line.

Usage:
    from parkfinder.logger import setup_logging, get_logger

    # Configure logging at startup
    setup_logging(level="INFO", log_file="parks.log")

    # Get a logger in any module
    logger = get_logger(__name__)
    logger.info("Resolved postcode %s", postcode)
"""

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

ROOT_LOGGER_NAME = "parkfinder"

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_BACKUP_COUNT = 3
DEFAULT_LOG_LEVEL = "INFO"

COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# LogRecord attributes that are not user-supplied "extra" fields
_RECORD_ATTRS = {
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


class ColorFormatter(logging.Formatter):
    """Formatter that wraps the level name in ANSI color codes."""

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname

        level_color = COLORS.get(record.levelname, "")
        record.levelname = f"{level_color}{record.levelname}{COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs log records as JSON objects.

    Any ``extra=`` fields passed to the logging call are collected under
    the ``extra`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: str | None = None,
    log_dir: Path | None = None,
    log_format: str = "text",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    Configure logging for the park finder.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional filename for file logging, in addition to the
            console.
        log_dir: Directory for the log file. Created if missing. Defaults to
            the current working directory.
        log_format: "text" or "json" for the file handler.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files to keep.

    Returns:
        The configured package logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Repeated setup (tests, CLI re-entry) must not stack handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(ColorFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if log_file:
        if log_dir:
            log_path = log_dir / log_file
            log_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            log_path = Path(log_file)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        if log_format.lower() == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Pass ``__name__``; modules inside the package land under the
    ``parkfinder`` logger and pick up its handlers.
    """
    return logging.getLogger(name)
