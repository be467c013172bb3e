"""Opt-in logging for shardstats.

The library logs under the ``shardstats`` logger namespace and ships with a
NullHandler only, so nothing is printed unless the application asks for it.
Engines emit DEBUG records when they finalize, merge reservoirs, or walk a
reduction tree; nothing is logged on the per-record hot path.

Example usage:
    import shardstats

    shardstats.enable_console_logging(level="DEBUG")
    shardstats.enable_file_logging("logs/shardstats.log", max_bytes=5_000_000)
    shardstats.enable_json_logging()
    shardstats.configure_from_env()

Environment variables:
    SHARDSTATS_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SHARDSTATS_LOG_FILE: Path to a rotating log file
    SHARDSTATS_LOG_JSON: "1" selects JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "shardstats"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, level: LogLevel | int) -> None:
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    logger.addHandler(handler)


def _clear_handlers() -> None:
    """Remove and close every handler except the NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log shardstats records to stderr.

    Returns:
        The handler that was attached.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format, date_format))
    _attach(handler, level)
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    json_format: bool = False,
) -> RotatingFileHandler:
    """Log shardstats records to a size-rotated file.

    Args:
        path: Log file; missing parent directories are created.
        level: Minimum level to record.
        max_bytes: Size at which the file is rotated.
        backup_count: Number of rotated files to keep.
        json_format: Write JSON lines instead of plain text.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(DEFAULT_FORMAT, DEFAULT_DATE_FORMAT))
    _attach(handler, level)
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Log shardstats records to stderr as JSON lines."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    _attach(handler, level)
    return handler


def configure_from_env() -> None:
    """Configure logging from SHARDSTATS_* environment variables.

    Does nothing when neither SHARDSTATS_LOGGING nor SHARDSTATS_LOG_FILE is set.
    """
    level = os.environ.get("SHARDSTATS_LOGGING", "").upper()
    log_file = os.environ.get("SHARDSTATS_LOG_FILE", "")
    use_json = os.environ.get("SHARDSTATS_LOG_JSON", "") == "1"

    if not level and not log_file:
        return
    level = level or "INFO"

    if log_file:
        enable_file_logging(log_file, level=level, json_format=use_json)
    elif use_json:
        enable_json_logging(level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Change the level of the shardstats logger."""
    _get_logger().setLevel(_get_level(level))


def disable_logging() -> None:
    """Detach all handlers and silence the shardstats logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
