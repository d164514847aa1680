"""Opt-in logging for numereanalysis.

The package logger carries only a NullHandler, so importing the engine and
running analyses prints nothing. Call one of the helpers below to route the
records somewhere:

    import numereanalysis

    # Human readable output on stderr
    numereanalysis.enable_console_logging(level="DEBUG")

    # Size-bounded log file
    numereanalysis.enable_file_logging("analysis.log", max_bytes=10_000_000)

    # One JSON object per line, for log shippers
    numereanalysis.enable_json_logging()

    # Pick one of the above from the environment
    numereanalysis.configure_from_env()

Environment variables:
    NA_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    NA_LOG_FILE: Path of a rotating log file
    NA_LOG_JSON: "1" switches the output to JSON
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "numereanalysis"

ENV_LEVEL = "NA_LOGGING"
ENV_FILE = "NA_LOG_FILE"
ENV_JSON = "NA_LOG_JSON"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Records logged with ``extra={"context": error.context}`` (see
    ``AnalysisError.context``) carry that mapping under ``"context"``.

    Example output:
        {"timestamp": "2026-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "numereanalysis.analysis", "message": "zeroes = {2}"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        return json.dumps(payload, default=str)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Detach and close every handler except the NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _install(handler: logging.Handler, level: str | int, formatter: logging.Formatter) -> None:
    numeric = _get_level(level)
    logger = _get_logger()
    logger.setLevel(numeric)
    handler.setLevel(numeric)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _prepare(path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log to stderr.

    Args:
        level: Level name or number.
        format: Record format string.
        date_format: Format of ``%(asctime)s``.

    Returns:
        The attached StreamHandler.
    """
    handler = logging.StreamHandler()
    _install(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log to a file that rolls over at ``max_bytes``.

    Long integrations report progress every ten percent, so a size bound
    keeps batch runs from filling the disk.

    Args:
        path: Log file. Missing parent directories are created.
        level: Level name or number.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.
        format: Record format string.
        date_format: Format of ``%(asctime)s``.

    Returns:
        The attached RotatingFileHandler.
    """
    handler = RotatingFileHandler(_prepare(path), maxBytes=max_bytes, backupCount=backup_count)
    _install(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_timed_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    when: str = "midnight",
    interval: int = 1,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> TimedRotatingFileHandler:
    """Log to a file that rolls over on a schedule.

    Args:
        path: Log file. Missing parent directories are created.
        level: Level name or number.
        when: Rotation unit as understood by TimedRotatingFileHandler
            ('S', 'M', 'H', 'D', 'midnight' or 'W0'-'W6').
        interval: Number of units between rotations.
        backup_count: Rotated files to keep.
        format: Record format string.
        date_format: Format of ``%(asctime)s``.

    Returns:
        The attached TimedRotatingFileHandler.
    """
    handler = TimedRotatingFileHandler(
        _prepare(path), when=when, interval=interval, backupCount=backup_count
    )
    _install(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Log JSON lines to stderr.

    Returns:
        The attached StreamHandler.
    """
    handler = logging.StreamHandler()
    _install(handler, level, JsonFormatter())
    return handler


def enable_json_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> RotatingFileHandler:
    """Log JSON lines to a size-rotated file.

    Returns:
        The attached RotatingFileHandler.
    """
    handler = RotatingFileHandler(_prepare(path), maxBytes=max_bytes, backupCount=backup_count)
    _install(handler, level, JsonFormatter())
    return handler


def configure_from_env() -> None:
    """Enable logging from ``NA_LOGGING``, ``NA_LOG_FILE`` and ``NA_LOG_JSON``.

    Nothing happens unless a level or a file is set. A file without a level
    logs at INFO.

    Example:
        $ NA_LOGGING=DEBUG NA_LOG_JSON=1 python run_analysis.py
    """
    level = os.environ.get(ENV_LEVEL, "").upper()
    log_file = os.environ.get(ENV_FILE, "")
    use_json = os.environ.get(ENV_JSON, "") == "1"

    if not level and not log_file:
        return
    level = level or "INFO"

    if log_file:
        if use_json:
            enable_json_file_logging(log_file, level=level)
        else:
            enable_file_logging(log_file, level=level)
    elif use_json:
        enable_json_logging(level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Change the level of the package logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Change the level of one submodule logger.

    Args:
        module: Name relative to the package, e.g. ``"numerics.integration"``.
        level: Level name or number.

    Example:
        >>> numereanalysis.enable_console_logging(level="INFO")
        >>> numereanalysis.set_module_level("numerics.sampling", "DEBUG")
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Drop every handler and silence the package logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
