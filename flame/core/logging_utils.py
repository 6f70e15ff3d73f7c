"""Structured logging for the transfer engine, its API and its CLI.

Modules log snake_case event names through ``get_logger(__name__)`` and put
everything else in ``extra=``. ``setup_json_logging`` decides where those
records end up: loguru sinks, or plain stdlib handlers with a JSON formatter.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from loguru import logger as loguru_logger

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_QUIET_LOGGERS = ("peewee", "uvicorn.access")
_FILE_BACKUPS = 5
_FILE_MAX_BYTES = 50 * 1024 * 1024


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed to the logging call through ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
    }


class EnhancedJsonFormatter(logging.Formatter):
    """One JSON object per record.

    ``correlation_id`` is lifted to the top level so request logs can be
    joined on it; the remaining extras are grouped under ``extra``.
    """

    def __init__(self, include_location: bool = True, include_process_info: bool = False):
        super().__init__()
        self.include_location = include_location
        self.include_process_info = include_process_info

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        if self.include_location:
            entry["location"] = f"{record.module}:{record.funcName}:{record.lineno}"
        if self.include_process_info:
            entry["pid"] = record.process
            entry["thread"] = record.threadName
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        extra = extra_fields(record)
        correlation_id = extra.pop("correlation_id", None)
        if correlation_id:
            entry["correlation_id"] = correlation_id
        if extra:
            entry["extra"] = extra
        return json.dumps(entry, ensure_ascii=False, default=_to_json)


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return str(value)


class InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping ``extra`` fields as bound context."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: int | str = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        loguru_logger.bind(logger_name=record.name, **extra_fields(record)).opt(
            depth=6, exception=record.exc_info
        ).log(level, record.getMessage())


def _install_loguru(
    root: logging.Logger, level: str, log_file: str | None, max_file_size: str, retention: str
) -> None:
    loguru_logger.remove()
    loguru_logger.add(sys.stdout, level=level, serialize=True, enqueue=True)
    if log_file:
        loguru_logger.add(
            log_file,
            level=level,
            serialize=True,
            rotation=max_file_size,
            retention=retention,
            compression="gz",
            enqueue=True,
        )
    root.addHandler(InterceptHandler())


def _install_stdlib(
    root: logging.Logger, log_file: str | None, include_location: bool
) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=_FILE_MAX_BYTES, backupCount=_FILE_BACKUPS)
        )
    for handler in handlers:
        handler.setFormatter(EnhancedJsonFormatter(include_location=include_location))
        root.addHandler(handler)


def setup_json_logging(
    level: str = "INFO",
    log_file: str | None = None,
    *,
    use_loguru: bool = True,
    include_location: bool = True,
    max_file_size: str = "50 MB",
    retention: str = "14 days",
) -> None:
    """Route every logger in the process to JSON output.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives the same records
        use_loguru: Serialize through loguru sinks instead of stdlib handlers
        include_location: Add ``module:function:line`` to stdlib records
        max_file_size: Rotation size of the loguru file sink
        retention: How long loguru keeps rotated files
    """
    level = level.upper()
    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)

    if use_loguru:
        _install_loguru(root, level, log_file, max_file_size, retention)
    else:
        _install_stdlib(root, log_file, include_location)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    get_logger(__name__).info(
        "json_logging_initialized",
        extra={"level": level, "backend": "loguru" if use_loguru else "stdlib"},
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; records reach whichever backend ``setup_json_logging`` installed."""
    return logging.getLogger(name)


def generate_correlation_id() -> str:
    """Short random id used to tie a request's log lines together."""
    return uuid.uuid4().hex[:12]
