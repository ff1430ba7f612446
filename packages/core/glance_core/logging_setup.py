"""Structured local logging for the sampler, readers, and tray app.

Every record under the ``glance`` logger is written as one JSON line. The
telemetry code attaches its context through ``extra=``; the fields listed in
``STRUCTURED_FIELDS`` are lifted onto the line so a log can be filtered by
source, failure kind, or cycle without parsing the message text.
"""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .config import config_root


_LOGGER_NAME = "glance"
_LOG_FILE = "glance.log"

STRUCTURED_FIELDS = (
    "event",
    "source",
    "failure",
    "error_type",
    "cycle",
    "label",
    "interval_s",
    "notification_id",
    "target",
    "crash_id",
    "exit_code",
)


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                line[key] = value
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=True, default=str)


def _file_handler(directory: Path, keep_files: int) -> logging.Handler:
    directory.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(directory / _LOG_FILE),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s [%(threadName)s] %(message)s"))
    return handler


def configure_logging(
    keep_files: int = 7,
    console: bool = True,
    level: int = logging.INFO,
    directory: Path | None = None,
) -> logging.Logger:
    """Attach the JSON file handler once; later calls return the configured logger."""
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.addHandler(_file_handler(directory or log_dir(), keep_files))
    if console:
        logger.addHandler(_console_handler())

    logger.info("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _crash_reporter(logger: logging.Logger, event: str) -> Callable[[str, Any], str]:
    def _report(where: str, exc_info: Any) -> str:
        crash_id = str(uuid.uuid4())
        logger.critical(
            f"{where} crash_id={crash_id}",
            exc_info=exc_info,
            extra={"event": event, "crash_id": crash_id},
        )
        return crash_id

    return _report


def install_crash_hooks() -> None:
    logger = get_logger()
    report_uncaught = _crash_reporter(logger, "uncaught_exception")
    report_thread = _crash_reporter(logger, "thread_exception")

    def _excepthook(exc_type, exc_value, exc_tb) -> None:
        report_uncaught("uncaught exception", (exc_type, exc_value, exc_tb))

    def _threading_hook(args: threading.ExceptHookArgs) -> None:
        name = args.thread.name if args.thread else "?"
        report_thread(f"exception in thread {name}", (args.exc_type, args.exc_value, args.exc_traceback))

    sys.excepthook = _excepthook
    threading.excepthook = _threading_hook

    # native crashes bypass both hooks
    faulthandler.enable(file=(log_dir() / "fault.log").open("a", encoding="utf-8"), all_threads=True)
    logger.info("crash hooks installed", extra={"event": "crash_hooks_installed"})
