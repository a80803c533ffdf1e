"""JSON logging for snapinspect: one object per line, to stdout and a rotating file."""

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH

# Library loggers that are chatty at DEBUG (one record per SQL call / HTTP request).
QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """Render a record as a JSON object.

    Reconciliation code reports degraded data through
    ``extra={"context": {...}}``; that mapping is copied verbatim.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        context = getattr(record, "context", None)
        if context is not None:
            entry["context"] = context
        return json.dumps(entry, default=str)


def build_logging_config(log_level: str, log_file: str | None) -> dict:
    """dictConfig payload; ``log_file=None`` logs to stdout only."""
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JSONFormatter}},
        "handlers": handlers,
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        "root": {"level": log_level.upper(), "handlers": list(handlers)},
    }


def setup_logging(log_level: str | None = None, log_file: str | None = None) -> None:
    """Configure the root logger.

    ``LOG_LEVEL`` defaults the level to INFO. ``LOG_FILE`` overrides the
    file under 04_logs/; set it to an empty string to log to stdout only.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")
    if log_file is None:
        log_file = os.getenv("LOG_FILE", str(DEFAULT_LOG_PATH))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(log_level, log_file or None))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
