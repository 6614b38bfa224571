"""Logging setup for the Soulscape media service.

Outside local development every record goes to stdout as one JSON object,
stamped with the storage key of the upload being handled.
"""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

# Storage key of the upload being handled by the current task
storage_key_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "storage_key", default=None
)

# Attributes every LogRecord has; anything else arrived through ``extra``
_STANDARD_FIELDS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "getMessage", "taskName",
}


class CloudLoggingFormatter(logging.Formatter):
    """Render records as single-line JSON with upload context and extras."""

    SEVERITY_MAP = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        storage_key = storage_key_context.get()
        if storage_key:
            entry["storage_key"] = storage_key

        entry.update(
            (key, value) for key, value in record.__dict__.items() if key not in _STANDARD_FIELDS
        )

        if record.exc_info:
            entry.update(_exception_fields(record.exc_info))

        return json.dumps(entry, default=str, ensure_ascii=False)


def _exception_fields(exc_info) -> Dict[str, str]:
    exc_type, exc_value, _ = exc_info
    return {
        "exception": "".join(traceback.format_exception(*exc_info)),
        "exception_type": exc_type.__name__ if exc_type else "Unknown",
        "exception_message": str(exc_value) if exc_value else "",
    }


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """Send root and uvicorn logging to stdout.

    ``ENV=local`` gets human readable lines at DEBUG; any other environment
    gets JSON at LOG_LEVEL.
    """
    from soulscape.core.config import settings

    if settings.ENV == "local":
        log_level = logging.DEBUG
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        log_level = _resolve_level(settings.LOG_LEVEL)
        formatter = CloudLoggingFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Pillow logs every plugin probe at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(log_level)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.propagate = False
