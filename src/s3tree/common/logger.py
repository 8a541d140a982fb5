"""Structured JSON logging for copy/move actions.

Handlers bind the invocation's request id once with ``set_request_id``; every
record emitted afterwards, including those from the traversal and transfer
modules, carries it.
"""

import contextvars
import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "s3tree_request_id", default=""
)


def set_request_id(request_id: str) -> contextvars.Token:
    """Bind the request id for the current invocation."""
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id.reset(token)


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function_name": os.environ.get("AWS_LAMBDA_FUNCTION_NAME", "local"),
            "request_id": getattr(record, "request_id", "") or _request_id.get(),
        }

        if hasattr(record, "extra_data") and isinstance(record.extra_data, dict):
            log_entry.update(record.extra_data)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "details": getattr(record.exc_info[1], "details", None),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Create a structured JSON logger writing to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
        logger.propagate = False
    return logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    request_id: str = "",
    **kwargs,
) -> None:
    """Log a message with structured context data."""
    extra = {"request_id": request_id, "extra_data": kwargs}
    logger.log(level, message, extra=extra)
