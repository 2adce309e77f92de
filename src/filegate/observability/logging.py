"""Logging setup for filegate.

Two renderings share one record layout:
- JSON lines for production (one orjson object per record)
- a single readable line for local development

Every record carries the request context bound by CorrelationMiddleware
and require_principal. Records about a stored or rejected file also carry
the file fields (bucket, key, size, content type, rejection code) when the
caller passes ``file_fields(...)`` as ``extra``. Other ``extra`` keys are
not rendered.

Usage:
    logger.info("Uploaded object", extra=file_fields(bucket="files", key=key, size_bytes=n))
"""

from __future__ import annotations

import contextvars
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import orjson

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="")

_CONTEXT_VARS = {
    "request_id": request_id_var,
    "correlation_id": correlation_id_var,
    "user_id": user_id_var,
}

FILE_FIELDS = ("bucket", "key", "size_bytes", "content_type", "rejection")

_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "botocore", "aiobotocore")


def file_fields(
    *,
    bucket: str | None = None,
    key: str | None = None,
    size_bytes: int | None = None,
    content_type: str | None = None,
    rejection: str | None = None,
) -> dict[str, Any]:
    """Build the ``extra`` mapping for a log call about one file."""
    values = {
        "bucket": bucket,
        "key": key,
        "size_bytes": size_bytes,
        "content_type": content_type,
        "rejection": rejection,
    }
    return {name: value for name, value in values.items() if value is not None}


def request_context() -> dict[str, str]:
    """Return the non-empty request context of the current task."""
    context: dict[str, str] = {}
    for name, var in _CONTEXT_VARS.items():
        value = var.get()
        if value:
            context[name] = value
    return context


@contextmanager
def bound_request(request_id: str, correlation_id: str) -> Iterator[None]:
    """Bind request identifiers (and a fresh user slot) for one request."""
    tokens = [
        (request_id_var, request_id_var.set(request_id)),
        (correlation_id_var, correlation_id_var.set(correlation_id)),
        (user_id_var, user_id_var.set("")),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def _file_context(record: logging.LogRecord) -> dict[str, Any]:
    return {name: getattr(record, name) for name in FILE_FIELDS if hasattr(record, name)}


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {"timestamp": "...", "level": "INFO", "logger": "filegate.storage.gateway",
     "message": "Uploaded object", "request_id": "...", "user_id": "...",
     "bucket": "files", "key": "3f0c....png", "size_bytes": 2048}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(request_context())
        entry.update(_file_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for development.

    12:34:56 INFO     filegate.storage.gateway: Uploaded object [key=3f0c.png size_bytes=2048]
    """

    def format(self, record: logging.LogRecord) -> str:
        time = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{time} {record.levelname:<8} {record.name}: {record.getMessage()}"

        details = [f"{name}={value}" for name, value in _file_context(record).items()]
        request_id = request_id_var.get()
        if request_id:
            details.append(f"req={request_id[:8]}")
        user_id = user_id_var.get()
        if user_id:
            details.append(f"user={user_id[:8]}")
        if details:
            line += f" [{' '.join(details)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        json_format: JSON lines when True, console lines otherwise
        level: Root log level name
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
