"""Observability module for filegate.

Provides JSON structured logging with request context and file fields.
"""

from filegate.observability.logging import (
    FILE_FIELDS,
    ConsoleFormatter,
    JsonFormatter,
    bound_request,
    configure_logging,
    correlation_id_var,
    file_fields,
    request_context,
    request_id_var,
    user_id_var,
)

__all__ = [
    "FILE_FIELDS",
    "configure_logging",
    "ConsoleFormatter",
    "JsonFormatter",
    "bound_request",
    "file_fields",
    "request_context",
    "request_id_var",
    "correlation_id_var",
    "user_id_var",
]
