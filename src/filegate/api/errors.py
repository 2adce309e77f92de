"""Structured error responses for filegate.

Every error body uses the same Result/Message envelope:

    {"messages": [{"code": "TooLarge", "messageType": "Error",
                   "text": "...", "timestamp": "..."}]}

Domain errors from filegate.errors are mapped to HTTP status codes here;
the domain layer never sees HTTP.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException

from filegate.errors import (
    FileGateError,
    ObjectNotFound,
    StorageError,
    TooLarge,
    UploadRejected,
)

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """A single error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


def build_result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
    return Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


def status_for(exc: FileGateError) -> int:
    """Map a domain error to an HTTP status code."""
    if isinstance(exc, TooLarge):
        return 413
    if isinstance(exc, UploadRejected):
        return 400
    if isinstance(exc, ObjectNotFound):
        return 404
    return 500


async def filegate_exception_handler(request: Request, exc: FileGateError) -> JSONResponse:
    """Exception handler for domain errors."""
    status_code = status_for(exc)
    message_type = MessageType.EXCEPTION if status_code >= 500 else MessageType.ERROR
    if isinstance(exc, StorageError) and status_code >= 500:
        logger.error(f"Object store failure on {request.url.path}: {exc.text}")
    return JSONResponse(
        status_code=status_code,
        content=build_result(exc.code, exc.text, message_type).model_dump(by_alias=True),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (401, 404 route misses, ...) in the Result envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=build_result(
            _code_for_status(exc.status_code), str(exc.detail)
        ).model_dump(by_alias=True),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=build_result(
            "InternalServerError",
            "An unexpected error occurred",
            MessageType.EXCEPTION,
        ).model_dump(by_alias=True),
    )


def _code_for_status(status_code: int) -> str:
    return {
        400: "BadRequest",
        401: "Unauthorized",
        403: "Forbidden",
        404: "NotFound",
        405: "MethodNotAllowed",
        422: "UnprocessableEntity",
        429: "TooManyRequests",
    }.get(status_code, "Error")
