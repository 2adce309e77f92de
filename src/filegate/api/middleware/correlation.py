"""Request correlation for filegate.

Each HTTP request gets a request ID (taken from ``x-request-id`` or
generated) and a correlation ID (``x-correlation-id``, else the request ID).
Both are bound to the logging context for the lifetime of the request,
exposed on ``request.state`` and echoed on the response.

Implemented as plain ASGI middleware so streamed downloads pass through
without being re-buffered.
"""

from __future__ import annotations

import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from filegate.observability.logging import bound_request

REQUEST_ID_HEADER = "x-request-id"
CORRELATION_ID_HEADER = "x-correlation-id"

MAX_ID_LENGTH = 128


def _incoming_id(headers: Headers, name: str) -> str | None:
    value = headers.get(name, "").strip()
    if not value or len(value) > MAX_ID_LENGTH or not value.isprintable():
        return None
    return value


class CorrelationMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = _incoming_id(headers, REQUEST_ID_HEADER) or str(uuid.uuid4())
        correlation_id = _incoming_id(headers, CORRELATION_ID_HEADER) or request_id

        state = scope.setdefault("state", {})
        state["request_id"] = request_id
        state["correlation_id"] = correlation_id

        async def send_with_ids(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                response_headers[REQUEST_ID_HEADER] = request_id
                response_headers[CORRELATION_ID_HEADER] = correlation_id
            await send(message)

        with bound_request(request_id, correlation_id):
            await self.app(scope, receive, send_with_ids)
