"""Response helpers for file delivery."""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import quote

from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from filegate.storage.base import StoredObjectMetadata
from filegate.storage.gateway import ObjectStream

MAX_FILENAME_LENGTH = 255

_HEADER_BREAKERS = re.compile(r'[\r\n"]')


def safe_display_name(name: str) -> str:
    """Strip CR, LF and double quotes and cap the length at 255 characters."""
    return _HEADER_BREAKERS.sub("", name)[:MAX_FILENAME_LENGTH]


def _ascii_fallback(name: str) -> str:
    # HTTP header values must stay latin-1 encodable; the exact name goes in filename*.
    normalized = unicodedata.normalize("NFKD", name)
    ascii_name = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_name = "".join(ch for ch in ascii_name if ch.isprintable())
    return ascii_name or "download"


def content_disposition(name: str, disposition: str = "inline") -> str:
    """Build a header-injection-safe Content-Disposition value.

    Provides both the plain ``filename`` form and the RFC 5987
    ``filename*`` form carrying the exact UTF-8 name.
    """
    safe_name = safe_display_name(name)
    encoded = quote(safe_name, safe="-_.!~*'()")
    return f"{disposition}; filename=\"{_ascii_fallback(safe_name)}\"; filename*=UTF-8''{encoded}"


def file_headers(info: StoredObjectMetadata, content_length: int | None = None) -> dict[str, str]:
    """Headers for returning a stored object's bytes."""
    return {
        "Content-Type": info.content_type,
        "Content-Disposition": content_disposition(info.original_name or info.key),
        "Content-Length": str(info.size_bytes if content_length is None else content_length),
    }


class ObjectStreamResponse(StreamingResponse):
    """Streams an ObjectStream and always closes it afterwards.

    The store body is released once the response ends, including when the
    client goes away before the first chunk is sent.
    """

    def __init__(self, stream: ObjectStream, info: StoredObjectMetadata):
        super().__init__(stream, media_type=info.content_type, headers=file_headers(info))
        self.object_stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.object_stream.aclose()
