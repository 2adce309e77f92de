"""Static extension to MIME type table."""

from __future__ import annotations

from typing import Final

from filegate.uploads.sanitizer import get_extension

DEFAULT_MIME_TYPE: Final = "application/octet-stream"

MIME_TYPES: Final[dict[str, str]] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def guess_mime_type(name: str) -> str:
    """Return the MIME type for a name based on its extension."""
    return MIME_TYPES.get(get_extension(name), DEFAULT_MIME_TYPE)
