"""Types shared by the object store gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

# Unreserved set of browser URI-component encoding; stored names stay
# byte-compatible with values written by browser and Node clients.
_URI_COMPONENT_SAFE = "-_.!~*'()"

ORIGINAL_NAME_META_KEY = "original-name"


@dataclass
class StoredObjectMetadata:
    """Attributes of one stored object, as reported by the store."""

    key: str
    content_type: str
    original_name: str
    original_name_encoded: str
    size_bytes: int
    last_modified: datetime | None = None
    etag: str | None = None


def encode_original_name(name: str) -> str:
    """Percent-encode a filename so it survives S3 user-metadata transport."""
    return quote(name, safe=_URI_COMPONENT_SAFE)


def decode_original_name(encoded: str) -> str:
    """Decode a stored filename, falling back to the raw value.

    Values written by older clients may not be valid percent-encoded UTF-8.
    A bad value must never break a read, so it is returned as stored.
    """
    try:
        return unquote(encoded, errors="strict")
    except UnicodeDecodeError:
        logger.warning(f"Stored original name is not valid UTF-8, using raw value: {encoded!r}")
        return encoded
