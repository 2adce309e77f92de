"""Storage key generation."""

from __future__ import annotations

from uuid import uuid4

from filegate.uploads.sanitizer import get_extension


def generate_key(original_name: str) -> str:
    """Derive a fresh storage key for an upload.

    The key is a random UUID4 followed by the lower-cased extension of the
    original name. Nothing else from the client's name reaches the key, and
    no uniqueness lookup against the store is made.
    """
    extension = get_extension(original_name)
    suffix = f".{extension}" if extension else ""
    return f"{uuid4()}{suffix}"
