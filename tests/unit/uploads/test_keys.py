"""Tests for storage key generation and MIME lookup."""

from __future__ import annotations

import re
import uuid

from filegate.uploads.keys import generate_key
from filegate.uploads.mime import DEFAULT_MIME_TYPE, guess_mime_type
from filegate.uploads.sanitizer import sanitize

KEY_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}")


def test_key_is_uuid4_plus_lowercased_extension() -> None:
    key = generate_key("Holiday Photo.JPG")

    assert KEY_PATTERN.match(key)
    assert key.endswith(".jpg")
    assert uuid.UUID(key[:-4]).version == 4


def test_key_ignores_rest_of_name() -> None:
    key = generate_key("../../etc/passwd.png")
    assert "etc" not in key
    assert "/" not in key


def test_key_without_extension() -> None:
    key = generate_key("README")
    assert "." not in key
    assert uuid.UUID(key).version == 4


def test_report_pdf_lower_cased() -> None:
    assert generate_key("report.PDF").endswith(".pdf")


def test_keys_are_unique() -> None:
    keys = {generate_key("report.PDF") for _ in range(10_000)}
    assert len(keys) == 10_000


def test_key_survives_sanitize() -> None:
    key = generate_key("café photo.png")
    assert sanitize(key) == key


def test_guess_mime_type() -> None:
    assert guess_mime_type("scan.PDF") == "application/pdf"
    assert guess_mime_type("photo.jpeg") == "image/jpeg"
    assert guess_mime_type("blob") == DEFAULT_MIME_TYPE
    assert guess_mime_type("archive.zip") == DEFAULT_MIME_TYPE
