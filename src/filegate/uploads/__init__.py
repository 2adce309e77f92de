"""Upload intake: sanitization, validation, and key generation."""

from filegate.uploads.keys import generate_key
from filegate.uploads.mime import MIME_TYPES, guess_mime_type
from filegate.uploads.policy import UploadPolicy
from filegate.uploads.sanitizer import get_extension, has_suspicious_extension, sanitize
from filegate.uploads.validator import UploadCandidate, UploadValidator

__all__ = [
    "MIME_TYPES",
    "UploadCandidate",
    "UploadPolicy",
    "UploadValidator",
    "generate_key",
    "get_extension",
    "guess_mime_type",
    "has_suspicious_extension",
    "sanitize",
]
