"""Domain error taxonomy for filegate.

Two families:
- UploadRejected: the client sent something the policy refuses (4xx)
- StorageError: the object store failed or the object is absent

The HTTP mapping lives in filegate.api.errors; nothing here knows about HTTP.
"""

from __future__ import annotations


class FileGateError(Exception):
    """Base class for all filegate errors."""

    code: str = "FileGateError"

    def __init__(self, text: str):
        self.text = text
        super().__init__(text)


# ---------------------------------------------------------------------------
# Client input errors
# ---------------------------------------------------------------------------


class UploadRejected(FileGateError):
    """The upload or request parameters violate policy."""

    code = "UploadRejected"


class MissingFile(UploadRejected):
    code = "MissingFile"

    def __init__(self, text: str = "No file was provided") -> None:
        super().__init__(text)


class TooLarge(UploadRejected):
    code = "TooLarge"

    def __init__(self, size_bytes: int, max_size_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes
        limit_mb = max_size_bytes / 1024 / 1024
        super().__init__(
            f"File is {size_bytes} bytes; the maximum allowed size is {limit_mb:g}MB"
        )


class InvalidName(UploadRejected):
    code = "InvalidName"

    def __init__(self, text: str = "Invalid file name") -> None:
        super().__init__(text)


class SuspiciousName(UploadRejected):
    code = "SuspiciousName"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("File name is invalid or contains dangerous extensions")


class DisallowedExtension(UploadRejected):
    code = "DisallowedExtension"

    def __init__(self, extension: str, allowed: tuple[str, ...]) -> None:
        self.extension = extension
        self.allowed = allowed
        listed = ", ".join(f".{ext}" for ext in allowed)
        super().__init__(f"File type not allowed. Allowed extensions: {listed}")


class DisallowedMimeType(UploadRejected):
    code = "DisallowedMimeType"

    def __init__(self, mime_type: str) -> None:
        self.mime_type = mime_type
        super().__init__(f"MIME type '{mime_type}' is not allowed")


class InvalidExpiry(UploadRejected):
    code = "InvalidExpiry"

    def __init__(self, expiry_seconds: int) -> None:
        self.expiry_seconds = expiry_seconds
        super().__init__("Expiry must be between 1 second and 24 hours")


# ---------------------------------------------------------------------------
# Object store errors
# ---------------------------------------------------------------------------


class StorageError(FileGateError):
    """The object store could not complete an operation."""

    code = "StorageError"


class ObjectNotFound(StorageError):
    code = "NotFound"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"File '{key}' not found")


class WriteFailed(StorageError):
    code = "WriteFailed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Error uploading file: {reason}")


class LookupFailed(StorageError):
    code = "LookupFailed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Error reading file: {reason}")


class SignFailed(StorageError):
    code = "SignFailed"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Error generating download link: {reason}")


class BucketProvisioningFailed(StorageError):
    code = "BucketProvisioningFailed"

    def __init__(self, bucket: str, reason: str) -> None:
        self.bucket = bucket
        self.reason = reason
        super().__init__(f"Could not provision bucket '{bucket}': {reason}")
