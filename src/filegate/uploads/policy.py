"""Upload policy: size ceiling and allow/deny lists."""

from __future__ import annotations

from dataclasses import dataclass

from filegate.config import Settings, split_csv


@dataclass(frozen=True)
class UploadPolicy:
    """Limits applied to every incoming upload.

    Extensions are stored lower-cased and without the leading dot.
    """

    max_size_bytes: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "pdf", "doc", "docx")
    allowed_mime_types: tuple[str, ...] = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )
    blocked_extensions: tuple[str, ...] = (
        "exe",
        "com",
        "bat",
        "cmd",
        "sh",
        "msi",
        "js",
        "jar",
        "vbs",
        "ps1",
        "php",
        "py",
        "rb",
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> UploadPolicy:
        """Build the policy from application settings."""
        return cls(
            max_size_bytes=settings.upload_max_size_bytes,
            allowed_extensions=_normalize_extensions(settings.upload_allowed_extensions),
            allowed_mime_types=tuple(
                mime.lower() for mime in split_csv(settings.upload_allowed_mime_types)
            ),
            blocked_extensions=_normalize_extensions(settings.upload_blocked_extensions),
        )


def _normalize_extensions(value: str) -> tuple[str, ...]:
    return tuple(ext.lower().lstrip(".") for ext in split_csv(value))
