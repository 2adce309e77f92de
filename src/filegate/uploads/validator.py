"""Upload validation pipeline.

Validation is an explicit, ordered list of pure check functions. Each check
takes the candidate and the policy and returns either ``None`` (pass) or the
rejection it would raise. ``UploadValidator`` walks the list and stops at
the first rejection, so the order below is the order clients observe:

1. presence       -> MissingFile
2. size           -> TooLarge
3. name           -> InvalidName / SuspiciousName
4. extension      -> DisallowedExtension
5. declared MIME  -> DisallowedMimeType

Extension and declared MIME type both come from the client. Requiring both
to be on the allow-list narrows spoofing but is a policy boundary, not a
content-sniffing guarantee.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from filegate.errors import (
    DisallowedExtension,
    DisallowedMimeType,
    InvalidName,
    MissingFile,
    SuspiciousName,
    TooLarge,
    UploadRejected,
)
from filegate.observability.logging import file_fields
from filegate.uploads.policy import UploadPolicy
from filegate.uploads.sanitizer import get_extension, has_suspicious_extension, sanitize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadCandidate:
    """An incoming file as received from the client. Every field is untrusted."""

    original_name: str
    mime_type: str
    size_bytes: int
    content: bytes = b""


Check = Callable[[UploadCandidate | None, UploadPolicy], UploadRejected | None]


def check_presence(candidate: UploadCandidate | None, policy: UploadPolicy) -> UploadRejected | None:
    if candidate is None:
        return MissingFile()
    return None


def check_size(candidate: UploadCandidate | None, policy: UploadPolicy) -> UploadRejected | None:
    if candidate is None:
        return MissingFile()
    if candidate.size_bytes > policy.max_size_bytes:
        return TooLarge(candidate.size_bytes, policy.max_size_bytes)
    return None


def check_name(candidate: UploadCandidate | None, policy: UploadPolicy) -> UploadRejected | None:
    if candidate is None:
        return MissingFile()
    try:
        sanitize(candidate.original_name)
    except InvalidName as e:
        return e
    if has_suspicious_extension(
        candidate.original_name,
        policy.allowed_extensions,
        policy.blocked_extensions,
    ):
        return SuspiciousName(candidate.original_name)
    return None


def check_extension(
    candidate: UploadCandidate | None, policy: UploadPolicy
) -> UploadRejected | None:
    if candidate is None:
        return MissingFile()
    extension = get_extension(candidate.original_name)
    if extension not in policy.allowed_extensions:
        return DisallowedExtension(extension, policy.allowed_extensions)
    return None


def check_mime_type(
    candidate: UploadCandidate | None, policy: UploadPolicy
) -> UploadRejected | None:
    if candidate is None:
        return MissingFile()
    if candidate.mime_type.lower() not in policy.allowed_mime_types:
        return DisallowedMimeType(candidate.mime_type)
    return None


DEFAULT_CHECKS: tuple[Check, ...] = (
    check_presence,
    check_size,
    check_name,
    check_extension,
    check_mime_type,
)


class UploadValidator:
    """Runs the ordered checks against an upload candidate."""

    def __init__(self, policy: UploadPolicy, checks: Sequence[Check] = DEFAULT_CHECKS):
        self.policy = policy
        self.checks = tuple(checks)

    def evaluate(self, candidate: UploadCandidate | None) -> UploadRejected | None:
        """Return the first rejection, or None if the candidate passes."""
        for check in self.checks:
            rejection = check(candidate, self.policy)
            if rejection is not None:
                return rejection
        return None

    def validate(self, candidate: UploadCandidate | None) -> None:
        """Raise the first rejection produced by the pipeline."""
        rejection = self.evaluate(candidate)
        if rejection is not None:
            logger.info(
                f"Upload rejected: {rejection.code}",
                extra=file_fields(
                    size_bytes=candidate.size_bytes if candidate else None,
                    content_type=candidate.mime_type if candidate else None,
                    rejection=rejection.code,
                ),
            )
            raise rejection
