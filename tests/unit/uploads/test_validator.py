"""Tests for the upload validation pipeline."""

from __future__ import annotations

import logging

import pytest

from filegate.config import Settings
from filegate.errors import (
    DisallowedExtension,
    DisallowedMimeType,
    InvalidName,
    MissingFile,
    SuspiciousName,
    TooLarge,
    UploadRejected,
)
from filegate.uploads.policy import UploadPolicy
from filegate.uploads.validator import (
    DEFAULT_CHECKS,
    UploadCandidate,
    UploadValidator,
    check_presence,
    check_size,
)

MB = 1024 * 1024


def candidate(
    name: str = "photo.png", mime: str = "image/png", size: int = 2048
) -> UploadCandidate:
    return UploadCandidate(original_name=name, mime_type=mime, size_bytes=size)


@pytest.fixture
def validator() -> UploadValidator:
    return UploadValidator(UploadPolicy())


class TestUploadValidator:
    """Tests for UploadValidator."""

    def test_accepts_valid_png(self, validator: UploadValidator) -> None:
        assert validator.evaluate(candidate()) is None
        validator.validate(candidate())

    def test_missing_file(self, validator: UploadValidator) -> None:
        with pytest.raises(MissingFile):
            validator.validate(None)

    def test_size_at_limit_accepted(self, validator: UploadValidator) -> None:
        assert validator.evaluate(candidate(size=10 * MB)) is None

    def test_size_over_limit_rejected(self, validator: UploadValidator) -> None:
        with pytest.raises(TooLarge) as exc_info:
            validator.validate(candidate(size=10 * MB + 1))
        assert exc_info.value.max_size_bytes == 10 * MB
        assert "10MB" in exc_info.value.text

    def test_name_that_sanitizes_to_empty(self, validator: UploadValidator) -> None:
        with pytest.raises(InvalidName):
            validator.validate(candidate(name="../.."))

    def test_double_extension(self, validator: UploadValidator) -> None:
        with pytest.raises(SuspiciousName):
            validator.validate(candidate(name="resume.pdf.exe", mime="application/pdf"))

    def test_two_allowed_extensions(self, validator: UploadValidator) -> None:
        with pytest.raises(SuspiciousName):
            validator.validate(candidate(name="a.jpg.png"))

    def test_fifteen_mib_rejected(self, validator: UploadValidator) -> None:
        with pytest.raises(TooLarge):
            validator.validate(candidate(size=15 * MB))

    def test_pdf_declaring_text_plain(self, validator: UploadValidator) -> None:
        with pytest.raises(DisallowedMimeType):
            validator.validate(candidate(name="report.pdf", mime="text/plain"))

    def test_extension_not_allowed(self, validator: UploadValidator) -> None:
        with pytest.raises(DisallowedExtension) as exc_info:
            validator.validate(candidate(name="notes.txt", mime="text/plain"))
        assert exc_info.value.extension == "txt"
        assert ".png" in exc_info.value.text

    def test_mime_not_allowed(self, validator: UploadValidator) -> None:
        with pytest.raises(DisallowedMimeType):
            validator.validate(candidate(name="photo.png", mime="text/html"))

    def test_mime_compared_case_insensitively(self, validator: UploadValidator) -> None:
        assert validator.evaluate(candidate(mime="IMAGE/PNG")) is None

    def test_extension_compared_case_insensitively(self, validator: UploadValidator) -> None:
        assert validator.evaluate(candidate(name="SCAN.PDF", mime="application/pdf")) is None

    def test_first_failing_check_wins(self, validator: UploadValidator) -> None:
        """An oversized .exe reports TooLarge, not the extension."""
        rejection = validator.evaluate(
            candidate(name="tool.exe", mime="application/x-msdownload", size=20 * MB)
        )
        assert isinstance(rejection, TooLarge)

    def test_name_checked_before_extension(self, validator: UploadValidator) -> None:
        rejection = validator.evaluate(candidate(name="photo.exe.txt", mime="text/plain"))
        assert isinstance(rejection, SuspiciousName)

    def test_custom_check_order(self) -> None:
        validator = UploadValidator(UploadPolicy(), checks=(check_presence,))
        assert validator.evaluate(candidate(size=100 * MB)) is None

    @pytest.mark.parametrize("check", DEFAULT_CHECKS)
    def test_every_check_rejects_missing_file(self, check) -> None:
        assert isinstance(check(None, UploadPolicy()), MissingFile)

    def test_missing_file_without_presence_check(self) -> None:
        validator = UploadValidator(UploadPolicy(), checks=(check_size,))
        with pytest.raises(MissingFile):
            validator.validate(None)

    def test_default_checks_order(self) -> None:
        assert DEFAULT_CHECKS[0] is check_presence
        assert DEFAULT_CHECKS[1] is check_size

    def test_rejection_logged(
        self, validator: UploadValidator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="filegate.uploads.validator"):
            with pytest.raises(UploadRejected):
                validator.validate(candidate(name="notes.txt", mime="text/plain"))
        assert "DisallowedExtension" in caplog.text


class TestUploadPolicy:
    """Tests for UploadPolicy.from_settings()."""

    def test_parses_comma_separated_lists(self) -> None:
        settings = Settings(
            upload_max_size_bytes=1024,
            upload_allowed_extensions=" .PNG, jpg ,,",
            upload_allowed_mime_types="Image/PNG,image/jpeg",
            upload_blocked_extensions="exe",
        )
        policy = UploadPolicy.from_settings(settings)

        assert policy.max_size_bytes == 1024
        assert policy.allowed_extensions == ("png", "jpg")
        assert policy.allowed_mime_types == ("image/png", "image/jpeg")
        assert policy.blocked_extensions == ("exe",)

    def test_defaults_match_settings_defaults(self) -> None:
        assert UploadPolicy.from_settings(Settings()) == UploadPolicy()
