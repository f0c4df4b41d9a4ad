"""Validation logic for application attempts."""

from dataclasses import dataclass, field
from urllib.parse import urlparse

from jobdash.schemas.tracking import ApplicationAttempt

MIN_COVER_LETTER_LENGTH = 50


@dataclass
class ValidationResult:
    """Result of validation process."""

    is_valid: bool
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


def is_job_url(url: str) -> bool:
    """Return True for absolute http(s) URLs."""
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_application_attempt(attempt: ApplicationAttempt) -> ValidationResult:
    """Validate an attempt before it is recorded."""
    warnings = []

    if not attempt.company.strip():
        return ValidationResult(is_valid=False, error="Company name is required")

    if not attempt.title.strip():
        return ValidationResult(is_valid=False, error="Job title is required")

    if not attempt.url.strip():
        return ValidationResult(is_valid=False, error="Job URL is required")

    if not is_job_url(attempt.url):
        warnings.append(f"Job URL is not an absolute http(s) URL: {attempt.url!r}")

    if (
        attempt.cover_letter
        and len(attempt.cover_letter.strip()) < MIN_COVER_LETTER_LENGTH
    ):
        warnings.append("Cover letter is very short")

    if attempt.status in ("failed", "captcha_blocked") and not attempt.notes:
        warnings.append(f"No notes recorded for {attempt.status} attempt")

    return ValidationResult(is_valid=True, warnings=warnings)


def validate_stats_days(days: int, max_days: int = 365) -> ValidationResult:
    """Validate the window requested for daily stats."""
    if days < 1:
        return ValidationResult(is_valid=False, error="days must be at least 1")
    if days > max_days:
        return ValidationResult(
            is_valid=False,
            error=f"Cannot request more than {max_days} days of stats",
        )
    return ValidationResult(is_valid=True)
