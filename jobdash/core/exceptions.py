"""Custom exceptions for the application."""

from fastapi import HTTPException, status


class TrackerError(Exception):
    """Base exception for tracking and CAPTCHA errors."""

    kind = "unexpected"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(TrackerError):
    """Raised when a required credential is not configured."""

    kind = "configuration"


class SubmitError(TrackerError):
    """Raised when the solving service rejects a task submission."""

    kind = "submit"

    def __init__(self, error_token: str):
        self.error_token = error_token
        super().__init__(f"2Captcha submit error: {error_token}")


class PollError(TrackerError):
    """Raised when the solving service reports a terminal failure while polling."""

    kind = "poll"

    def __init__(self, error_token: str):
        self.error_token = error_token
        super().__init__(f"2Captcha poll error: {error_token}")


class PollTimeoutError(TrackerError):
    """Raised when the polling budget is exhausted."""

    kind = "timeout"

    def __init__(self, budget: float):
        self.budget = budget
        super().__init__(f"CAPTCHA solving timed out after {budget:g} seconds")


class DuplicateKeyError(TrackerError):
    """Raised when an application with the same URL was already recorded."""

    kind = "duplicate"

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Application already recorded for {url}")


class ValidationError(TrackerError):
    """Raised when an input fails validation."""

    kind = "validation"


class UnexpectedError(TrackerError):
    """Wraps a lower-level failure such as a network or disk error."""

    kind = "unexpected"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


def bad_request_exception(detail: str = "Invalid request") -> HTTPException:
    """Return a 400 Bad Request exception."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def not_found_exception(detail: str = "Resource not found") -> HTTPException:
    """Return a 404 Not Found exception."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )
