"""Schemas for application tracking."""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from jobdash.core.exceptions import TrackerError
from jobdash.schemas.common import ErrorKind

Platform = Literal["linkedin", "indeed", "glassdoor", "ziprecruiter"]
ApplicationStatus = Literal["applied", "failed", "skipped", "captcha_blocked"]


class ApplicationAttempt(BaseModel):
    """Outcome of one application attempt, as reported by the caller."""

    model_config = ConfigDict(populate_by_name=True)

    platform: Platform = Field(..., description="The job platform")
    company: str = Field(..., description="Company name")
    title: str = Field(..., description="Job title")
    url: str = Field(..., description="URL of the job posting")
    status: ApplicationStatus = Field(
        ..., description="Result of the application attempt"
    )
    notes: str | None = Field(default=None, description="Notes about the attempt")
    cover_letter: str | None = Field(
        default=None,
        alias="coverLetter",
        description="Generated cover letter text, if any",
    )
    screenshot_path: str | None = Field(
        default=None,
        alias="screenshotPath",
        description="Path to the submission screenshot",
    )


class ApplicationRead(BaseModel):
    """A recorded application."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    platform: str
    company: str
    title: str
    url: str
    status: str
    notes: str | None = None
    cover_letter: str | None = None
    screenshot_path: str | None = None
    applied_at: datetime


class ApplicationFilter(BaseModel):
    """Filter and pagination for application listings."""

    platform: str | None = None
    status: str | None = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class ApplicationPage(BaseModel):
    """One page of applications plus the filtered total."""

    items: list[ApplicationRead]
    total: int


class CheckAppliedRequest(BaseModel):
    """Dedup lookup by URL or by company and title."""

    url: str | None = Field(default=None, description="URL of the job posting")
    company: str | None = Field(default=None, description="Company name")
    title: str | None = Field(default=None, description="Job title")


class DailyStatsRead(BaseModel):
    """Counters for a single calendar day."""

    model_config = ConfigDict(from_attributes=True)

    date: date
    total_attempted: int = 0
    total_applied: int = 0
    total_failed: int = 0
    total_skipped: int = 0


class OutcomeTotals(BaseModel):
    applied: int = 0
    failed: int = 0
    skipped: int = 0


class PlatformCount(BaseModel):
    platform: str
    count: int


class SummaryStats(BaseModel):
    """Dashboard summary: today, last 7 days, all time and per platform."""

    today: DailyStatsRead | None = None
    this_week: OutcomeTotals = Field(default_factory=OutcomeTotals)
    total: OutcomeTotals = Field(default_factory=OutcomeTotals)
    by_platform: list[PlatformCount] = Field(default_factory=list)


class LogEntryRead(BaseModel):
    """An activity log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    level: str
    message: str
    details: dict[str, Any] | None = None


class RecordResult(BaseModel):
    """Result of recording an application attempt."""

    success: bool
    application: ApplicationRead | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None
    message: str

    @classmethod
    def ok(cls, application: ApplicationRead) -> "RecordResult":
        return cls(
            success=True,
            application=application,
            message=(
                f"Logged: {application.status} — "
                f"{application.company} - {application.title}"
            ),
        )

    @classmethod
    def failed(cls, error: TrackerError) -> "RecordResult":
        return cls(
            success=False,
            error_kind=error.kind,
            error=error.message,
            message=f"Failed to log application: {error.message}",
        )
