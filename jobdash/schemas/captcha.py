"""Schemas for CAPTCHA solving."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from jobdash.core.exceptions import TrackerError
from jobdash.schemas.common import ErrorKind

CaptchaType = Literal["recaptcha_v2", "hcaptcha"]


class SolveCaptchaRequest(BaseModel):
    """Challenge description sent to the solving service."""

    model_config = ConfigDict(populate_by_name=True)

    type: CaptchaType = Field(..., description="Type of CAPTCHA")
    site_key: str = Field(
        ...,
        alias="siteKey",
        min_length=1,
        description="The CAPTCHA site key (from data-sitekey attribute)",
    )
    page_url: str = Field(
        ...,
        alias="pageUrl",
        min_length=1,
        description="The URL of the page with the CAPTCHA",
    )


class CaptchaResult(BaseModel):
    """Terminal outcome of a solve call."""

    success: bool
    token: str | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None
    message: str

    @classmethod
    def ok(cls, token: str) -> "CaptchaResult":
        return cls(success=True, token=token, message="CAPTCHA solved successfully")

    @classmethod
    def failed(cls, error: TrackerError) -> "CaptchaResult":
        return cls(
            success=False,
            error_kind=error.kind,
            error=error.message,
            message=f"CAPTCHA solving failed: {error.message}",
        )
