"""Application services."""

from jobdash.services.captcha_resolver import CaptchaResolver, poll_intervals
from jobdash.services.tracking_store import ApplicationTrackingStore

__all__ = ["ApplicationTrackingStore", "CaptchaResolver", "poll_intervals"]
