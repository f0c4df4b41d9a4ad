"""Tool endpoints called by the agent runtime around each application attempt."""

import logging

from fastapi import APIRouter, Depends

from jobdash.core.exceptions import UnexpectedError
from jobdash.schemas.captcha import CaptchaResult, SolveCaptchaRequest
from jobdash.schemas.tracking import (
    ApplicationAttempt,
    CheckAppliedRequest,
    RecordResult,
)
from jobdash.services.captcha_resolver import CaptchaResolver
from jobdash.services.dependencies import get_captcha_resolver, get_store
from jobdash.services.tracking_store import ApplicationTrackingStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


@router.post("/log_application", response_model=RecordResult)
async def log_application(
    attempt: ApplicationAttempt,
    store: ApplicationTrackingStore = Depends(get_store),
):
    """Log a job application attempt. Call this after every attempt."""
    return await store.record(attempt)


@router.post("/check_applied")
async def check_applied(
    request: CheckAppliedRequest,
    store: ApplicationTrackingStore = Depends(get_store),
):
    """Check if a job has already been applied to."""
    try:
        already_applied = await store.check_applied(
            url=request.url, company=request.company, title=request.title
        )
    except UnexpectedError as e:
        logger.error(f"Dedup lookup failed: {e.message}")
        return {"alreadyApplied": False, "error": e.message, "message": e.message}

    return {
        "alreadyApplied": already_applied,
        "message": (
            "Already applied to this job. Skip it."
            if already_applied
            else "Not yet applied. Proceed with application."
        ),
    }


@router.post("/solve_captcha", response_model=CaptchaResult)
async def solve_captcha(
    request: SolveCaptchaRequest,
    resolver: CaptchaResolver = Depends(get_captcha_resolver),
):
    """Send a CAPTCHA to 2Captcha and return a token to inject into the page."""
    return await resolver.solve(request.type, request.site_key, request.page_url)


@router.post("/get_daily_stats")
async def get_daily_stats(store: ApplicationTrackingStore = Depends(get_store)):
    """Today's attempted, applied, failed and skipped counts."""
    empty = {
        "date": store.today().isoformat(),
        "total_attempted": 0,
        "total_applied": 0,
        "total_failed": 0,
        "total_skipped": 0,
    }
    try:
        stats = await store.get_daily_stats()
    except UnexpectedError as e:
        logger.error(f"Daily stats lookup failed: {e.message}")
        return {**empty, "error": e.message, "message": e.message}

    if stats is None:
        return {**empty, "message": "No applications today yet."}

    return {
        **stats.model_dump(mode="json"),
        "message": (
            f"Today: {stats.total_applied} applied, {stats.total_failed} failed, "
            f"{stats.total_skipped} skipped ({stats.total_attempted} total attempts)"
        ),
    }
