"""Read-only API routes for the dashboard."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from jobdash.core.config import Settings
from jobdash.core.exceptions import (
    UnexpectedError,
    bad_request_exception,
    not_found_exception,
)
from jobdash.schemas.tracking import (
    ApplicationFilter,
    ApplicationPage,
    ApplicationRead,
    DailyStatsRead,
    LogEntryRead,
    SummaryStats,
)
from jobdash.services.dependencies import get_settings, get_store
from jobdash.services.tracking_store import ApplicationTrackingStore
from jobdash.utils.validators import validate_stats_days

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])

SCREENSHOT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def _database_error(e: UnexpectedError) -> HTTPException:
    logger.error(f"Dashboard query failed: {e.message}")
    return HTTPException(status_code=500, detail="Database error")


@router.get("/applications", response_model=ApplicationPage)
async def list_applications(
    platform: str | None = None,
    status: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: ApplicationTrackingStore = Depends(get_store),
):
    """List applications, newest first."""
    filters = ApplicationFilter(
        platform=platform or None, status=status or None, limit=limit, offset=offset
    )
    try:
        return await store.get_applications(filters)
    except UnexpectedError as e:
        raise _database_error(e)


@router.get("/applications/{application_id}", response_model=ApplicationRead)
async def get_application(
    application_id: int,
    store: ApplicationTrackingStore = Depends(get_store),
):
    """Get a single application."""
    try:
        application = await store.get_application_by_id(application_id)
    except UnexpectedError as e:
        raise _database_error(e)
    if application is None:
        raise not_found_exception("Application not found")
    return application


@router.get("/stats", response_model=SummaryStats)
async def get_summary_stats(store: ApplicationTrackingStore = Depends(get_store)):
    """Summary for today, the last 7 days, all time and per platform."""
    try:
        return await store.get_summary_stats()
    except UnexpectedError as e:
        raise _database_error(e)


@router.get("/stats/daily", response_model=list[DailyStatsRead])
async def get_daily_stats(
    days: int = 30,
    store: ApplicationTrackingStore = Depends(get_store),
):
    """Daily counters for charting, newest first."""
    validation = validate_stats_days(days)
    if not validation.is_valid:
        raise bad_request_exception(validation.error)
    try:
        return await store.get_stats_range(days)
    except UnexpectedError as e:
        raise _database_error(e)


@router.get("/logs", response_model=list[LogEntryRead])
async def get_logs(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: ApplicationTrackingStore = Depends(get_store),
):
    """Activity log, newest first."""
    try:
        return await store.get_logs(limit, offset)
    except UnexpectedError as e:
        raise _database_error(e)


@router.get("/screenshots/{application_id}")
async def get_screenshot(
    application_id: int,
    store: ApplicationTrackingStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings),
):
    """Serve the submission screenshot of an application."""
    try:
        application = await store.get_application_by_id(application_id)
    except UnexpectedError as e:
        raise _database_error(e)
    if application is None or not application.screenshot_path:
        raise not_found_exception("Screenshot not found")

    path = Path(application.screenshot_path).expanduser()
    if app_settings.screenshots_dir:
        root = Path(app_settings.screenshots_dir).expanduser().resolve()
        if not path.resolve().is_relative_to(root):
            logger.warning(f"Refusing screenshot outside {root}: {path}")
            raise not_found_exception("Screenshot not found")

    if not path.is_file():
        raise not_found_exception("Screenshot file not found on disk")

    media_type = SCREENSHOT_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return FileResponse(path, media_type=media_type)
