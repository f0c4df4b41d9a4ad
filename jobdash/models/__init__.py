"""Database models."""

from jobdash.models.activity_log import ActivityLog
from jobdash.models.application import Application
from jobdash.models.daily_stats import DailyStats

__all__ = [
    "ActivityLog",
    "Application",
    "DailyStats",
]
