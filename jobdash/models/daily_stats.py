"""Per-day application counters."""

import datetime

from sqlalchemy import Date, Integer
from sqlalchemy.orm import Mapped, mapped_column

from jobdash.core.storage import Base


class DailyStats(Base):
    """Aggregate attempt counters for one calendar day (UTC)."""

    __tablename__ = "daily_stats"

    date: Mapped[datetime.date] = mapped_column(Date, primary_key=True)
    total_attempted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_applied: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_skipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
