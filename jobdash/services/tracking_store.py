"""Durable store for application attempts, daily counters and the activity log."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jobdash.core.exceptions import (
    DuplicateKeyError,
    TrackerError,
    UnexpectedError,
    ValidationError,
)
from jobdash.core.storage import (
    create_engine,
    create_session_factory,
    init_models,
    utc_now,
)
from jobdash.models import ActivityLog, Application, DailyStats
from jobdash.schemas.tracking import (
    ApplicationAttempt,
    ApplicationFilter,
    ApplicationPage,
    ApplicationRead,
    DailyStatsRead,
    LogEntryRead,
    OutcomeTotals,
    PlatformCount,
    RecordResult,
    SummaryStats,
)
from jobdash.utils.validators import validate_application_attempt

logger = logging.getLogger(__name__)

FAILED_STATUSES = frozenset({"failed", "captcha_blocked"})
SUMMARY_WINDOW_DAYS = 7


def classify_status(status: str) -> tuple[int, int, int]:
    """Return the (applied, failed, skipped) increments for an attempt status."""
    return (
        int(status == "applied"),
        int(status in FAILED_STATUSES),
        int(status == "skipped"),
    )


class ApplicationTrackingStore:
    """Single-writer store of application attempts.

    A store starts uninitialized; reads on an uninitialized store return empty
    results and writes return an ``unexpected`` error. Call ``initialize()``
    (or use ``ApplicationTrackingStore.open``) to obtain a ready handle.

    ``record`` and ``add_log`` are serialized by an ``asyncio.Lock`` and each
    commits before returning. Readers run in their own transaction so they
    never observe a partially applied ``record``.
    """

    def __init__(
        self,
        database_url: str,
        clock: Callable[[], datetime] = utc_now,
        echo: bool = False,
    ):
        self.database_url = database_url
        self._clock = clock
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._write_lock = asyncio.Lock()

    @classmethod
    async def open(cls, database_url: str, **kwargs) -> "ApplicationTrackingStore":
        """Create and initialize a store."""
        store = cls(database_url, **kwargs)
        await store.initialize()
        return store

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    async def initialize(self) -> "ApplicationTrackingStore":
        """Open the database and create the schema. Safe to call twice."""
        if self.is_initialized:
            return self

        engine = create_engine(self.database_url, echo=self._echo)
        try:
            await init_models(engine)
        except SQLAlchemyError:
            await engine.dispose()
            raise

        self._engine = engine
        self._session_factory = create_session_factory(engine)
        logger.info("Tracking store initialized")
        return self

    async def close(self) -> None:
        """Dispose of the engine; the store returns to the uninitialized state."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def __aenter__(self):
        return await self.initialize()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def today(self) -> date:
        return self._clock().date()

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[AsyncSession]:
        """Session inside one read transaction."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database read failed: {e}")
            await self._log_quietly("error", f"Database read failed: {e}")
            raise UnexpectedError(f"Database error: {e}", e) from e

    def _counter_upsert(self, day: date, status: str):
        applied, failed, skipped = classify_status(status)
        dialect = self._engine.dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert

        stmt = insert(DailyStats).values(
            date=day,
            total_attempted=1,
            total_applied=applied,
            total_failed=failed,
            total_skipped=skipped,
        )
        return stmt.on_conflict_do_update(
            index_elements=[DailyStats.date],
            set_={
                "total_attempted": DailyStats.total_attempted + 1,
                "total_applied": DailyStats.total_applied + stmt.excluded.total_applied,
                "total_failed": DailyStats.total_failed + stmt.excluded.total_failed,
                "total_skipped": DailyStats.total_skipped + stmt.excluded.total_skipped,
            },
        )

    # ── Writes ──────────────────────────────────────────────────────────────

    async def record(self, attempt: ApplicationAttempt) -> RecordResult:
        """Record an attempt together with its counter update and log entry."""
        try:
            application = await self._insert_application(attempt)
        except TrackerError as e:
            logger.warning(f"Application not recorded ({e.kind}): {e.message}")
            await self._log_quietly(
                "error",
                f"Application not recorded: {e.message}",
                {
                    "platform": attempt.platform,
                    "url": attempt.url,
                    "status": attempt.status,
                    "error_kind": e.kind,
                },
            )
            return RecordResult.failed(e)

        logger.info(
            f"Recorded {application.status} application #{application.id}: "
            f"{application.company} - {application.title}"
        )
        return RecordResult.ok(application)

    async def _insert_application(self, attempt: ApplicationAttempt) -> ApplicationRead:
        if not self.is_initialized:
            raise UnexpectedError("Tracking store is not initialized")

        validation = validate_application_attempt(attempt)
        if not validation.is_valid:
            raise ValidationError(validation.error)
        for warning in validation.warnings:
            logger.warning(f"{attempt.url}: {warning}")

        async with self._write_lock:
            now = self._clock()
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        application = Application(
                            platform=attempt.platform,
                            company=attempt.company.strip(),
                            title=attempt.title.strip(),
                            url=attempt.url.strip(),
                            status=attempt.status,
                            notes=attempt.notes or None,
                            cover_letter=attempt.cover_letter or None,
                            screenshot_path=attempt.screenshot_path or None,
                            applied_at=now,
                        )
                        session.add(application)
                        try:
                            await session.flush()
                        except IntegrityError as e:
                            raise DuplicateKeyError(application.url) from e

                        await session.execute(self._counter_upsert(now.date(), attempt.status))
                        session.add(
                            ActivityLog(
                                timestamp=now,
                                level="info",
                                message=(
                                    f"Application {attempt.status}: "
                                    f"{application.company} - {application.title}"
                                ),
                                details={
                                    "platform": attempt.platform,
                                    "url": application.url,
                                    "status": attempt.status,
                                },
                            )
                        )
            except SQLAlchemyError as e:
                logger.error(f"Database error while recording {attempt.url}: {e}")
                raise UnexpectedError(f"Database error: {e}", e) from e

        return ApplicationRead.model_validate(application)

    async def add_log(
        self,
        level: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> LogEntryRead | None:
        """Append an activity log entry. No-op on an uninitialized store."""
        if not self.is_initialized:
            return None

        async with self._write_lock:
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        entry = ActivityLog(
                            timestamp=self._clock(),
                            level=level,
                            message=message,
                            details=details,
                        )
                        session.add(entry)
            except SQLAlchemyError as e:
                logger.error(f"Failed to write activity log: {e}")
                raise UnexpectedError(f"Failed to write activity log: {e}", e) from e

        return LogEntryRead.model_validate(entry)

    async def _log_quietly(
        self, level: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        try:
            await self.add_log(level, message, details)
        except UnexpectedError:
            logger.exception(f"Could not append to activity log: {message}")

    # ── Dedup ───────────────────────────────────────────────────────────────

    async def check_applied(
        self,
        url: str | None = None,
        company: str | None = None,
        title: str | None = None,
    ) -> bool:
        """Return True if this job was already attempted.

        A URL match counts regardless of outcome. Without a URL, a
        company/title match counts only if that attempt was not skipped.
        """
        if not self.is_initialized:
            return False

        if url:
            query = select(Application.id).where(Application.url == url.strip())
        elif company and title:
            query = select(Application.id).where(
                Application.company == company.strip(),
                Application.title == title.strip(),
                Application.status != "skipped",
            )
        else:
            return False

        async with self._read() as session:
            result = await session.execute(query.limit(1))
            return result.first() is not None

    # ── Application queries ─────────────────────────────────────────────────

    async def get_application_by_id(self, application_id: int) -> ApplicationRead | None:
        if not self.is_initialized:
            return None

        async with self._read() as session:
            application = await session.get(Application, application_id)
            return ApplicationRead.model_validate(application) if application else None

    async def get_applications(
        self, filters: ApplicationFilter | None = None
    ) -> ApplicationPage:
        """Return one page of applications, newest first, and the filtered total."""
        filters = filters or ApplicationFilter()
        if not self.is_initialized:
            return ApplicationPage(items=[], total=0)

        conditions = []
        if filters.platform:
            conditions.append(Application.platform == filters.platform)
        if filters.status:
            conditions.append(Application.status == filters.status)

        async with self._read() as session:
            total = await session.scalar(
                select(func.count()).select_from(Application).where(*conditions)
            )
            result = await session.execute(
                select(Application)
                .where(*conditions)
                .order_by(Application.applied_at.desc(), Application.id.desc())
                .limit(filters.limit)
                .offset(filters.offset)
            )
            items = [ApplicationRead.model_validate(row) for row in result.scalars()]

        return ApplicationPage(items=items, total=total or 0)

    # ── Stats queries ───────────────────────────────────────────────────────

    async def get_daily_stats(self, day: date | None = None) -> DailyStatsRead | None:
        """Counters for ``day`` (default: today), or None if nothing was attempted."""
        if not self.is_initialized:
            return None

        async with self._read() as session:
            row = await session.get(DailyStats, day or self.today())
            return DailyStatsRead.model_validate(row) if row else None

    async def get_stats_range(self, days: int = 30) -> list[DailyStatsRead]:
        """The most recent ``days`` rows of daily counters, newest first."""
        if not self.is_initialized or days < 1:
            return []

        async with self._read() as session:
            result = await session.execute(
                select(DailyStats).order_by(DailyStats.date.desc()).limit(days)
            )
            return [DailyStatsRead.model_validate(row) for row in result.scalars()]

    async def get_summary_stats(self) -> SummaryStats:
        if not self.is_initialized:
            return SummaryStats()

        today = self.today()
        week_start = today - timedelta(days=SUMMARY_WINDOW_DAYS)
        totals = select(
            func.coalesce(func.sum(DailyStats.total_applied), 0),
            func.coalesce(func.sum(DailyStats.total_failed), 0),
            func.coalesce(func.sum(DailyStats.total_skipped), 0),
        )
        applied_count = func.count(Application.id).label("count")

        async with self._read() as session:
            today_row = await session.get(DailyStats, today)
            week = (
                await session.execute(totals.where(DailyStats.date >= week_start))
            ).one()
            overall = (await session.execute(totals)).one()
            platforms = await session.execute(
                select(Application.platform, applied_count)
                .where(Application.status == "applied")
                .group_by(Application.platform)
                .order_by(applied_count.desc(), Application.platform)
            )

            return SummaryStats(
                today=DailyStatsRead.model_validate(today_row) if today_row else None,
                this_week=OutcomeTotals(applied=week[0], failed=week[1], skipped=week[2]),
                total=OutcomeTotals(
                    applied=overall[0], failed=overall[1], skipped=overall[2]
                ),
                by_platform=[
                    PlatformCount(platform=platform, count=count)
                    for platform, count in platforms
                ],
            )

    # ── Activity log ────────────────────────────────────────────────────────

    async def get_logs(self, limit: int = 100, offset: int = 0) -> list[LogEntryRead]:
        if not self.is_initialized:
            return []

        async with self._read() as session:
            result = await session.execute(
                select(ActivityLog)
                .order_by(ActivityLog.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return [LogEntryRead.model_validate(row) for row in result.scalars()]
