"""
Day-keyed schedule storage.

Key space: one row per canonical date (day_schedules, PK doubles as the ordered
date index), the set of seen week ids (week_submissions), a "latest_update"
marker (store_markers) and a rolling window of ingestion run logs
(operation_logs). Every call opens its own session, so put_day() for distinct
dates may run concurrently. Nothing here is atomic across a multi-day week.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gymplan.config import settings
from gymplan.errors import StorageUnavailableError
from gymplan.models.day_schedule import DayScheduleRecord
from gymplan.models.operation_log import OperationLog
from gymplan.models.store_marker import StoreMarker
from gymplan.models.week_submission import WeekSubmissionRecord
from gymplan.schemas.ingestion import IngestionReport
from gymplan.schemas.schedule import DaySchedule, TrainingSession

logger = logging.getLogger(__name__)

LATEST_UPDATE_MARKER = "latest_update"


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_schedule(row: DayScheduleRecord) -> DaySchedule:
    return DaySchedule(
        iso_date=row.schedule_date,
        display_date=row.display_date,
        day_name=row.day_name,
        week_id=row.week_id or None,
        source_url=row.source_url,
        scraped_at=_as_utc(row.scraped_at),
        training_sessions=tuple(TrainingSession.model_validate(s) for s in (row.sessions or [])),
    )


def _apply(row: DayScheduleRecord, day: DaySchedule) -> None:
    row.display_date = day.display_date
    row.day_name = day.day_name
    row.week_id = day.week_id or ""
    row.source_url = day.source_url
    row.scraped_at = _as_utc(day.scraped_at)
    row.sessions = [s.model_dump(mode="json", by_alias=True) for s in day.training_sessions]
    row.stored_at = datetime.now(timezone.utc)


class ScheduleStore:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        *,
        log_retention_days: int | None = None,
    ) -> None:
        if session_maker is None:
            from gymplan.db.session import async_session_maker

            session_maker = async_session_maker
        self._session_maker = session_maker
        self.log_retention_days = (
            log_retention_days if log_retention_days is not None else settings.operation_log_retention_days
        )

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error("Schedule store: %s failed: %s", op, e)
            raise StorageUnavailableError(f"Schedule storage unavailable during {op}") from e

    # ------------------------------------------------------------------
    # Days
    # ------------------------------------------------------------------

    async def put_day(self, day: DaySchedule) -> bool:
        """
        Store one day under its canonical date. Returns False when the date is
        already owned by another week (first write wins); re-putting a day from
        the same week overwrites it.
        """
        async with self._session("put_day") as session:
            row = await session.get(DayScheduleRecord, day.iso_date)
            if row is not None and row.week_id != (day.week_id or ""):
                logger.warning(
                    "Day %s already stored from week %s; ignoring week %s",
                    day.iso_date,
                    row.week_id,
                    day.week_id,
                )
                return False
            if row is None:
                row = DayScheduleRecord(schedule_date=day.iso_date)
                session.add(row)
            _apply(row, day)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.warning("Day %s was stored concurrently; keeping the first write", day.iso_date)
                return False
        return True

    async def get_day(self, day: date) -> DaySchedule | None:
        async with self._session("get_day") as session:
            row = await session.get(DayScheduleRecord, day)
            return _to_schedule(row) if row is not None else None

    async def list_days(self, newest_first: bool = True, batch_size: int = 100) -> AsyncIterator[DaySchedule]:
        """Yield stored days in date order, reading in batches; each iteration re-reads current state."""
        column = DayScheduleRecord.schedule_date
        cursor: date | None = None
        while True:
            q = select(DayScheduleRecord)
            if cursor is not None:
                q = q.where(column < cursor if newest_first else column > cursor)
            q = q.order_by(column.desc() if newest_first else column.asc()).limit(batch_size)
            async with self._session("list_days") as session:
                r = await session.execute(q)
                batch = [_to_schedule(row) for row in r.scalars().all()]
            for day in batch:
                yield day
            if len(batch) < batch_size:
                return
            cursor = batch[-1].iso_date

    async def latest_date(self) -> date | None:
        """Furthest canonical date with a stored record."""
        async with self._session("latest_date") as session:
            r = await session.execute(select(func.max(DayScheduleRecord.schedule_date)))
            return r.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Week dedup guard
    # ------------------------------------------------------------------

    async def submission_exists(self, week_id: str) -> bool:
        async with self._session("submission_exists") as session:
            return await session.get(WeekSubmissionRecord, week_id) is not None

    async def record_submission_identifier(
        self,
        week_id: str,
        *,
        source_url: str | None = None,
        scraped_at: datetime | None = None,
        day_count: int = 0,
    ) -> None:
        async with self._session("record_submission_identifier") as session:
            if await session.get(WeekSubmissionRecord, week_id) is not None:
                return
            session.add(
                WeekSubmissionRecord(
                    week_id=week_id,
                    source_url=source_url,
                    scraped_at=scraped_at,
                    day_count=day_count,
                )
            )
            await session.commit()

    # ------------------------------------------------------------------
    # Update marker
    # ------------------------------------------------------------------

    async def mark_updated(self, instant: datetime) -> None:
        instant = _as_utc(instant)
        async with self._session("mark_updated") as session:
            row = await session.get(StoreMarker, LATEST_UPDATE_MARKER)
            if row is None:
                session.add(StoreMarker(name=LATEST_UPDATE_MARKER, value=instant))
            else:
                row.value = instant
            await session.commit()

    async def last_update_instant(self) -> datetime | None:
        async with self._session("last_update_instant") as session:
            row = await session.get(StoreMarker, LATEST_UPDATE_MARKER)
            return _as_utc(row.value) if row is not None else None

    # ------------------------------------------------------------------
    # Operation log
    # ------------------------------------------------------------------

    async def log_operation(self, report: IngestionReport) -> None:
        """Keep one log entry per UTC day (last run wins) and drop entries past retention."""
        log_date = _as_utc(report.timestamp).date()
        cutoff = log_date - timedelta(days=self.log_retention_days)
        async with self._session("log_operation") as session:
            r = await session.execute(select(OperationLog).where(OperationLog.log_date == log_date))
            row = r.scalar_one_or_none()
            if row is None:
                row = OperationLog(log_date=log_date)
                session.add(row)
            row.run_at = _as_utc(report.timestamp)
            row.succeeded = report.succeeded
            row.skipped = report.skipped
            row.payload = report.model_dump(mode="json", by_alias=True)
            await session.execute(delete(OperationLog).where(OperationLog.log_date < cutoff))
            await session.commit()

    async def recent_operations(self, limit: int = 30) -> list[dict]:
        async with self._session("recent_operations") as session:
            r = await session.execute(
                select(OperationLog.payload).order_by(OperationLog.log_date.desc()).limit(limit)
            )
            return [payload for payload in r.scalars().all() if payload is not None]
