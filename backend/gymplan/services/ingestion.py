"""
Ingestion run: freshness check -> list posts -> fetch + parse -> validate ->
dedup by week id -> store per day -> log the run.

Callers must serialize runs (one scheduler job, one manual trigger at a time);
there is no distributed lock.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, NamedTuple, Protocol
from zoneinfo import ZoneInfo

from prometheus_client import Counter

from gymplan.config import settings
from gymplan.errors import (
    AcquisitionError,
    DuplicateSubmissionError,
    ParseValidationError,
    StorageUnavailableError,
)
from gymplan.schemas.ingestion import IngestionReport
from gymplan.schemas.schedule import WeekSubmission
from gymplan.services.dates import local_today, utc_now
from gymplan.services.firecrawl_client import SourceDocument
from gymplan.services.freshness import should_skip
from gymplan.services.schedule_store import ScheduleStore
from gymplan.services.schedule_validation import validate_submission

logger = logging.getLogger(__name__)

INGESTION_RUNS = Counter("gymplan_ingestion_runs_total", "Ingestion runs by outcome", ["outcome"])
INGESTION_DAYS_STORED = Counter("gymplan_ingestion_days_stored_total", "Days written by ingestion runs")


class DocumentSource(Protocol):
    async def list_candidate_documents(self) -> list[str]: ...

    async def fetch_document(self, url: str) -> SourceDocument: ...


class ScheduleParser(Protocol):
    async def parse(self, raw_text: str) -> Any: ...


class _DocumentOutcome(NamedTuple):
    url: str
    submission: WeekSubmission | None = None
    error: str | None = None
    fetch_failed: bool = False
    status_code: int | None = None


class IngestionPipeline:
    def __init__(
        self,
        store: ScheduleStore,
        source: DocumentSource,
        parser: ScheduleParser,
        *,
        max_documents: int | None = None,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.store = store
        self.source = source
        self.parser = parser
        self.max_documents = max_documents if max_documents is not None else settings.max_source_documents
        self.tz = tz

    async def run(self, now: datetime | None = None) -> IngestionReport:
        started = time.monotonic()
        now = now or utc_now()
        logger.info("Starting schedule ingestion run")

        decision = await should_skip(self.store, now, self.tz)
        logger.info("Skip check: %s", decision.reason)
        if decision.skip:
            report = IngestionReport(
                succeeded=True,
                timestamp=now,
                skipped=True,
                skip_reason=decision.reason,
                days_ahead=decision.days_ahead,
            )
            return await self._finish(report, started, "skipped")

        try:
            urls = await self.source.list_candidate_documents()
        except AcquisitionError as e:
            logger.error("Listing source documents failed, aborting run: %s", e)
            return await self._abort(now, decision.days_ahead, str(e), e.status_code, started)
        except Exception as e:
            logger.exception("Unexpected error listing source documents, aborting run")
            return await self._abort(now, decision.days_ahead, f"Failed to list documents: {e!r}", None, started)

        urls = list(dict.fromkeys(urls))[: max(0, self.max_documents)]
        if not urls:
            logger.warning("No blog post URLs found")
            report = IngestionReport(
                succeeded=True, timestamp=now, notes=["No blog posts found"], days_ahead=decision.days_ahead
            )
            return await self._finish(report, started, "empty")

        outcomes = await asyncio.gather(*(self._acquire(url, now) for url in urls))
        report = IngestionReport(
            succeeded=False,
            timestamp=now,
            source_urls=[o.url for o in outcomes],
            days_ahead=decision.days_ahead,
        )

        if all(o.fetch_failed for o in outcomes):
            logger.error("Every source document failed to download, aborting run")
            report.aborted = True
            report.errors = [o.error for o in outcomes if o.error]
            report.upstream_status = next((o.status_code for o in outcomes if o.status_code), None)
            return await self._finish(report, started, "aborted")

        for outcome in outcomes:
            if outcome.error:
                report.errors.append(outcome.error)
                continue
            submission = outcome.submission
            try:
                stored = await self._store_submission(submission, now)
            except DuplicateSubmissionError as e:
                logger.info("%s, skipping", e)
                report.duplicate_weeks.append(e.week_id)
                continue
            except StorageUnavailableError as e:
                message = f"Error processing schedule {submission.week_id}: {e}"
                logger.error(message)
                report.errors.append(message)
                continue
            logger.info("Stored %d days from week %s", stored, submission.week_id)
            if stored < len(submission.days):
                report.notes.append(
                    f"Week {submission.week_id}: {len(submission.days) - stored} day(s) already stored by another week"
                )
            report.stored_weeks.append(submission.week_id)
            report.processed_count += 1
            report.days_stored += stored

        report.succeeded = not report.errors
        return await self._finish(report, started, "completed" if report.succeeded else "partial")

    async def _abort(
        self, now: datetime, days_ahead: int, error: str, upstream_status: int | None, started: float
    ) -> IngestionReport:
        report = IngestionReport(
            succeeded=False,
            aborted=True,
            errors=[error],
            timestamp=now,
            days_ahead=days_ahead,
            upstream_status=upstream_status,
        )
        return await self._finish(report, started, "aborted")

    async def _acquire(self, url: str, now: datetime) -> _DocumentOutcome:
        """Fetch, parse and validate one document; failures stay local to it."""
        try:
            document = await self.source.fetch_document(url)
        except AcquisitionError as e:
            logger.warning("Fetching %s failed: %s", url, e)
            return _DocumentOutcome(
                url=url, error=f"Failed to fetch {url}: {e}", fetch_failed=True, status_code=e.status_code
            )
        except Exception as e:
            logger.exception("Unexpected error fetching %s", url)
            return _DocumentOutcome(url=url, error=f"Failed to fetch {url}: {e!r}", fetch_failed=True)
        try:
            candidate = await self.parser.parse(document.raw_text)
            submission = validate_submission(
                candidate,
                source_url=document.url,
                scraped_at=now,
                reference=local_today(now, self.tz),
            )
        except ParseValidationError as e:
            logger.warning("Skipping %s: %s", url, e)
            return _DocumentOutcome(url=url, error=f"Failed to parse {url}: {e}")
        except Exception as e:
            logger.exception("Unexpected error parsing %s", url)
            return _DocumentOutcome(url=url, error=f"Failed to parse {url}: {e!r}")
        return _DocumentOutcome(url=url, submission=submission)

    async def _store_submission(self, submission: WeekSubmission, now: datetime) -> int:
        if await self.store.submission_exists(submission.week_id):
            raise DuplicateSubmissionError(submission.week_id)
        stored = 0
        for day in submission.days:
            if await self.store.put_day(day):
                stored += 1
        await self.store.record_submission_identifier(
            submission.week_id,
            source_url=submission.source_url,
            scraped_at=submission.scraped_at,
            day_count=len(submission.days),
        )
        await self.store.mark_updated(now)
        return stored

    async def _finish(self, report: IngestionReport, started: float, outcome: str) -> IngestionReport:
        report.duration_seconds = round(time.monotonic() - started, 2)
        INGESTION_RUNS.labels(outcome=outcome).inc()
        if report.days_stored:
            INGESTION_DAYS_STORED.inc(report.days_stored)
        logger.info(
            "Ingestion %s in %.2fs: stored=%d duplicates=%d errors=%d",
            outcome,
            report.duration_seconds,
            len(report.stored_weeks),
            len(report.duplicate_weeks),
            len(report.errors),
        )
        try:
            await self.store.log_operation(report)
        except StorageUnavailableError as e:
            logger.error("Could not persist ingestion log: %s", e)
        return report
