"""
Scrape-skip decision: is another ingestion run worth it?

The gym publishes two weeks ahead roughly once a week. Skip when we already
cover two weeks ahead and refreshed recently; otherwise run.
"""
from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from gymplan.errors import StorageUnavailableError
from gymplan.schemas.ingestion import SkipDecision
from gymplan.services.dates import local_today, utc_now
from gymplan.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

SKIP_MIN_DAYS_AHEAD = 14
SKIP_MAX_DAYS_SINCE_UPDATE = 5  # exclusive
NEVER_UPDATED_DAYS = 999


def evaluate(days_ahead: int, days_since_update: int) -> bool:
    """True if acquisition can be skipped."""
    return days_ahead >= SKIP_MIN_DAYS_AHEAD and days_since_update < SKIP_MAX_DAYS_SINCE_UPDATE


async def should_skip(
    store: ScheduleStore,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> SkipDecision:
    """Decide from stored coverage and last update; storage errors never cause a skip."""
    now = now or utc_now()
    today = local_today(now, tz)
    try:
        latest = await store.latest_date()
        last_update = await store.last_update_instant()
    except StorageUnavailableError as e:
        logger.warning("Freshness check failed, not skipping: %s", e)
        return SkipDecision(skip=False, reason="Error checking schedules", days_ahead=0)

    if latest is None:
        return SkipDecision(
            skip=False,
            reason="No schedules in database",
            days_ahead=0,
            days_since_update=None if last_update is None else _days_between(last_update, now),
        )

    days_ahead = max(0, (latest - today).days)
    days_since_update = NEVER_UPDATED_DAYS if last_update is None else _days_between(last_update, now)

    if evaluate(days_ahead, days_since_update):
        return SkipDecision(
            skip=True,
            reason=f"Have {days_ahead} days of schedules, last updated {days_since_update} days ago",
            days_ahead=days_ahead,
            days_since_update=days_since_update,
        )
    return SkipDecision(
        skip=False,
        reason=f"Only {days_ahead} days ahead, last updated {days_since_update} days ago",
        days_ahead=days_ahead,
        days_since_update=days_since_update,
    )


def _days_between(earlier: datetime, now: datetime) -> int:
    """Whole days elapsed (floored); a marker in the future counts as 0."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=earlier.tzinfo)
    return max(0, int((now - earlier).total_seconds() // 86400))
