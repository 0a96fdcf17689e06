"""Tests for the scrape-skip decision."""

from datetime import date, datetime, timedelta, timezone

import pytest

from gymplan.schemas.schedule import DaySchedule
from gymplan.services.dates import format_display_date, schedule_tz
from gymplan.services.freshness import NEVER_UPDATED_DAYS, evaluate, should_skip

WARSAW = schedule_tz("Europe/Warsaw")
NOW = datetime(2024, 10, 21, 10, 0, tzinfo=timezone.utc)
TODAY = date(2024, 10, 21)


async def _store_until(store, last_day: date, first_day: date = TODAY) -> None:
    d = first_day
    while d <= last_day:
        await store.put_day(
            DaySchedule(iso_date=d, display_date=format_display_date(d), day_name="x", week_id="W")
        )
        d += timedelta(days=1)


@pytest.mark.parametrize("days_ahead,days_since_update,expected", [
    (13, 1, False),
    (14, 4, True),
    (14, 5, False),
    (20, 0, True),
    (0, 0, False),
    (30, NEVER_UPDATED_DAYS, False),
])
def test_evaluate_thresholds(days_ahead, days_since_update, expected):
    assert evaluate(days_ahead, days_since_update) is expected


@pytest.mark.asyncio
async def test_empty_store_does_not_skip(store):
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_ahead == 0
    assert decision.reason == "No schedules in database"


@pytest.mark.asyncio
async def test_two_weeks_ahead_and_recent_update_skips(store):
    await _store_until(store, TODAY + timedelta(days=14))
    await store.mark_updated(NOW - timedelta(days=4))
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is True
    assert decision.days_ahead == 14
    assert decision.days_since_update == 4


@pytest.mark.asyncio
async def test_update_five_days_ago_does_not_skip(store):
    await _store_until(store, TODAY + timedelta(days=14))
    await store.mark_updated(NOW - timedelta(days=5))
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_since_update == 5


@pytest.mark.asyncio
async def test_thirteen_days_ahead_does_not_skip(store):
    await _store_until(store, TODAY + timedelta(days=13))
    await store.mark_updated(NOW - timedelta(days=1))
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_ahead == 13
    assert decision.reason == "Only 13 days ahead, last updated 1 days ago"


@pytest.mark.asyncio
async def test_past_data_counts_as_zero_days_ahead(store):
    await _store_until(store, TODAY - timedelta(days=3), first_day=TODAY - timedelta(days=9))
    await store.mark_updated(NOW - timedelta(days=1))
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_ahead == 0


@pytest.mark.asyncio
async def test_never_updated_uses_sentinel(store):
    await _store_until(store, TODAY + timedelta(days=20))
    decision = await should_skip(store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_ahead == 20
    assert decision.days_since_update == NEVER_UPDATED_DAYS


@pytest.mark.asyncio
async def test_storage_failure_defaults_to_not_skipping(broken_store):
    decision = await should_skip(broken_store, NOW, WARSAW)
    assert decision.skip is False
    assert decision.days_ahead == 0
    assert decision.reason == "Error checking schedules"
