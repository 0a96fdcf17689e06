"""Tests for the schedules read API and the ingestion trigger."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gymplan.api.deps import get_ingestion_pipeline, get_schedule_store
from gymplan.errors import AcquisitionError
from gymplan.main import app
from gymplan.services.cache import TTLCache
from gymplan.services.dates import day_name_for, format_display_date, local_today
from gymplan.services.ingestion import IngestionPipeline
from gymplan.services.schedule_validation import validate_submission

AUTH = {"Authorization": "Bearer test-cron-secret"}
POST_URL = "https://www.hardywyzszaforma.pl/post/plan-treningowy"


@pytest_asyncio.fixture
async def client(store):
    """AsyncClient against the app with the per-test store and an empty response cache."""
    app.dependency_overrides[get_schedule_store] = lambda: store
    app.state.schedule_cache = TTLCache(ttl_seconds=300)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _store_current_week(store, week_candidate, rest_days=()):
    """Store a week starting today (local time) so date lookups resolve to this year."""
    today = local_today()
    submission = validate_submission(
        week_candidate(today, rest_days=rest_days),
        source_url=POST_URL,
        scraped_at=datetime.now(timezone.utc),
        reference=today,
    )
    for day in submission.days:
        await store.put_day(day)
    return today


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_list_schedules_empty(client: AsyncClient):
    resp = await client.get("/api/v1/schedules")
    assert resp.status_code == 200
    assert resp.json() == []
    assert "s-maxage=300" in resp.headers["cache-control"]


@pytest.mark.asyncio
async def test_list_schedules_newest_first_in_camel_case(client: AsyncClient, store, week_candidate):
    today = await _store_current_week(store, week_candidate)
    resp = await client.get("/api/v1/schedules")
    assert resp.status_code == 200
    data = resp.json()
    assert len(data) == 7
    assert data[0]["isoDate"] == (today + timedelta(days=6)).isoformat()
    assert data[-1]["isoDate"] == today.isoformat()
    first = data[-1]
    assert first["date"] == format_display_date(today)
    assert first["dayName"] == day_name_for(today)
    assert first["week"]
    session = first["trainingSessions"][0]
    assert set(session) == {"type", "exercises", "trainingMethod", "mainPartDuration"}
    assert session["exercises"] == ["cal SKI/bike ERG", "box jump", "DU (skakanka) 0"]


@pytest.mark.asyncio
async def test_today_and_by_date(client: AsyncClient, store, week_candidate):
    today = await _store_current_week(store, week_candidate)

    resp = await client.get("/api/v1/schedules/today")
    assert resp.status_code == 200
    assert resp.json()["isoDate"] == today.isoformat()

    resp = await client.get(f"/api/v1/schedules/{format_display_date(today)}")
    assert resp.status_code == 200
    assert resp.json()["isoDate"] == today.isoformat()
    assert "s-maxage=3600" in resp.headers["cache-control"]


@pytest.mark.asyncio
async def test_rest_day_and_unknown_day(client: AsyncClient, store, week_candidate):
    today = await _store_current_week(store, week_candidate, rest_days=(1,))
    resp = await client.get(f"/api/v1/schedules/{format_display_date(today + timedelta(days=1))}")
    assert resp.status_code == 200
    assert resp.json()["trainingSessions"] == []

    resp = await client.get(f"/api/v1/schedules/{format_display_date(today + timedelta(days=10))}")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_today_is_null_when_nothing_stored(client: AsyncClient):
    resp = await client.get("/api/v1/schedules/today")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["2024-10-20", "1.10", "31.02", "00.05", "20.13"])
async def test_by_date_rejects_bad_dates(client: AsyncClient, path):
    resp = await client.get(f"/api/v1/schedules/{path}")
    assert resp.status_code == 400
    assert "DD.MM" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_available_dates(client: AsyncClient, store, week_candidate):
    today = await _store_current_week(store, week_candidate)
    resp = await client.get("/api/v1/schedules/dates")
    assert resp.status_code == 200
    data = resp.json()
    assert [d["isoDate"] for d in data] == [(today + timedelta(days=i)).isoformat() for i in range(7)]
    assert set(data[0]) == {"isoDate", "date", "dayName"}


@pytest.mark.asyncio
async def test_storage_unavailable_is_a_server_error(client: AsyncClient, broken_store):
    app.dependency_overrides[get_schedule_store] = lambda: broken_store
    resp = await client.get("/api/v1/schedules/today")
    assert resp.status_code == 503
    resp = await client.get("/api/v1/schedules")
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_scrape_requires_secret_before_building_pipeline(client: AsyncClient):
    built = []

    def _pipeline():
        built.append(True)
        raise AssertionError("pipeline must not be built for unauthorized calls")

    app.dependency_overrides[get_ingestion_pipeline] = _pipeline
    resp = await client.post("/api/v1/scrape")
    assert resp.status_code == 401
    resp = await client.post("/api/v1/scrape", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    resp = await client.post("/api/v1/scrape", headers={"Authorization": "test-cron-secret"})
    assert resp.status_code == 401
    assert built == []


@pytest.mark.asyncio
async def test_scrape_runs_pipeline_and_refreshes_cached_reads(
    client: AsyncClient, store, fake_source, fake_parser, week_candidate
):
    today = local_today()
    source = fake_source({POST_URL: "md"})
    parser = fake_parser({"md": week_candidate(today)})
    app.dependency_overrides[get_ingestion_pipeline] = lambda: IngestionPipeline(store, source, parser)

    assert (await client.get("/api/v1/schedules")).json() == []  # now cached

    resp = await client.post("/api/v1/scrape", headers=AUTH)
    assert resp.status_code == 200
    report = resp.json()
    assert report["succeeded"] is True
    assert report["processedCount"] == 1
    assert report["daysStored"] == 7
    assert report["sourceUrls"] == [POST_URL]

    assert len((await client.get("/api/v1/schedules")).json()) == 7

    logs = await client.get("/api/v1/scrape/logs", headers=AUTH)
    assert logs.status_code == 200
    assert logs.json()[0]["processedCount"] == 1
    assert (await client.get("/api/v1/scrape/logs")).status_code == 401


@pytest.mark.asyncio
async def test_scrape_acquisition_failure_returns_500(client: AsyncClient, store, fake_source, fake_parser):
    source = fake_source({}, listing_error=AcquisitionError("Firecrawl returned 502", status_code=502))
    app.dependency_overrides[get_ingestion_pipeline] = lambda: IngestionPipeline(store, source, fake_parser({}))
    resp = await client.post("/api/v1/scrape", headers=AUTH)
    assert resp.status_code == 500
    body = resp.json()
    assert body["details"]["aborted"] is True
    assert body["details"]["errors"] == ["Firecrawl returned 502"]
    assert body["details"]["upstreamStatus"] == 502


@pytest.mark.asyncio
async def test_today_and_dates_are_not_treated_as_dates(client: AsyncClient):
    # Both paths would be 400 if /{day} captured them
    resp = await client.get("/api/v1/schedules/today")
    assert resp.status_code == 200
    assert resp.json() is None
    resp = await client.get("/api/v1/schedules/dates")
    assert resp.status_code == 200
    assert resp.json() == []


class _SteppingClock:
    """Advances by step on every read."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.mark.asyncio
async def test_cached_list_read_near_expiry(client: AsyncClient, store, week_candidate):
    await _store_current_week(store, week_candidate)
    app.state.schedule_cache = TTLCache(ttl_seconds=300, clock=_SteppingClock(200))
    first = await client.get("/api/v1/schedules")
    second = await client.get("/api/v1/schedules")
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert len(second.json()) == 7
