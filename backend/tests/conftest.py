"""Pytest configuration and shared fixtures."""

import os
from datetime import date, timedelta
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test config before app imports so config/engine use it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("SCHEDULE_TIMEZONE", "Europe/Warsaw")
os.environ.setdefault("MAX_SOURCE_DOCUMENTS", "2")

import gymplan.models  # noqa: E402,F401 - register tables
from gymplan.db.base import Base  # noqa: E402
from gymplan.services.dates import day_name_for  # noqa: E402
from gymplan.services.firecrawl_client import SourceDocument  # noqa: E402
from gymplan.services.schedule_store import ScheduleStore  # noqa: E402


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'gymplan_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_maker):
    return ScheduleStore(session_maker)


@pytest_asyncio.fixture
async def broken_store(tmp_path):
    """Store whose database has no tables: every call fails like an unavailable backend."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    yield ScheduleStore(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


def build_week_candidate(
    start: date,
    days: int = 7,
    week: str | None = None,
    rest_days: tuple[int, ...] = (),
) -> dict[str, Any]:
    """Parser-shaped week (camelCase, DD.MM dates) starting at start."""
    end = start + timedelta(days=days - 1)
    week = week or f"{start:%d/%m/%Y}-{end:%d/%m/%Y}"
    out_days = []
    for i in range(days):
        d = start + timedelta(days=i)
        sessions = []
        if i not in rest_days:
            sessions = [
                {
                    "type": "Speed",
                    "exercises": ["cal SKI/bike ERG", "box jump", f"DU (skakanka) {i}"],
                    "trainingMethod": "2 x EMOM",
                    "mainPartDuration": "21 min",
                },
                {
                    "type": "HYROX SPEED",
                    "exercises": ["ROW", "burpee broad jump"],
                    "trainingMethod": "4 rundy, co 1:30",
                    "mainPartDuration": "24 min",
                },
            ]
        out_days.append(
            {
                "date": f"{d.day:02d}.{d.month:02d}",
                "dayName": day_name_for(d),
                "trainingSessions": sessions,
            }
        )
    return {"week": week, "days": out_days}


@pytest.fixture
def week_candidate():
    return build_week_candidate


class FakeSource:
    """In-memory document source: url -> markdown, or an exception to raise."""

    def __init__(self, documents: dict[str, Any], listing_error: Exception | None = None):
        self.documents = documents
        self.listing_error = listing_error
        self.list_calls = 0
        self.fetched: list[str] = []

    async def list_candidate_documents(self) -> list[str]:
        self.list_calls += 1
        if self.listing_error is not None:
            raise self.listing_error
        return list(self.documents)

    async def fetch_document(self, url: str) -> SourceDocument:
        self.fetched.append(url)
        doc = self.documents[url]
        if isinstance(doc, Exception):
            raise doc
        return SourceDocument(url=url, raw_text=doc)


class FakeParser:
    """markdown -> candidate object (or exception to raise)."""

    def __init__(self, results: dict[str, Any]):
        self.results = results
        self.calls = 0

    async def parse(self, raw_text: str) -> Any:
        self.calls += 1
        result = self.results[raw_text]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def fake_parser():
    return FakeParser

