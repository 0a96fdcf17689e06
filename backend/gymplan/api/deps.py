"""FastAPI dependencies: store, queries, response cache, ingestion pipeline, cron secret."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from gymplan.core.auth import is_valid_cron_secret
from gymplan.services.cache import TTLCache
from gymplan.services.firecrawl_client import FirecrawlSource
from gymplan.services.gemini_schedule_parser import GeminiScheduleParser
from gymplan.services.ingestion import IngestionPipeline
from gymplan.services.queries import ScheduleQueries
from gymplan.services.schedule_store import ScheduleStore


def get_schedule_store() -> ScheduleStore:
    return ScheduleStore()


def get_schedule_queries(
    store: Annotated[ScheduleStore, Depends(get_schedule_store)],
) -> ScheduleQueries:
    return ScheduleQueries(store)


def get_schedule_cache(request: Request) -> TTLCache:
    return request.app.state.schedule_cache


def build_ingestion_pipeline(store: ScheduleStore) -> IngestionPipeline:
    return IngestionPipeline(store, FirecrawlSource(), GeminiScheduleParser())


def get_ingestion_pipeline(
    store: Annotated[ScheduleStore, Depends(get_schedule_store)],
) -> IngestionPipeline:
    return build_ingestion_pipeline(store)


async def verify_cron_secret(request: Request) -> None:
    """Reject the trigger before any collaborator is built or called."""
    if not is_valid_cron_secret(request.headers.get("Authorization")):
        raise HTTPException(status_code=401, detail="Unauthorized")
