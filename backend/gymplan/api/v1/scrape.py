"""Ingestion trigger (cron / manual) and recent run logs. Both require CRON_SECRET."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from gymplan.api.deps import (
    get_ingestion_pipeline,
    get_schedule_cache,
    get_schedule_store,
    verify_cron_secret,
)
from gymplan.schemas.ingestion import IngestionReport
from gymplan.services.cache import TTLCache
from gymplan.services.ingestion import IngestionPipeline
from gymplan.services.schedule_store import ScheduleStore

router = APIRouter(prefix="/scrape", tags=["ingestion"])


@router.post("", response_model=IngestionReport)
async def run_ingestion(
    _: Annotated[None, Depends(verify_cron_secret)],
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
    cache: Annotated[TTLCache, Depends(get_schedule_cache)],
):
    report = await pipeline.run()
    if report.days_stored:
        cache.invalidate()
    if report.aborted:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Wystąpił błąd podczas pobierania danych",
                "details": report.model_dump(mode="json", by_alias=True),
            },
        )
    return report


@router.get("/logs")
async def list_ingestion_logs(
    _: Annotated[None, Depends(verify_cron_secret)],
    store: Annotated[ScheduleStore, Depends(get_schedule_store)],
    limit: int = 30,
) -> list[dict]:
    return await store.recent_operations(limit=max(1, min(limit, 100)))
