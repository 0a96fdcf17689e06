import logging
import sys
from contextlib import asynccontextmanager

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from gymplan.api.v1 import schedules, scrape

# Ensure app loggers (ingestion, Firecrawl, Gemini) print to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("gymplan").setLevel(logging.DEBUG)
from gymplan.config import settings
from gymplan.db.session import init_db
from gymplan.errors import StorageUnavailableError
from gymplan.services.cache import TTLCache
from gymplan.services.http_client import close_http_client, init_http_client

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def scheduled_ingestion_run():
    """Cron entry point: one ingestion run; drop cached reads if anything was stored."""
    from gymplan.api.deps import build_ingestion_pipeline
    from gymplan.services.schedule_store import ScheduleStore

    try:
        report = await build_ingestion_pipeline(ScheduleStore()).run()
    except Exception as e:
        logger.exception("Scheduled ingestion run failed")
        sentry_sdk.set_context("ingestion", {"trigger": "cron"})
        sentry_sdk.capture_exception(e)
        return
    if report.days_stored:
        app.state.schedule_cache.invalidate()
    if report.aborted:
        sentry_sdk.capture_message(f"Ingestion aborted: {'; '.join(report.errors)}", level="error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.app_env == "production" and not settings.cron_secret:
        logger.warning("CRON_SECRET is not set; POST /api/v1/scrape will reject every call")
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.app_env)
    await init_db()
    init_http_client()
    if settings.google_gemini_api_key:
        import google.generativeai as genai
        genai.configure(api_key=settings.google_gemini_api_key)

    # Single instance: runs must never overlap (no distributed lock)
    for hour in settings.cron_hours:
        scheduler.add_job(
            scheduled_ingestion_run,
            "cron",
            hour=hour,
            minute=0,
            timezone=settings.schedule_timezone,
            max_instances=1,
            coalesce=True,
        )

    scheduler.start()
    yield
    scheduler.shutdown()
    await close_http_client()


limiter = Limiter(key_func=get_remote_address, default_limits=["200/minute"])

app = FastAPI(
    title="GymPlan API",
    description="Weekly gym training schedules scraped from the blog, served per day",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.state.schedule_cache = TTLCache(ttl_seconds=settings.read_cache_ttl_seconds)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)


@app.exception_handler(StorageUnavailableError)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Wystąpił błąd podczas pobierania planów treningowych"},
    )


_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] if settings.cors_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(schedules.router, prefix="/api/v1")
app.include_router(scrape.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}
