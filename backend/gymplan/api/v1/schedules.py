"""Schedules API: all days, today, a single DD.MM date, available dates."""

import re
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from gymplan.api.deps import get_schedule_cache, get_schedule_queries
from gymplan.errors import InvalidDateError
from gymplan.schemas.schedule import AvailableDate, DaySchedule
from gymplan.services.cache import MISSING, TTLCache
from gymplan.services.dates import local_today
from gymplan.services.queries import ScheduleQueries

router = APIRouter(prefix="/schedules", tags=["schedules"])

LIST_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
DAY_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=7200"
DATE_PATH_PATTERN = re.compile(r"^\d{2}\.\d{2}$")

INVALID_DATE_MESSAGE = "Nieprawidłowy format daty. Użyj formatu DD.MM"


@router.get("", response_model=list[DaySchedule])
async def list_schedules(
    response: Response,
    queries: Annotated[ScheduleQueries, Depends(get_schedule_queries)],
    cache: Annotated[TTLCache, Depends(get_schedule_cache)],
):
    """All stored days, newest first."""
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    days = cache.get("all", MISSING)
    if days is not MISSING:
        return days
    days = await queries.all()
    cache.set("all", days)
    return days


@router.get("/today", response_model=DaySchedule | None)
async def get_today(
    response: Response,
    queries: Annotated[ScheduleQueries, Depends(get_schedule_queries)],
    cache: Annotated[TTLCache, Depends(get_schedule_cache)],
):
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    key = f"day:{local_today(tz=queries.tz).isoformat()}"
    day = cache.get(key, MISSING)
    if day is not MISSING:
        return day
    day = await queries.today()
    cache.set(key, day)
    return day


@router.get("/dates", response_model=list[AvailableDate])
async def list_available_dates(
    response: Response,
    queries: Annotated[ScheduleQueries, Depends(get_schedule_queries)],
    cache: Annotated[TTLCache, Depends(get_schedule_cache)],
):
    """Dates that have data, for the day selector."""
    response.headers["Cache-Control"] = LIST_CACHE_CONTROL
    dates = cache.get("dates", MISSING)
    if dates is not MISSING:
        return dates
    dates = await queries.available_dates()
    cache.set("dates", dates)
    return dates


@router.get("/{day}", response_model=DaySchedule | None)
async def get_by_date(
    day: str,
    response: Response,
    queries: Annotated[ScheduleQueries, Depends(get_schedule_queries)],
    cache: Annotated[TTLCache, Depends(get_schedule_cache)],
):
    """Schedule for DD.MM; the year is resolved against today. null when nothing is stored."""
    if not DATE_PATH_PATTERN.match(day):
        raise HTTPException(status_code=400, detail=INVALID_DATE_MESSAGE)
    key = f"partial:{day}:{local_today(tz=queries.tz).isoformat()}"
    schedule = cache.get(key, MISSING)
    if schedule is MISSING:
        try:
            schedule = await queries.by_date(day)
        except InvalidDateError:
            raise HTTPException(status_code=400, detail=INVALID_DATE_MESSAGE)
        cache.set(key, schedule)
    response.headers["Cache-Control"] = DAY_CACHE_CONTROL
    return schedule
