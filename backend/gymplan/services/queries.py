"""Read-only lookups used by the schedules API."""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from gymplan.schemas.schedule import AvailableDate, DaySchedule
from gymplan.services.dates import PartialDate, local_today, normalize, parse_partial_date
from gymplan.services.schedule_store import ScheduleStore


class ScheduleQueries:
    def __init__(self, store: ScheduleStore, tz: ZoneInfo | None = None) -> None:
        self.store = store
        self.tz = tz

    async def today(self, now: datetime | None = None) -> DaySchedule | None:
        return await self.store.get_day(local_today(now, self.tz))

    async def by_date(self, partial: PartialDate | str, now: datetime | None = None) -> DaySchedule | None:
        """
        Look up a day.month date. The year is resolved against now, so "02.01"
        asked in late December means next January.
        """
        if isinstance(partial, str):
            partial = parse_partial_date(partial)
        return await self.store.get_day(normalize(partial, local_today(now, self.tz)))

    async def all(self) -> list[DaySchedule]:
        """Every stored day, newest first."""
        return [day async for day in self.store.list_days(newest_first=True)]

    async def available_dates(self) -> list[AvailableDate]:
        """Dates with data, oldest first (day selector order)."""
        return [
            AvailableDate(iso_date=day.iso_date, display_date=day.display_date, day_name=day.day_name)
            async for day in self.store.list_days(newest_first=False)
        ]
