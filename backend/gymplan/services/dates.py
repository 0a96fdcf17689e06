"""
Day.month dates from the blog -> canonical calendar dates.

Blog posts only ever say "20.10"; the year comes from the moment we look at the
data. Source data is always near-term (current or next week), so the only
ambiguity is around New Year.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import NamedTuple
from zoneinfo import ZoneInfo

from gymplan.config import settings
from gymplan.errors import InvalidDateError

PARTIAL_DATE_PATTERN = re.compile(r"^\s*(\d{1,2})\.(\d{1,2})\.?\s*$")

POLISH_DAY_NAMES = (
    "Poniedziałek",
    "Wtorek",
    "Środa",
    "Czwartek",
    "Piątek",
    "Sobota",
    "Niedziela",
)


class PartialDate(NamedTuple):
    day: int
    month: int

    def __str__(self) -> str:
        return f"{self.day:02d}.{self.month:02d}"


def parse_partial_date(value: str) -> PartialDate:
    """Parse "DD.MM" (or "D.M") into a PartialDate. Range checks happen in normalize()."""
    m = PARTIAL_DATE_PATTERN.match(value or "")
    if not m:
        raise InvalidDateError(f"Expected DD.MM date, got {value!r}")
    return PartialDate(day=int(m.group(1)), month=int(m.group(2)))


def normalize(partial: PartialDate, reference: date | datetime) -> date:
    """
    Resolve a day.month pair to a full date relative to reference.

    Same year as reference, except: reference in January and partial in December
    -> previous year; reference in December and partial in January -> next year.
    Not valid for historical backfills.
    """
    if not 1 <= partial.month <= 12:
        raise InvalidDateError(f"Month out of range in {partial}")
    if not 1 <= partial.day <= 31:
        raise InvalidDateError(f"Day out of range in {partial}")
    year = reference.year
    if reference.month == 1 and partial.month == 12:
        year -= 1
    elif reference.month == 12 and partial.month == 1:
        year += 1
    try:
        return date(year, partial.month, partial.day)
    except ValueError as e:
        raise InvalidDateError(f"{partial} does not exist in {year}") from e


def format_display_date(d: date) -> str:
    return f"{d.day:02d}.{d.month:02d}"


def day_name_for(d: date) -> str:
    return POLISH_DAY_NAMES[d.weekday()]


def schedule_tz(tz_name: str | None = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.schedule_timezone)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_today(now: datetime | None = None, tz: ZoneInfo | None = None) -> date:
    """Calendar date of now in the gym's timezone (naive datetimes are taken as UTC)."""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz or schedule_tz()).date()
