"""
Trust boundary for parser output.

The LLM returns something that is supposed to look like a week schedule. Nothing
about it is trusted: shape is checked with pydantic, every day.month is resolved
to a real date (whose weekday also names the day), and a document that fails
any check is rejected as a whole so no half-valid week reaches storage.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from gymplan.errors import InvalidDateError, ParseValidationError
from gymplan.schemas.schedule import CandidateWeek, DaySchedule, WeekSubmission
from gymplan.services.dates import day_name_for, format_display_date, normalize, parse_partial_date

logger = logging.getLogger(__name__)

# Regular weeks have 7 days; irregular posts seen in the wild range 5-8
EXPECTED_MIN_DAYS = 5
EXPECTED_MAX_DAYS = 8


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors()[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def validate_submission(
    candidate: Any,
    *,
    source_url: str,
    scraped_at: datetime,
    reference: date | datetime,
) -> WeekSubmission:
    """Check parser output and expand it into canonical days. Raises ParseValidationError."""
    if not isinstance(candidate, dict):
        raise ParseValidationError(
            f"Parser returned {type(candidate).__name__}, expected an object", source_url=source_url
        )
    try:
        week = CandidateWeek.model_validate(candidate)
    except ValidationError as e:
        raise ParseValidationError(f"Invalid schedule structure: {_describe(e)}", source_url=source_url) from e

    days: list[DaySchedule] = []
    seen: set[date] = set()
    for candidate_day in week.days:
        try:
            iso_date = normalize(parse_partial_date(candidate_day.date), reference)
        except InvalidDateError as e:
            raise ParseValidationError(f"Week {week.week}: {e}", source_url=source_url) from e
        if iso_date in seen:
            raise ParseValidationError(
                f"Week {week.week}: date {candidate_day.date} appears more than once", source_url=source_url
            )
        seen.add(iso_date)
        day_name = day_name_for(iso_date)
        if candidate_day.day_name.casefold() != day_name.casefold():
            logger.warning(
                "Week %s: %s labelled %r, but it is %s; using the calendar name",
                week.week,
                candidate_day.date,
                candidate_day.day_name,
                day_name,
            )
        days.append(
            DaySchedule(
                iso_date=iso_date,
                display_date=format_display_date(iso_date),
                day_name=day_name,
                week_id=week.week,
                source_url=source_url,
                scraped_at=scraped_at,
                training_sessions=tuple(candidate_day.training_sessions),
            )
        )

    if not EXPECTED_MIN_DAYS <= len(days) <= EXPECTED_MAX_DAYS:
        logger.warning("Week %s from %s has %d days (expected %d-%d)",
                       week.week, source_url, len(days), EXPECTED_MIN_DAYS, EXPECTED_MAX_DAYS)

    return WeekSubmission(week_id=week.week, source_url=source_url, scraped_at=scraped_at, days=tuple(days))
