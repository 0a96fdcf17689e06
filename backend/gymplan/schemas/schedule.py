"""Schedule data model: sessions, days, week submissions.

Wire format is camelCase (``trainingSessions``, ``mainPartDuration``) to match
what the blog parser emits and what the web client reads.
"""

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TrainingSession(BaseModel):
    """One workout block. Type is free text (e.g. "Speed", "HYROX ATHLETIC"), not an enum."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: NonEmptyStr
    exercises: tuple[str, ...]  # display order matters
    training_method: str  # e.g. "2 x EMOM"
    main_part_duration: str  # e.g. "21 min", kept as text


class DaySchedule(BaseModel):
    """One calendar day. Empty training_sessions means a rest day."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    iso_date: date
    display_date: str = Field(..., alias="date")  # DD.MM
    day_name: str
    week_id: str | None = Field(None, alias="week")
    source_url: str | None = None
    scraped_at: datetime | None = None
    training_sessions: tuple[TrainingSession, ...] = ()


class WeekSubmission(BaseModel):
    """Validated output of one parsed blog post, expanded to canonical days."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    week_id: str = Field(..., alias="week")
    source_url: str
    scraped_at: datetime
    days: tuple[DaySchedule, ...]


class CandidateDay(BaseModel):
    """Untrusted day as returned by the LLM."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    date: NonEmptyStr  # DD.MM
    day_name: NonEmptyStr
    training_sessions: list[TrainingSession]


class CandidateWeek(BaseModel):
    """Untrusted week as returned by the LLM."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    week: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
    days: list[CandidateDay] = Field(..., min_length=1)


class AvailableDate(BaseModel):
    """Entry for the day selector: which dates have data."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    iso_date: date
    display_date: str = Field(..., alias="date")
    day_name: str
