"""Results of the freshness check and of an ingestion run."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SkipDecision(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    skip: bool
    reason: str
    days_ahead: int = 0
    days_since_update: int | None = None


class IngestionReport(BaseModel):
    """Summary of one ingestion run; also persisted as the operation log payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    succeeded: bool
    processed_count: int = 0  # newly stored week submissions
    errors: list[str] = Field(default_factory=list)
    source_urls: list[str] = Field(default_factory=list)
    timestamp: datetime
    skipped: bool = False
    skip_reason: str | None = None
    days_ahead: int | None = None
    aborted: bool = False
    upstream_status: int | None = None  # HTTP status from the source when acquisition failed
    days_stored: int = 0
    stored_weeks: list[str] = Field(default_factory=list)
    duplicate_weeks: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    duration_seconds: float | None = None
