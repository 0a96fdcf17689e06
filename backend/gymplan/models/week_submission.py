"""Seen week identifiers: the deduplication guard for ingestion runs."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gymplan.db.base import Base


class WeekSubmissionRecord(Base):
    __tablename__ = "week_submissions"

    week_id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. 20/10/2024-26/10/2024
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    scraped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    day_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
