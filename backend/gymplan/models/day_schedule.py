"""One stored training day, keyed by its canonical (year-qualified) date."""

from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.types import JSON
from sqlalchemy.orm import Mapped, mapped_column

from gymplan.db.base import Base


class DayScheduleRecord(Base):
    __tablename__ = "day_schedules"

    # Primary key doubles as the ordered index of known dates
    schedule_date: Mapped[date] = mapped_column("date", Date, primary_key=True)
    display_date: Mapped[str] = mapped_column(String(5), nullable=False)  # DD.MM
    day_name: Mapped[str] = mapped_column(String(32), nullable=False)
    week_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    scraped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sessions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # [] = rest day
    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
