"""Ingestion run log, one entry per log date (rolling retention window)."""

from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from gymplan.db.base import Base


class OperationLog(Base):
    __tablename__ = "operation_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    log_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True, index=True)
    run_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    succeeded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    skipped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
