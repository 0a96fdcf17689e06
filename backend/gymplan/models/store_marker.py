from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from gymplan.db.base import Base


class StoreMarker(Base):
    __tablename__ = "store_markers"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)  # latest_update
    value: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
