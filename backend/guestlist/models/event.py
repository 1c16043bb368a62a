# backend/guestlist/models/event.py

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from guestlist.core.statuses import EventStatus
from guestlist.db.base import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_status_date", "status", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)

    # free text; venue_id links a managed venue when there is one
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    venue_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # upcoming | live | past (see guestlist.core.statuses.EventStatus)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EventStatus.UPCOMING.value, index=True
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), nullable=False
    )
