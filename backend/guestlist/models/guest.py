# backend/guestlist/models/guest.py
import re
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from guestlist.db.base import Base

_NON_DIGIT_RE = re.compile(r"\D")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Guest(Base):
    __tablename__ = "guests"
    __table_args__ = (
        # Second line of defense behind the duplicate guard (races).
        UniqueConstraint("event_id", "email", name="uq_guests_event_email"),
        Index("ix_guests_event_whatsapp_digits", "event_id", "whatsapp_digits"),
        Index("ix_guests_event_promoter", "event_id", "promoter_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # stored normalized (trimmed, lowercase)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    # as submitted, plus a digits-only copy used by the duplicate guard
    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    whatsapp_digits: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # NULL = direct (unattributed) registration
    promoter_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("promoters.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    registration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    @staticmethod
    def normalize_email(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        v = value.strip().lower()
        return v or None

    @staticmethod
    def normalize_phone(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        v = _NON_DIGIT_RE.sub("", value)
        return v or None
