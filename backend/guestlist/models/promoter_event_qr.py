from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from guestlist.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromoterEventQR(Base):
    """
    Attribution record: lets scans and registrations for one event be
    credited to one promoter.

    Counters are analytics only. They are bumped with server-side
    ``count = count + 1`` updates and never decremented.
    """

    __tablename__ = "promoter_event_qr"
    __table_args__ = (
        UniqueConstraint("promoter_id", "event_id", name="uq_promoter_event_qr_promoter_event"),
        UniqueConstraint("qr_code_identifier", name="uq_promoter_event_qr_token"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    promoter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("promoters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    qr_code_identifier: Mapped[str] = mapped_column(String(100), nullable=False)

    scans_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    registrations_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, server_default=func.now()
    )
