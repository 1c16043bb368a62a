# guestlist/models/commission_ledger.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from guestlist.core.statuses import CommissionStatus
from guestlist.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommissionLedgerEntry(Base):
    """
    Promoter commission ledger, one row per credited (promoter, event).

    registrations_count, commission_rate and amount are snapshots taken when
    the row is created. Nothing rewrites them afterwards: later changes to the
    promoter's rate or to guest attendance leave existing rows untouched.

    status moves pending -> approved -> paid only, and every mutation carries
    the expected current status in its WHERE clause
    (see guestlist.core.commissions).
    """

    __tablename__ = "commission_ledger"
    __table_args__ = (
        Index("ix_commission_ledger_promoter_created", "promoter_id", "created_at"),
        Index("ix_commission_ledger_event", "event_id"),
        Index("ix_commission_ledger_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    promoter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("promoters.id", ondelete="CASCADE"),
        nullable=False,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
    )

    registrations_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    # pending | approved | paid
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CommissionStatus.PENDING.value)

    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # captured at payout; not part of the state machine
    payment_reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payout_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )
