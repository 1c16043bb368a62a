# guestlist/core/commissions.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.core.errors import NotFoundError, NotRevocableError
from guestlist.core.statuses import (
    CommissionAction,
    CommissionStatus,
    source_statuses_for,
    statuses_allowing,
)
from guestlist.models.commission_ledger import CommissionLedgerEntry
from guestlist.models.guest import Guest
from guestlist.models.promoter import Promoter

logger = logging.getLogger(__name__)

CENT = Decimal("1.00")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def compute_commission_amount(
    *,
    registrations_count: int,
    commission_rate: Decimal,
) -> Decimal:
    """
    Central policy: a flat amount per credited registration.
    commission_rate=5 with 10 registrations pays 50.
    """
    if registrations_count < 0:
        raise ValueError("registrations_count cannot be negative")
    if commission_rate < 0:
        raise ValueError("commission_rate cannot be negative")
    return (Decimal(registrations_count) * Decimal(commission_rate)).quantize(CENT)


async def count_attributed_registrations(
    db: AsyncSession,
    *,
    promoter_id: uuid.UUID,
    event_id: uuid.UUID,
) -> int:
    stmt = (
        select(func.count(Guest.id))
        .where(Guest.promoter_id == promoter_id)
        .where(Guest.event_id == event_id)
    )
    return int((await db.execute(stmt)).scalar() or 0)


async def create_entry(
    db: AsyncSession,
    *,
    promoter: Promoter,
    event_id: uuid.UUID,
    registrations_count: Optional[int] = None,
    commission_rate: Optional[Decimal] = None,
    amount: Optional[Decimal] = None,
) -> CommissionLedgerEntry:
    """
    Create a pending ledger entry. Missing inputs are snapshotted now:
    registrations_count from the guest rows credited to the promoter,
    commission_rate from the promoter's current commission_percentage.
    """
    if registrations_count is None:
        registrations_count = await count_attributed_registrations(
            db, promoter_id=promoter.id, event_id=event_id
        )
    if commission_rate is None:
        commission_rate = Decimal(promoter.commission_percentage or 0)
    if amount is None:
        amount = compute_commission_amount(
            registrations_count=registrations_count,
            commission_rate=commission_rate,
        )

    entry = CommissionLedgerEntry(
        promoter_id=promoter.id,
        event_id=event_id,
        registrations_count=registrations_count,
        commission_rate=Decimal(commission_rate).quantize(CENT),
        amount=Decimal(amount).quantize(CENT),
        status=CommissionStatus.PENDING.value,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)

    logger.info(
        "Commission created entry=%s promoter=%s event=%s amount=%s",
        entry.id,
        entry.promoter_id,
        entry.event_id,
        entry.amount,
    )
    return entry


# =========================================================
# Transitions. Each one is a single statement whose WHERE clause carries the
# source statuses from COMMISSION_TRANSITIONS (or COMMISSION_ACTIONS for
# revoke), so a repeated call affects zero rows.
# =========================================================
async def approve_entries(
    db: AsyncSession,
    ids: Iterable[uuid.UUID],
    *,
    approved_by: uuid.UUID,
) -> int:
    id_list = list(dict.fromkeys(ids))
    if not id_list:
        return 0

    stmt = (
        update(CommissionLedgerEntry)
        .where(CommissionLedgerEntry.id.in_(id_list))
        .where(CommissionLedgerEntry.status.in_(source_statuses_for(CommissionStatus.APPROVED)))
        .values(
            status=CommissionStatus.APPROVED.value,
            approved_by=approved_by,
            approved_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()

    affected = int(result.rowcount or 0)
    logger.info("Approved %s of %s commission entries (by=%s)", affected, len(id_list), approved_by)
    return affected


async def mark_paid(
    db: AsyncSession,
    entry_id: uuid.UUID,
    *,
    payment_reference: Optional[str] = None,
    notes: Optional[str] = None,
) -> int:
    values: dict = {
        "status": CommissionStatus.PAID.value,
        "paid_at": utcnow(),
    }
    if payment_reference:
        values["payment_reference"] = payment_reference.strip()
    if notes:
        values["payout_notes"] = notes.strip()

    stmt = (
        update(CommissionLedgerEntry)
        .where(CommissionLedgerEntry.id == entry_id)
        .where(CommissionLedgerEntry.status.in_(source_statuses_for(CommissionStatus.PAID)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()

    affected = int(result.rowcount or 0)
    logger.info("Payout entry=%s affected=%s", entry_id, affected)
    return affected


async def revoke_entry(db: AsyncSession, entry_id: uuid.UUID) -> None:
    """
    Delete a pending entry. Approved and paid entries are commitments and
    cannot be revoked.
    """
    stmt = (
        delete(CommissionLedgerEntry)
        .where(CommissionLedgerEntry.id == entry_id)
        .where(CommissionLedgerEntry.status.in_(statuses_allowing(CommissionAction.REVOKE)))
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if int(result.rowcount or 0) == 1:
        await db.commit()
        logger.info("Commission revoked entry=%s", entry_id)
        return

    await db.rollback()
    current = (
        await db.execute(select(CommissionLedgerEntry.status).where(CommissionLedgerEntry.id == entry_id))
    ).scalar_one_or_none()
    if current is None:
        raise NotFoundError("Commission entry not found")
    raise NotRevocableError(status=current)


# =========================================================
# Reads
# =========================================================
@dataclass(frozen=True)
class LedgerFilters:
    promoter_id: Optional[uuid.UUID] = None
    event_id: Optional[uuid.UUID] = None
    status: Optional[CommissionStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    def apply(self, stmt):
        if self.promoter_id is not None:
            stmt = stmt.where(CommissionLedgerEntry.promoter_id == self.promoter_id)
        if self.event_id is not None:
            stmt = stmt.where(CommissionLedgerEntry.event_id == self.event_id)
        if self.status is not None:
            stmt = stmt.where(CommissionLedgerEntry.status == CommissionStatus(self.status).value)
        if self.date_from is not None:
            stmt = stmt.where(CommissionLedgerEntry.created_at >= self.date_from)
        if self.date_to is not None:
            stmt = stmt.where(CommissionLedgerEntry.created_at <= self.date_to)
        return stmt


@dataclass(frozen=True)
class LedgerTotals:
    pending: Decimal
    approved: Decimal
    paid: Decimal
    pending_count: int


async def ledger_totals(db: AsyncSession, filters: LedgerFilters) -> LedgerTotals:
    stmt = filters.apply(
        select(
            CommissionLedgerEntry.status,
            func.count(CommissionLedgerEntry.id),
            func.coalesce(func.sum(CommissionLedgerEntry.amount), 0),
        )
    ).group_by(CommissionLedgerEntry.status)

    sums: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for status_value, n, total in (await db.execute(stmt)).all():
        sums[status_value] = Decimal(total or 0).quantize(CENT)
        counts[status_value] = int(n or 0)

    zero = Decimal("0.00")
    return LedgerTotals(
        pending=sums.get(CommissionStatus.PENDING.value, zero),
        approved=sums.get(CommissionStatus.APPROVED.value, zero),
        paid=sums.get(CommissionStatus.PAID.value, zero),
        pending_count=counts.get(CommissionStatus.PENDING.value, 0),
    )
