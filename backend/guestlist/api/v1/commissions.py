# guestlist/api/v1/commissions.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.deps.admin import require_admin
from guestlist.api.errors import to_http
from guestlist.core.attribution import get_event_or_404, get_promoter_or_404
from guestlist.core.commissions import (
    LedgerFilters,
    approve_entries,
    create_entry,
    ledger_totals,
    mark_paid,
    revoke_entry,
)
from guestlist.core.errors import GuestlistError
from guestlist.core.statuses import CommissionStatus
from guestlist.db.session import get_db
from guestlist.models.commission_ledger import CommissionLedgerEntry
from guestlist.models.event import Event
from guestlist.models.promoter import Promoter
from guestlist.models.user import User
from guestlist.schemas.commission import (
    ApproveRequest,
    CommissionCreate,
    CommissionOut,
    CommissionPageOut,
    CommissionTotalsOut,
    PayoutRequest,
    TransitionResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions", tags=["commissions"])


def ledger_filters(
    promoter_id: Optional[UUID] = Query(default=None),
    event_id: Optional[UUID] = Query(default=None),
    status_filter: Optional[CommissionStatus] = Query(default=None, alias="status"),
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
) -> LedgerFilters:
    return LedgerFilters(
        promoter_id=promoter_id,
        event_id=event_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
    )


def totals_out(totals) -> CommissionTotalsOut:
    return CommissionTotalsOut(
        pending=totals.pending,
        approved=totals.approved,
        paid=totals.paid,
        pending_count=totals.pending_count,
    )


async def ledger_page(
    db: AsyncSession,
    filters: LedgerFilters,
    *,
    limit: int,
    offset: int,
) -> CommissionPageOut:
    """Newest first, with promoter/event names joined in and totals for the same filter."""
    total = await db.scalar(filters.apply(select(func.count()).select_from(CommissionLedgerEntry)))

    stmt = filters.apply(
        select(CommissionLedgerEntry, Promoter.name, Event.name)
        .join(Promoter, Promoter.id == CommissionLedgerEntry.promoter_id)
        .join(Event, Event.id == CommissionLedgerEntry.event_id)
    )
    rows = (
        await db.execute(
            stmt.order_by(CommissionLedgerEntry.created_at.desc()).limit(limit).offset(offset)
        )
    ).all()

    items = []
    for entry, promoter_name, event_name in rows:
        out = CommissionOut.model_validate(entry)
        out.promoter_name = promoter_name
        out.event_name = event_name
        items.append(out)

    return CommissionPageOut(
        items=items,
        total=int(total or 0),
        limit=limit,
        offset=offset,
        totals=totals_out(await ledger_totals(db, filters)),
    )


def _transition_result(requested: Sequence, updated: int) -> TransitionResult:
    return TransitionResult(requested=len(requested), updated=updated)


@router.post("", response_model=CommissionOut, status_code=status.HTTP_201_CREATED)
async def create_commission(
    payload: CommissionCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        promoter = await get_promoter_or_404(db, payload.promoter_id)
        event = await get_event_or_404(db, payload.event_id)
    except GuestlistError as e:
        raise to_http(e)

    entry = await create_entry(
        db,
        promoter=promoter,
        event_id=event.id,
        registrations_count=payload.registrations_count,
        commission_rate=payload.commission_rate,
        amount=payload.amount,
    )
    out = CommissionOut.model_validate(entry)
    out.promoter_name = promoter.name
    out.event_name = event.name
    return out


@router.get("", response_model=CommissionPageOut)
async def list_commissions(
    filters: LedgerFilters = Depends(ledger_filters),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return await ledger_page(db, filters, limit=limit, offset=offset)


@router.get("/summary", response_model=CommissionTotalsOut)
async def commissions_summary(
    filters: LedgerFilters = Depends(ledger_filters),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return totals_out(await ledger_totals(db, filters))


@router.post("/approve", response_model=TransitionResult)
async def approve_commissions(
    payload: ApproveRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """
    Bulk pending -> approved. Entries that are not pending are skipped, so
    repeating the call is harmless; ``updated`` reports what actually moved.
    """
    ids = list(dict.fromkeys(payload.ids))
    updated = await approve_entries(db, ids, approved_by=admin.id)
    return _transition_result(ids, updated)


@router.post("/{entry_id}/pay", response_model=TransitionResult)
async def pay_commission(
    entry_id: UUID,
    payload: Optional[PayoutRequest] = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """approved -> paid. A second call on the same entry updates nothing."""
    payload = payload or PayoutRequest()
    updated = await mark_paid(
        db,
        entry_id,
        payment_reference=payload.payment_reference,
        notes=payload.notes,
    )
    return _transition_result([entry_id], updated)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_commission(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        await revoke_entry(db, entry_id)
    except GuestlistError as e:
        raise to_http(e)
    return None
