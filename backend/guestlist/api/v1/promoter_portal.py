# guestlist/api/v1/promoter_portal.py
#
# Promoter self-service. Everything is scoped to the promoter resolved from
# the bearer token; no endpoint here takes a promoter id.

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.deps.promoter import require_promoter
from guestlist.api.errors import to_http
from guestlist.api.v1.commissions import ledger_page
from guestlist.api.v1.promoters import attribution_out
from guestlist.core.attribution import get_event_or_404, get_or_create_attribution
from guestlist.core.commissions import LedgerFilters
from guestlist.core.errors import GuestlistError
from guestlist.core.promoters import promoter_stats
from guestlist.core.statuses import CommissionStatus, EventStatus
from guestlist.db.session import get_db
from guestlist.models.event import Event
from guestlist.models.promoter import Promoter
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.schemas.commission import CommissionPageOut
from guestlist.schemas.promoter import (
    AttributionOut,
    PayoutDetails,
    PromoterEventOut,
    PromoterEventStatsOut,
    PromoterOut,
)

router = APIRouter(prefix="/promoter", tags=["promoter"])


@router.get("/me", response_model=PromoterOut)
async def my_profile(promoter: Promoter = Depends(require_promoter)):
    return promoter


@router.patch("/me/payout-details", response_model=PromoterOut)
async def update_payout_details(
    payload: PayoutDetails,
    db: AsyncSession = Depends(get_db),
    promoter: Promoter = Depends(require_promoter),
):
    promoter.payout_details = payload.model_dump()
    await db.commit()
    await db.refresh(promoter)
    return promoter


@router.get("/me/events", response_model=list[PromoterEventOut])
async def my_events(
    db: AsyncSession = Depends(get_db),
    promoter: Promoter = Depends(require_promoter),
):
    """Upcoming events, flagged with whether this promoter already promotes them."""
    rows = (
        await db.execute(
            select(Event, PromoterEventQR)
            .outerjoin(
                PromoterEventQR,
                (PromoterEventQR.event_id == Event.id) & (PromoterEventQR.promoter_id == promoter.id),
            )
            .where(Event.status == EventStatus.UPCOMING.value)
            .order_by(Event.date.asc(), Event.time.asc())
        )
    ).all()

    return [
        PromoterEventOut(
            event_id=event.id,
            name=event.name,
            event_date=event.date,
            venue=event.venue,
            is_promoting=qr is not None,
            attribution=attribution_out(qr) if qr is not None else None,
        )
        for event, qr in rows
    ]


@router.post("/me/events/{event_id}/promote", response_model=AttributionOut)
async def promote_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    promoter: Promoter = Depends(require_promoter),
):
    try:
        event = await get_event_or_404(db, event_id)
        qr, _created = await get_or_create_attribution(db, promoter=promoter, event=event)
    except GuestlistError as e:
        raise to_http(e)
    return attribution_out(qr)


@router.get("/me/events/{event_id}/stats", response_model=PromoterEventStatsOut)
async def my_event_stats(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    promoter: Promoter = Depends(require_promoter),
):
    try:
        event = await get_event_or_404(db, event_id)
    except GuestlistError as e:
        raise to_http(e)

    stats = (await promoter_stats(db, [promoter.id], event_id=event.id))[promoter.id]
    qr = (
        await db.execute(
            select(PromoterEventQR).where(
                PromoterEventQR.promoter_id == promoter.id,
                PromoterEventQR.event_id == event.id,
            )
        )
    ).scalar_one_or_none()

    return PromoterEventStatsOut(
        event_id=event.id,
        scans=stats.scans,
        registrations=stats.registrations,
        attended=stats.attended,
        attribution=attribution_out(qr) if qr is not None else None,
    )


@router.get("/me/commissions", response_model=CommissionPageOut)
async def my_commissions(
    status_filter: Optional[CommissionStatus] = Query(default=None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    promoter: Promoter = Depends(require_promoter),
):
    filters = LedgerFilters(promoter_id=promoter.id, status=status_filter)
    return await ledger_page(db, filters, limit=limit, offset=offset)
