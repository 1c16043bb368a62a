# guestlist/api/v1/events.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.deps.admin import require_admin
from guestlist.api.errors import to_http
from guestlist.core.errors import EventHasCommitmentsError, InvalidStatusTransitionError
from guestlist.core.statuses import CommissionAction, EventStatus, can_transition_event, statuses_allowing
from guestlist.db.session import get_db
from guestlist.models.commission_ledger import CommissionLedgerEntry
from guestlist.models.event import Event
from guestlist.models.guest import Guest
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.models.qr_scan import QRScan
from guestlist.models.user import User
from guestlist.schemas.event import EventCreate, EventListOut, EventOut, EventStatusUpdate, EventUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


async def _get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    event = Event(**payload.model_dump(), status=EventStatus.UPCOMING.value)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Event created id=%s name=%r", event.id, event.name)
    return event


@router.get("", response_model=EventListOut)
async def list_events(
    status_filter: Optional[EventStatus] = Query(default=None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    base = select(Event)
    count_stmt = select(func.count()).select_from(Event)
    if status_filter is not None:
        base = base.where(Event.status == status_filter.value)
        count_stmt = count_stmt.where(Event.status == status_filter.value)

    total = await db.scalar(count_stmt)
    rows = (
        await db.execute(
            base.order_by(Event.date.desc(), Event.created_at.desc()).limit(limit).offset(offset)
        )
    ).scalars().all()

    return EventListOut(
        items=[EventOut.model_validate(e) for e in rows],
        total=int(total or 0),
        limit=limit,
        offset=offset,
    )


@router.get("/{event_id}", response_model=EventOut)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return await _get_event(db, event_id)


@router.patch("/{event_id}", response_model=EventOut)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    event = await _get_event(db, event_id)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")
    for k, v in data.items():
        setattr(event, k, v)

    await db.commit()
    await db.refresh(event)
    return event


@router.post("/{event_id}/status", response_model=EventOut)
async def change_event_status(
    event_id: UUID,
    payload: EventStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Manual status transition: upcoming -> live -> past (upcoming -> past is
    allowed too). Re-sending the current status is a no-op.
    """
    event = await _get_event(db, event_id)
    current = EventStatus(event.status)
    target = payload.status

    if current == target:
        return event

    if not can_transition_event(current, target):
        raise to_http(
            InvalidStatusTransitionError(
                f"Cannot move event from {current.value} to {target.value}.",
                current=current.value,
                requested=target.value,
            )
        )

    event.status = target.value
    await db.commit()
    await db.refresh(event)
    logger.info("Event %s status %s -> %s", event.id, current.value, target.value)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Deletes the event with its guests, scans, attribution links and pending
    commissions. Approved or paid commissions are payout records, so an event
    that has any is refused with 409 instead.
    """
    event = await _get_event(db, event_id)

    revocable = statuses_allowing(CommissionAction.REVOKE)
    committed = await db.scalar(
        select(func.count())
        .select_from(CommissionLedgerEntry)
        .where(CommissionLedgerEntry.event_id == event.id)
        .where(CommissionLedgerEntry.status.not_in(revocable))
    )
    if committed:
        raise to_http(EventHasCommitmentsError(event_id=str(event.id), commissions=int(committed)))

    await db.execute(
        delete(CommissionLedgerEntry)
        .where(CommissionLedgerEntry.event_id == event.id)
        .where(CommissionLedgerEntry.status.in_(revocable))
        .execution_options(synchronize_session=False)
    )
    for model in (Guest, QRScan, PromoterEventQR):
        await db.execute(
            delete(model).where(model.event_id == event.id).execution_options(synchronize_session=False)
        )
    await db.delete(event)
    await db.commit()
    logger.info("Event deleted id=%s", event_id)
    return None
