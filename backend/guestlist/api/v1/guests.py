# guestlist/api/v1/guests.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.deps.admin import require_admin
from guestlist.db.session import get_db
from guestlist.models.guest import Guest
from guestlist.models.user import User
from guestlist.schemas.guest import AttendanceUpdate, GuestListOut, GuestOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guests", tags=["guests"])


@router.get("", response_model=GuestListOut)
async def list_guests(
    event_id: Optional[UUID] = Query(default=None),
    promoter_id: Optional[UUID] = Query(default=None),
    direct: Optional[bool] = Query(default=None, description="true = only unattributed registrations"),
    attended: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Name, email or WhatsApp number"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    conds = []
    if event_id is not None:
        conds.append(Guest.event_id == event_id)
    if promoter_id is not None:
        conds.append(Guest.promoter_id == promoter_id)
    if direct is True:
        conds.append(Guest.promoter_id.is_(None))
    elif direct is False:
        conds.append(Guest.promoter_id.is_not(None))
    if attended is not None:
        conds.append(Guest.attended.is_(attended))
    if search and search.strip():
        like = f"%{search.strip().lower()}%"
        conds.append(
            or_(
                func.lower(Guest.full_name).like(like),
                func.lower(Guest.email).like(like),
                Guest.whatsapp_number.like(f"%{search.strip()}%"),
            )
        )

    total = await db.scalar(select(func.count()).select_from(Guest).where(*conds))
    rows = (
        await db.execute(
            select(Guest)
            .where(*conds)
            .order_by(Guest.registration_date.desc())
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()

    return GuestListOut(
        items=[GuestOut.model_validate(g) for g in rows],
        total=int(total or 0),
        limit=limit,
        offset=offset,
    )


@router.patch("/{guest_id}/attendance", response_model=GuestOut)
async def set_attendance(
    guest_id: UUID,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Door check-in. Does not touch commission entries already in the ledger.
    """
    guest = await db.get(Guest, guest_id)
    if not guest:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Guest not found")

    guest.attended = payload.attended
    await db.commit()
    await db.refresh(guest)
    logger.info("Guest %s attended=%s", guest.id, guest.attended)
    return guest
