# guestlist/api/v1/promoters.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.deps.admin import require_admin
from guestlist.api.errors import to_http
from guestlist.core.attribution import (
    MAX_TOKEN_RETRIES,
    allocate_promoter_token,
    get_event_or_404,
    get_or_create_attribution,
    get_promoter_or_404,
    guestlist_url,
)
from guestlist.core.errors import GuestlistError, TokenAllocationError
from guestlist.core.promoters import PromoterStats, promoter_stats
from guestlist.db.session import get_db
from guestlist.models.promoter import Promoter
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.models.user import User
from guestlist.schemas.promoter import (
    AttributionOut,
    PromoterCreate,
    PromoterListOut,
    PromoterOut,
    PromoterStatsOut,
    PromoterUpdate,
    PromoterWithStatsOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promoters", tags=["promoters"])


def attribution_out(qr: PromoterEventQR) -> AttributionOut:
    return AttributionOut(
        id=qr.id,
        promoter_id=qr.promoter_id,
        event_id=qr.event_id,
        qr_code_identifier=qr.qr_code_identifier,
        scans_count=qr.scans_count,
        registrations_count=qr.registrations_count,
        share_url=guestlist_url(qr.qr_code_identifier),
        created_at=qr.created_at,
    )


def _with_stats(promoter: Promoter, stats: Optional[PromoterStats]) -> PromoterWithStatsOut:
    out = PromoterWithStatsOut.model_validate(promoter)
    if stats is not None:
        out.stats = PromoterStatsOut(
            registrations=stats.registrations,
            attended=stats.attended,
            scans=stats.scans,
        )
    return out


@router.post("", response_model=PromoterOut, status_code=status.HTTP_201_CREATED)
async def create_promoter(
    payload: PromoterCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Allocates the promoter-level token server-side. The unique constraint
    is the final arbiter; on a collision at commit we retry with a new token.
    """
    data = payload.model_dump()
    if data.get("email"):
        data["email"] = str(data["email"]).strip().lower()

    for _ in range(MAX_TOKEN_RETRIES):
        try:
            token = await allocate_promoter_token(db)
        except TokenAllocationError as e:
            raise to_http(e)

        promoter = Promoter(**data, qr_code_identifier=token)
        db.add(promoter)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if data.get("user_id") is not None:
                taken = (
                    await db.execute(select(Promoter.id).where(Promoter.user_id == data["user_id"]))
                ).first()
                if taken:
                    raise HTTPException(
                        status_code=status.HTTP_409_CONFLICT,
                        detail="User is already linked to a promoter",
                    )
            continue

        await db.refresh(promoter)
        logger.info("Promoter created id=%s token=%s", promoter.id, promoter.qr_code_identifier)
        return promoter

    raise to_http(TokenAllocationError())


@router.get("", response_model=PromoterListOut)
async def list_promoters(
    q: Optional[str] = Query(default=None, description="Search name or email"),
    is_active: Optional[bool] = Query(default=None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    base = select(Promoter)
    count_stmt = select(func.count()).select_from(Promoter)

    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        cond = or_(func.lower(Promoter.name).like(like), func.lower(Promoter.email).like(like))
        base = base.where(cond)
        count_stmt = count_stmt.where(cond)
    if is_active is not None:
        base = base.where(Promoter.is_active.is_(is_active))
        count_stmt = count_stmt.where(Promoter.is_active.is_(is_active))

    total = await db.scalar(count_stmt)
    rows = (
        await db.execute(base.order_by(Promoter.created_at.desc()).limit(limit).offset(offset))
    ).scalars().all()

    stats = await promoter_stats(db, [p.id for p in rows])

    return PromoterListOut(
        items=[_with_stats(p, stats.get(p.id)) for p in rows],
        total=int(total or 0),
        limit=limit,
        offset=offset,
    )


@router.get("/{promoter_id}", response_model=PromoterWithStatsOut)
async def get_promoter(
    promoter_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        promoter = await get_promoter_or_404(db, promoter_id)
    except GuestlistError as e:
        raise to_http(e)

    stats = await promoter_stats(db, [promoter.id])
    return _with_stats(promoter, stats.get(promoter.id))


@router.patch("/{promoter_id}", response_model=PromoterOut)
async def update_promoter(
    promoter_id: UUID,
    payload: PromoterUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Rate changes apply to future ledger entries only; existing entries keep
    their snapshot.
    """
    try:
        promoter = await get_promoter_or_404(db, promoter_id)
    except GuestlistError as e:
        raise to_http(e)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")
    if data.get("email"):
        data["email"] = str(data["email"]).strip().lower()

    for k, v in data.items():
        setattr(promoter, k, v)

    await db.commit()
    await db.refresh(promoter)
    return promoter


@router.post("/{promoter_id}/events/{event_id}/qr", response_model=AttributionOut)
async def get_or_create_promoter_event_qr(
    promoter_id: UUID,
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """
    Returns the attribution link for (promoter, event), creating it on first
    call. Repeated calls return the same token.
    """
    try:
        promoter = await get_promoter_or_404(db, promoter_id)
        event = await get_event_or_404(db, event_id)
        qr, _created = await get_or_create_attribution(db, promoter=promoter, event=event)
    except GuestlistError as e:
        raise to_http(e)
    return attribution_out(qr)
