# guestlist/core/promoters.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.models.guest import Guest
from guestlist.models.promoter import Promoter
from guestlist.models.qr_scan import QRScan
from guestlist.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoterStats:
    registrations: int = 0
    attended: int = 0
    scans: int = 0


async def promoter_stats(
    db: AsyncSession,
    promoter_ids: Iterable[uuid.UUID],
    *,
    event_id: Optional[uuid.UUID] = None,
) -> dict[uuid.UUID, PromoterStats]:
    """
    Registrations / attended guests / scans per promoter, optionally limited
    to one event. Promoters with no activity are reported with zeroes.
    """
    ids = list(promoter_ids)
    if not ids:
        return {}

    guest_stmt = (
        select(
            Guest.promoter_id,
            func.count(Guest.id),
            func.count(Guest.id).filter(Guest.attended.is_(True)),
        )
        .where(Guest.promoter_id.in_(ids))
        .group_by(Guest.promoter_id)
    )
    scan_stmt = (
        select(QRScan.promoter_id, func.count(QRScan.id))
        .where(QRScan.promoter_id.in_(ids))
        .group_by(QRScan.promoter_id)
    )
    if event_id is not None:
        guest_stmt = guest_stmt.where(Guest.event_id == event_id)
        scan_stmt = scan_stmt.where(QRScan.event_id == event_id)

    registrations: dict[uuid.UUID, tuple[int, int]] = {}
    for pid, total, attended in (await db.execute(guest_stmt)).all():
        registrations[pid] = (int(total or 0), int(attended or 0))

    scans: dict[uuid.UUID, int] = {}
    for pid, total in (await db.execute(scan_stmt)).all():
        scans[pid] = int(total or 0)

    out: dict[uuid.UUID, PromoterStats] = {}
    for pid in ids:
        reg, att = registrations.get(pid, (0, 0))
        out[pid] = PromoterStats(registrations=reg, attended=att, scans=scans.get(pid, 0))
    return out


async def find_promoter_for_user(db: AsyncSession, user: User) -> Optional[Promoter]:
    """
    Promoter linked to ``user``. Falls back to a case-insensitive email match
    on an unlinked promoter and links it on first access.
    """
    promoter = (
        await db.execute(select(Promoter).where(Promoter.user_id == user.id))
    ).scalar_one_or_none()
    if promoter is not None:
        return promoter

    email = (user.email or "").strip().lower()
    if not email:
        return None

    promoter = (
        await db.execute(
            select(Promoter)
            .where(func.lower(Promoter.email) == email)
            .where(Promoter.user_id.is_(None))
            .order_by(Promoter.created_at.asc())
            .limit(1)
        )
    ).scalar_one_or_none()
    if promoter is None:
        return None

    promoter.user_id = user.id
    await db.commit()
    await db.refresh(promoter)
    logger.info("Linked promoter=%s to user=%s by email", promoter.id, user.id)
    return promoter
