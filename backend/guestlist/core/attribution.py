# guestlist/core/attribution.py
from __future__ import annotations

import logging
import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.core.config import settings
from guestlist.core.errors import (
    InvalidLinkError,
    NotFoundError,
    PromoterInactiveError,
    RegistrationClosedError,
    TokenAllocationError,
)
from guestlist.core.statuses import EventStatus
from guestlist.models.event import Event
from guestlist.models.promoter import Promoter
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.models.qr_scan import QRScan

logger = logging.getLogger(__name__)

MAX_TOKEN_RETRIES = 30
BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(BASE36[r])
    return "".join(reversed(out))


def generate_promoter_token(prefix: str | None = None) -> str:
    """
    Promoter-level token: ``<PREFIX>-<base36 millis>-<4 random base36>``,
    e.g. ``BLS-M1X2Y3Z4-Q7K2``.
    """
    p = (prefix or settings.QR_TOKEN_PREFIX).strip().upper()
    stamp = _to_base36(int(time.time() * 1000))
    tail = "".join(secrets.choice(BASE36) for _ in range(4))
    return f"{p}-{stamp}-{tail}"


def event_attribution_token(promoter_token: str, event_id: uuid.UUID) -> str:
    """Per-event token: promoter token + first 8 chars of the event id."""
    return f"{promoter_token}-{str(event_id)[:8]}"


def normalize_code(code: str | None) -> str | None:
    if not code:
        return None
    c = code.strip()
    return c or None


def guestlist_url(code: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/guestlist/{code}"


@dataclass(frozen=True)
class GuestlistContext:
    """What a registration link resolves to. promoter is None for direct links."""

    event: Event
    promoter: Optional[Promoter] = None
    attribution_id: Optional[uuid.UUID] = None

    @property
    def is_open(self) -> bool:
        return self.event.status == EventStatus.UPCOMING.value

    @property
    def promoter_id(self) -> Optional[uuid.UUID]:
        return self.promoter.id if self.promoter is not None else None


def ensure_open(ctx: GuestlistContext) -> GuestlistContext:
    if not ctx.is_open:
        raise RegistrationClosedError(event_id=str(ctx.event.id))
    return ctx


# =========================================================
# Identity resolver
# =========================================================
async def resolve_attribution_token(db: AsyncSession, code: str | None) -> GuestlistContext:
    """
    Resolve a path token to {event, promoter, attribution}. Does not check
    the event status; callers decide whether a closed event is an error.
    """
    token = normalize_code(code)
    if token is None:
        raise InvalidLinkError()

    row = (
        await db.execute(
            select(PromoterEventQR, Event, Promoter)
            .join(Event, Event.id == PromoterEventQR.event_id)
            .join(Promoter, Promoter.id == PromoterEventQR.promoter_id)
            .where(PromoterEventQR.qr_code_identifier == token)
        )
    ).one_or_none()

    if row is None:
        raise InvalidLinkError(code=token)

    qr, event, promoter = row
    return GuestlistContext(event=event, promoter=promoter, attribution_id=qr.id)


async def resolve_direct_event(db: AsyncSession, event_id: str | uuid.UUID | None) -> GuestlistContext:
    if event_id is None or event_id == "":
        raise InvalidLinkError()
    try:
        event_uuid = event_id if isinstance(event_id, uuid.UUID) else uuid.UUID(str(event_id).strip())
    except ValueError:
        raise InvalidLinkError()

    event = await db.get(Event, event_uuid)
    if event is None:
        raise InvalidLinkError(event_id=str(event_uuid))
    return GuestlistContext(event=event)


async def record_scan(db: AsyncSession, ctx: GuestlistContext) -> bool:
    """
    Fire-and-forget scan tracking for an attributed link visit: one QRScan
    row plus scans_count + 1. Failures are logged and rolled back, never
    raised. Returns True when the scan was stored.
    """
    if ctx.attribution_id is None or ctx.promoter is None:
        return False

    promoter_id = ctx.promoter.id
    event_id = ctx.event.id
    try:
        db.add(QRScan(promoter_id=promoter_id, event_id=event_id))
        await db.execute(
            update(PromoterEventQR)
            .where(PromoterEventQR.id == ctx.attribution_id)
            .values(scans_count=PromoterEventQR.scans_count + 1)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError:
        logger.warning(
            "Scan tracking failed for promoter=%s event=%s", promoter_id, event_id, exc_info=True
        )
        await db.rollback()
        return False
    return True


# =========================================================
# Attribution records (promoter x event)
# =========================================================
async def get_or_create_attribution(
    db: AsyncSession,
    *,
    promoter: Promoter,
    event: Event,
) -> tuple[PromoterEventQR, bool]:
    """
    Return the single attribution record for (promoter, event), creating it
    when missing. Second value is True when a row was created.
    """
    existing = (
        await db.execute(
            select(PromoterEventQR).where(
                PromoterEventQR.promoter_id == promoter.id,
                PromoterEventQR.event_id == event.id,
            )
        )
    ).scalar_one_or_none()
    if existing is not None:
        return existing, False

    if promoter.is_active is not True:
        raise PromoterInactiveError(promoter_id=str(promoter.id))
    if event.status != EventStatus.UPCOMING.value:
        raise RegistrationClosedError("Only upcoming events can be promoted.", event_id=str(event.id))

    qr = PromoterEventQR(
        promoter_id=promoter.id,
        event_id=event.id,
        qr_code_identifier=event_attribution_token(promoter.qr_code_identifier, event.id),
        scans_count=0,
        registrations_count=0,
    )
    db.add(qr)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # race: created concurrently for the same pair
        existing = (
            await db.execute(
                select(PromoterEventQR).where(
                    PromoterEventQR.promoter_id == promoter.id,
                    PromoterEventQR.event_id == event.id,
                )
            )
        ).scalar_one_or_none()
        if existing is None:
            raise
        return existing, False

    await db.refresh(qr)
    logger.info("Attribution created promoter=%s event=%s token=%s", promoter.id, event.id, qr.qr_code_identifier)
    return qr, True


async def allocate_promoter_token(db: AsyncSession) -> str:
    """
    Collision-safe allocator.
    Pre-checks to reduce collisions; the unique constraint still decides at commit time.
    """
    for _ in range(MAX_TOKEN_RETRIES):
        code = generate_promoter_token()
        exists = (
            await db.execute(select(Promoter.id).where(Promoter.qr_code_identifier == code))
        ).first()
        if exists:
            continue
        return code
    raise TokenAllocationError()


async def get_promoter_or_404(db: AsyncSession, promoter_id: uuid.UUID) -> Promoter:
    promoter = await db.get(Promoter, promoter_id)
    if promoter is None:
        raise NotFoundError("Promoter not found")
    return promoter


async def get_event_or_404(db: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    return event
