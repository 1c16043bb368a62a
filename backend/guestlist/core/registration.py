# guestlist/core/registration.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.core.attribution import GuestlistContext, ensure_open
from guestlist.core.duplicates import find_duplicate_guest, normalize_email, normalize_phone
from guestlist.core.errors import AlreadyRegisteredError
from guestlist.models.event import Event
from guestlist.models.guest import Guest
from guestlist.models.promoter_event_qr import PromoterEventQR

logger = logging.getLogger(__name__)

OUTCOME_REGISTERED = "registered"
OUTCOME_ALREADY_REGISTERED = "already_registered"


@dataclass(frozen=True)
class GuestSubmission:
    full_name: str
    email: str
    whatsapp_number: str
    date_of_birth: Optional[date]
    nationality: Optional[str]


@dataclass(frozen=True)
class RegistrationOutcome:
    status: str
    event: Event
    guest_id: Optional[uuid.UUID] = None
    matched_on: Optional[str] = None

    @property
    def created(self) -> bool:
        return self.status == OUTCOME_REGISTERED


async def _increment_registrations(db: AsyncSession, attribution_id: uuid.UUID) -> None:
    """
    registrations_count + 1 inside a SAVEPOINT. A failure only rolls back the
    savepoint; the guest row in the enclosing transaction is kept.
    """
    try:
        async with db.begin_nested():
            await db.execute(
                update(PromoterEventQR)
                .where(PromoterEventQR.id == attribution_id)
                .values(registrations_count=PromoterEventQR.registrations_count + 1)
                .execution_options(synchronize_session=False)
            )
    except SQLAlchemyError:
        logger.error("registrations_count increment failed for attribution=%s", attribution_id, exc_info=True)


async def register_guest(
    db: AsyncSession,
    ctx: GuestlistContext,
    submission: GuestSubmission,
) -> RegistrationOutcome:
    """
    Duplicate check -> guest insert -> attribution counter, in one transaction.

    A person already on the list for this event gets an
    ``already_registered`` outcome carrying only the event context; no row is
    written and no counter moves.
    """
    ensure_open(ctx)
    event = ctx.event

    email = normalize_email(submission.email)
    digits = normalize_phone(submission.whatsapp_number)

    dup = await find_duplicate_guest(
        db,
        event_id=event.id,
        email=email,
        whatsapp_number=submission.whatsapp_number,
    )
    if dup is not None:
        logger.info("Duplicate registration for event=%s matched on %s", event.id, dup.matched_on)
        return RegistrationOutcome(
            status=OUTCOME_ALREADY_REGISTERED,
            event=event,
            matched_on=dup.matched_on,
        )

    guest = Guest(
        full_name=" ".join(submission.full_name.strip().split()),
        email=email,
        whatsapp_number=submission.whatsapp_number.strip(),
        whatsapp_digits=digits,
        date_of_birth=submission.date_of_birth,
        nationality=(submission.nationality or "").strip() or None,
        event_id=event.id,
        promoter_id=ctx.promoter_id,
        attended=False,
    )
    db.add(guest)

    event_id = event.id
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # rollback expired everything loaded so far
        await db.refresh(event)
        # race: a concurrent submission for the same identity won
        dup = await find_duplicate_guest(
            db,
            event_id=event_id,
            email=email,
            whatsapp_number=submission.whatsapp_number,
        )
        if dup is None:
            raise AlreadyRegisteredError(event_id=str(event_id))
        return RegistrationOutcome(
            status=OUTCOME_ALREADY_REGISTERED,
            event=event,
            matched_on=dup.matched_on,
        )

    guest_id = guest.id
    promoter_id = ctx.promoter_id

    if ctx.attribution_id is not None:
        await _increment_registrations(db, ctx.attribution_id)

    await db.commit()

    logger.info(
        "Guest registered guest=%s event=%s promoter=%s",
        guest_id,
        event_id,
        promoter_id or "direct",
    )
    return RegistrationOutcome(status=OUTCOME_REGISTERED, event=event, guest_id=guest_id)
