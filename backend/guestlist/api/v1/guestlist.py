# guestlist/api/v1/guestlist.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.api.errors import to_http
from guestlist.core.attribution import (
    GuestlistContext,
    ensure_open,
    record_scan,
    resolve_attribution_token,
    resolve_direct_event,
)
from guestlist.core.errors import GuestlistError, RegistrationClosedError
from guestlist.core.registration import GuestSubmission, RegistrationOutcome, register_guest
from guestlist.db.session import get_db
from guestlist.schemas.event import EventPublicOut
from guestlist.schemas.guestlist import (
    GuestlistContextOut,
    GuestlistPromoterOut,
    GuestRegistrationIn,
    RegistrationOut,
)

router = APIRouter(prefix="/guestlist", tags=["guestlist"])

MSG_REGISTERED = "You're on the list! See you at the event!"
MSG_ALREADY_REGISTERED = "You're already registered for this event!"


def _context_out(ctx: GuestlistContext) -> GuestlistContextOut:
    return GuestlistContextOut(
        event=EventPublicOut.model_validate(ctx.event),
        promoter=GuestlistPromoterOut.model_validate(ctx.promoter) if ctx.promoter is not None else None,
        attribution_id=ctx.attribution_id,
    )


def _registration_out(outcome: RegistrationOutcome, response: Response) -> RegistrationOut:
    # Duplicates reuse the event context only; which promoter the first
    # registration came through is never revealed.
    if outcome.created:
        response.status_code = status.HTTP_201_CREATED
        return RegistrationOut(
            status="registered",
            message=MSG_REGISTERED,
            guest_id=outcome.guest_id,
            event=EventPublicOut.model_validate(outcome.event),
        )
    return RegistrationOut(
        status="already_registered",
        message=MSG_ALREADY_REGISTERED,
        event=EventPublicOut.model_validate(outcome.event),
    )


def _submission(payload: GuestRegistrationIn) -> GuestSubmission:
    return GuestSubmission(
        full_name=payload.full_name,
        email=str(payload.email),
        whatsapp_number=payload.whatsapp_number,
        date_of_birth=payload.date_of_birth,
        nationality=payload.nationality,
    )


# =========================================================
# Direct (unattributed) links: /guestlist?event={event_id}
# =========================================================
@router.get("", response_model=GuestlistContextOut)
async def resolve_direct_link(
    event: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    try:
        ctx = ensure_open(await resolve_direct_event(db, event))
    except GuestlistError as e:
        raise to_http(e)
    return _context_out(ctx)


@router.post("/register", response_model=RegistrationOut)
async def register_direct(
    payload: GuestRegistrationIn,
    response: Response,
    event: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    try:
        ctx = await resolve_direct_event(db, event)
        outcome = await register_guest(db, ctx, _submission(payload))
    except GuestlistError as e:
        raise to_http(e)
    return _registration_out(outcome, response)


# =========================================================
# Promoter-attributed links: /guestlist/{code}
# =========================================================
@router.get("/{code}", response_model=GuestlistContextOut)
async def resolve_promoter_link(
    code: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Resolves the token and records one scan per page load. Scan tracking is
    best-effort: the response is built first and a tracking failure only logs.
    """
    try:
        ctx = await resolve_attribution_token(db, code)
    except GuestlistError as e:
        raise to_http(e)

    out = _context_out(ctx) if ctx.is_open else None
    closed_event_id = str(ctx.event.id)

    await record_scan(db, ctx)

    if out is None:
        raise to_http(RegistrationClosedError(event_id=closed_event_id))
    return out


@router.post("/{code}/register", response_model=RegistrationOut)
async def register_via_promoter_link(
    code: str,
    payload: GuestRegistrationIn,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    try:
        ctx = await resolve_attribution_token(db, code)
        outcome = await register_guest(db, ctx, _submission(payload))
    except GuestlistError as e:
        raise to_http(e)
    return _registration_out(outcome, response)

