# guestlist/core/duplicates.py
"""
Duplicate guard: one natural person gets at most one guest row per event,
whichever link they came through.

Email is matched exactly after normalization. Phone numbers are matched
tolerantly: equal, or one a suffix of the other, so "81234567890" and
"+62 812-3456-7890" collide. The suffix rule only applies when the shorter
number has at least ``settings.PHONE_SUFFIX_MIN_DIGITS`` digits; shorter
numbers must match exactly.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.core.config import settings
from guestlist.models.guest import Guest

MATCH_EMAIL = "email"
MATCH_PHONE = "phone"


@dataclass(frozen=True)
class DuplicateMatch:
    guest_id: uuid.UUID
    matched_on: str


def normalize_email(value: Optional[str]) -> Optional[str]:
    return Guest.normalize_email(value)


def normalize_phone(value: Optional[str]) -> Optional[str]:
    return Guest.normalize_phone(value)


def phones_match(a: Optional[str], b: Optional[str], *, min_digits: int | None = None) -> bool:
    """
    Compare two phone numbers (raw or already digits-only).
    """
    da = normalize_phone(a)
    db_ = normalize_phone(b)
    if not da or not db_:
        return False
    if da == db_:
        return True

    threshold = settings.PHONE_SUFFIX_MIN_DIGITS if min_digits is None else min_digits
    shorter, longer = (da, db_) if len(da) <= len(db_) else (db_, da)
    if len(shorter) < threshold:
        return False
    return longer.endswith(shorter)


def find_phone_match(
    phone: Optional[str],
    candidates: Iterable[tuple[uuid.UUID, Optional[str]]],
    *,
    min_digits: int | None = None,
) -> Optional[uuid.UUID]:
    """First candidate id whose number matches ``phone``, else None."""
    if not normalize_phone(phone):
        return None
    for guest_id, other in candidates:
        if phones_match(phone, other, min_digits=min_digits):
            return guest_id
    return None


async def find_duplicate_guest(
    db: AsyncSession,
    *,
    event_id: uuid.UUID,
    email: Optional[str],
    whatsapp_number: Optional[str],
) -> Optional[DuplicateMatch]:
    """
    Look for an existing registration of the same person for ``event_id``.

    The phone pass reads every guest number of the event (id + number
    columns only). That is fine at guest-list scale; the indexed
    whatsapp_digits column keeps the exact-equality case cheap.
    """
    norm_email = normalize_email(email)
    if norm_email:
        hit = (
            await db.execute(
                select(Guest.id)
                .where(Guest.event_id == event_id)
                .where(func.lower(Guest.email) == norm_email)
                .limit(1)
            )
        ).scalar_one_or_none()
        if hit is not None:
            return DuplicateMatch(guest_id=hit, matched_on=MATCH_EMAIL)

    digits = normalize_phone(whatsapp_number)
    if not digits:
        return None

    exact = (
        await db.execute(
            select(Guest.id)
            .where(Guest.event_id == event_id)
            .where(Guest.whatsapp_digits == digits)
            .limit(1)
        )
    ).scalar_one_or_none()
    if exact is not None:
        return DuplicateMatch(guest_id=exact, matched_on=MATCH_PHONE)

    rows = (
        await db.execute(
            select(Guest.id, Guest.whatsapp_digits, Guest.whatsapp_number)
            .where(Guest.event_id == event_id)
            .where(Guest.whatsapp_number.is_not(None))
        )
    ).all()
    # whatsapp_digits is nullable and only register_guest fills it; rows
    # inserted any other way are compared on the raw number
    candidates = ((gid, stored or raw) for gid, stored, raw in rows)
    hit = find_phone_match(digits, candidates)
    if hit is not None:
        return DuplicateMatch(guest_id=hit, matched_on=MATCH_PHONE)
    return None
