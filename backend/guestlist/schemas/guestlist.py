# guestlist/schemas/guestlist.py
from __future__ import annotations

from datetime import date
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from guestlist.schemas.event import EventPublicOut

_MIN_PHONE_DIGITS = 6


class GuestlistPromoterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    logo_url: Optional[str] = None


class GuestlistContextOut(BaseModel):
    """What the registration form renders for a link."""

    state: Literal["open"] = "open"
    event: EventPublicOut
    promoter: Optional[GuestlistPromoterOut] = None
    attribution_id: Optional[UUID] = None


class GuestRegistrationIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    whatsapp_number: str = Field(min_length=1, max_length=40)
    date_of_birth: date
    nationality: str = Field(min_length=1, max_length=80)

    @field_validator("full_name", "nationality")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = " ".join(v.strip().split())
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("whatsapp_number")
    @classmethod
    def _validate_whatsapp(cls, v: str) -> str:
        v = v.strip()
        digits = sum(ch.isdigit() for ch in v)
        if digits < _MIN_PHONE_DIGITS:
            raise ValueError(f"whatsapp_number must contain at least {_MIN_PHONE_DIGITS} digits")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def _validate_dob(cls, v: date) -> date:
        if v >= date.today():
            raise ValueError("date_of_birth must be in the past")
        return v


class RegistrationOut(BaseModel):
    status: Literal["registered", "already_registered"]
    message: str
    guest_id: Optional[UUID] = None
    event: EventPublicOut
