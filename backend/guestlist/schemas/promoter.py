# guestlist/schemas/promoter.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class PromoterCreate(BaseModel):
    """
    qr_code_identifier is allocated by the server and cannot be supplied.
    """
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    commission_percentage: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    logo_url: Optional[str] = Field(default=None, max_length=500)
    user_id: Optional[UUID] = None


class PromoterUpdate(BaseModel):
    # extra="forbid" keeps qr_code_identifier out of every update path
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    commission_percentage: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    logo_url: Optional[str] = Field(default=None, max_length=500)


class PayoutDetails(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bank_name: str = Field(min_length=1, max_length=120)
    account_name: str = Field(min_length=1, max_length=120)
    account_number: str = Field(min_length=1, max_length=64)
    notes: Optional[str] = Field(default=None, max_length=500)


class PromoterOut(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    commission_percentage: Decimal
    qr_code_identifier: str
    is_active: bool
    payout_details: Optional[PayoutDetails] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PromoterStatsOut(BaseModel):
    registrations: int = 0
    attended: int = 0
    scans: int = 0


class PromoterWithStatsOut(PromoterOut):
    stats: PromoterStatsOut = Field(default_factory=PromoterStatsOut)


class PromoterListOut(BaseModel):
    items: List[PromoterWithStatsOut]
    total: int
    limit: int
    offset: int


class AttributionOut(BaseModel):
    id: UUID
    promoter_id: UUID
    event_id: UUID
    qr_code_identifier: str
    scans_count: int
    registrations_count: int
    share_url: str
    created_at: datetime

    class Config:
        from_attributes = True


class PromoterEventOut(BaseModel):
    """Upcoming event as seen from the promoter portal."""

    event_id: UUID
    name: str
    event_date: date
    venue: str
    is_promoting: bool
    attribution: Optional[AttributionOut] = None


class PromoterEventStatsOut(BaseModel):
    event_id: UUID
    scans: int
    registrations: int
    attended: int
    attribution: Optional[AttributionOut] = None
