# guestlist/schemas/commission.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from guestlist.core.statuses import CommissionStatus, available_commission_actions


class CommissionCreate(BaseModel):
    """
    registrations_count / commission_rate default to a snapshot taken now
    (attributed guest rows, promoter's commission_percentage). amount
    defaults to registrations_count x commission_rate.
    """
    promoter_id: UUID
    event_id: UUID
    registrations_count: Optional[int] = Field(default=None, ge=0)
    commission_rate: Optional[Decimal] = Field(default=None, ge=0)
    amount: Optional[Decimal] = Field(default=None, ge=0)


class CommissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    promoter_id: UUID
    event_id: UUID
    registrations_count: int
    commission_rate: Decimal
    amount: Decimal
    status: CommissionStatus
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payout_notes: Optional[str] = None
    created_at: datetime

    promoter_name: Optional[str] = None
    event_name: Optional[str] = None

    available_actions: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _fill_actions(self) -> "CommissionOut":
        self.available_actions = available_commission_actions(self.status)
        return self


class CommissionTotalsOut(BaseModel):
    pending: Decimal
    approved: Decimal
    paid: Decimal
    pending_count: int


class CommissionPageOut(BaseModel):
    items: List[CommissionOut]
    total: int
    limit: int
    offset: int
    totals: CommissionTotalsOut


class ApproveRequest(BaseModel):
    ids: List[UUID] = Field(min_length=1, max_length=500)


class PayoutRequest(BaseModel):
    payment_reference: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = Field(default=None, max_length=2000)


class TransitionResult(BaseModel):
    requested: int
    updated: int
