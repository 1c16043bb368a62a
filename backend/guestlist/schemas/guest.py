from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class GuestOut(BaseModel):
    id: UUID
    full_name: str
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    nationality: Optional[str] = None
    event_id: UUID
    promoter_id: Optional[UUID] = None
    attended: bool
    registration_date: datetime

    class Config:
        from_attributes = True


class GuestListOut(BaseModel):
    items: List[GuestOut]
    total: int
    limit: int
    offset: int


class AttendanceUpdate(BaseModel):
    attended: bool
