# guestlist/schemas/event.py
from __future__ import annotations

import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from guestlist.core.statuses import EventStatus


class EventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    date: dt.date
    time: dt.time
    venue: str = Field(min_length=1, max_length=200)
    venue_id: Optional[UUID] = None
    capacity: int = Field(default=0, ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)


class EventUpdate(BaseModel):
    """Status is not updatable here; use the status endpoint."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    venue: Optional[str] = Field(default=None, min_length=1, max_length=200)
    venue_id: Optional[UUID] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = Field(default=None, max_length=500)


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    date: dt.date
    time: dt.time
    venue: str
    venue_id: Optional[UUID] = None
    capacity: int
    image_url: Optional[str] = None
    status: EventStatus
    created_at: dt.datetime


class EventListOut(BaseModel):
    items: List[EventOut]
    total: int
    limit: int
    offset: int


class EventPublicOut(BaseModel):
    """Event context shown to guests. Never carries promoter data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str] = None
    date: dt.date
    time: dt.time
    venue: str
    image_url: Optional[str] = None
    status: EventStatus
