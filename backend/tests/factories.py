# tests/factories.py
from __future__ import annotations

import uuid
from datetime import date, time, timedelta
from decimal import Decimal

from guestlist.core.attribution import event_attribution_token, generate_promoter_token
from guestlist.core.security import create_access_token
from guestlist.models.event import Event
from guestlist.models.promoter import Promoter
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.models.user import User
from guestlist.models.user_role import UserRole


async def create_user(db, email: str, role: str | None = None) -> User:
    user = User(email=email.lower().strip(), is_active=True)
    db.add(user)
    await db.flush()
    if role is not None:
        db.add(UserRole(user_id=user.id, role=role, is_active=True))
    await db.commit()
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


async def create_event(db, status: str = "upcoming", **overrides) -> Event:
    data = {
        "name": f"Event {uuid.uuid4().hex[:6]}",
        "description": "Rooftop night",
        "date": date.today() + timedelta(days=7),
        "time": time(22, 0),
        "venue": "Sky Bar",
        "capacity": 300,
        "status": status,
    }
    data.update(overrides)
    event = Event(**data)
    db.add(event)
    await db.commit()
    return event


async def create_promoter(
    db,
    name: str = "Promo Crew",
    commission_percentage: Decimal = Decimal("5.00"),
    is_active: bool = True,
    **overrides,
) -> Promoter:
    promoter = Promoter(
        name=name,
        email=overrides.pop("email", f"{uuid.uuid4().hex[:8]}@promo.example.com"),
        commission_percentage=commission_percentage,
        qr_code_identifier=generate_promoter_token(),
        is_active=is_active,
        **overrides,
    )
    db.add(promoter)
    await db.commit()
    return promoter


async def create_attribution(db, promoter: Promoter, event: Event) -> PromoterEventQR:
    qr = PromoterEventQR(
        promoter_id=promoter.id,
        event_id=event.id,
        qr_code_identifier=event_attribution_token(promoter.qr_code_identifier, event.id),
        scans_count=0,
        registrations_count=0,
    )
    db.add(qr)
    await db.commit()
    return qr


def guest_payload(**overrides) -> dict:
    data = {
        "full_name": "Jordan Doe",
        "email": "jordan@example.com",
        "whatsapp_number": "+62 812-3456-7890",
        "date_of_birth": "1995-04-12",
        "nationality": "Indonesian",
    }
    data.update(overrides)
    return data


