# tests/test_admin_events_promoters.py
from __future__ import annotations

import re
import uuid

import pytest
from sqlalchemy import func, select

from guestlist.models.commission_ledger import CommissionLedgerEntry
from guestlist.models.event import Event
from guestlist.models.guest import Guest
from guestlist.models.promoter_event_qr import PromoterEventQR
from guestlist.models.user_role import ROLE_PROMOTER

from factories import (
    auth_headers,
    create_attribution,
    create_event,
    create_promoter,
    create_user,
    guest_payload,
)

TOKEN_RE = re.compile(r"^BLS-[0-9A-Z]+-[0-9A-Z]{4}$")


# =========================================================
# Events
# =========================================================
@pytest.mark.asyncio
async def test_admin_creates_and_lists_events(client, db, admin_headers):
    payload = {
        "name": "Friday Rooftop",
        "date": "2030-05-10",
        "time": "22:00:00",
        "venue": "Sky Bar",
        "capacity": 250,
    }
    r = await client.post("/api/v1/events", json=payload, headers=admin_headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "upcoming"

    r = await client.get("/api/v1/events", params={"status": "upcoming"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["total"] == 1

    r = await client.patch(f"/api/v1/events/{body['id']}", json={"status": "past"}, headers=admin_headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_event_status_transitions(client, db, admin_headers):
    event = await create_event(db)
    url = f"/api/v1/events/{event.id}/status"

    r = await client.post(url, json={"status": "live"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "live"

    r = await client.post(url, json={"status": "upcoming"}, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "INVALID_STATUS_TRANSITION"

    r = await client.post(url, json={"status": "past"}, headers=admin_headers)
    assert r.status_code == 200
    r = await client.post(url, json={"status": "past"}, headers=admin_headers)
    assert r.status_code == 200

    r = await client.post(url, json={"status": "cancelled"}, headers=admin_headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_delete_event_removes_dependents(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    qr = await create_attribution(db, promoter, event)
    r = await client.post(f"/api/v1/guestlist/{qr.qr_code_identifier}/register", json=guest_payload())
    assert r.status_code == 201

    r = await client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)
    assert r.status_code == 204

    assert await db.scalar(select(func.count()).select_from(Event).where(Event.id == event.id)) == 0
    assert await db.scalar(select(func.count()).select_from(Guest).where(Guest.event_id == event.id)) == 0
    assert (
        await db.scalar(
            select(func.count()).select_from(PromoterEventQR).where(PromoterEventQR.event_id == event.id)
        )
        == 0
    )


@pytest.mark.asyncio
async def test_delete_event_keeps_paid_commissions(client, db, admin_headers):
    event = await create_event(db, status="past")
    promoter = await create_promoter(db)
    r = await client.post(
        "/api/v1/commissions",
        json={
            "promoter_id": str(promoter.id),
            "event_id": str(event.id),
            "registrations_count": 10,
            "commission_rate": "5",
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    entry_id = r.json()["id"]
    await client.post("/api/v1/commissions/approve", json={"ids": [entry_id]}, headers=admin_headers)
    await client.post(f"/api/v1/commissions/{entry_id}/pay", headers=admin_headers)

    r = await client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)
    assert r.status_code == 409, r.text
    assert r.json()["detail"]["error"] == "EVENT_HAS_COMMITMENTS"

    ledger_rows = await db.scalar(
        select(func.count()).select_from(CommissionLedgerEntry).where(CommissionLedgerEntry.event_id == event.id)
    )
    assert ledger_rows == 1
    assert await db.scalar(select(func.count()).select_from(Event).where(Event.id == event.id)) == 1


@pytest.mark.asyncio
async def test_delete_event_drops_pending_commissions(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    r = await client.post(
        "/api/v1/commissions",
        json={"promoter_id": str(promoter.id), "event_id": str(event.id), "registrations_count": 2},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text

    r = await client.delete(f"/api/v1/events/{event.id}", headers=admin_headers)
    assert r.status_code == 204, r.text
    ledger_rows = await db.scalar(
        select(func.count()).select_from(CommissionLedgerEntry).where(CommissionLedgerEntry.event_id == event.id)
    )
    assert ledger_rows == 0


@pytest.mark.asyncio
async def test_event_endpoints_require_admin(client, db):
    user = await create_user(db, "promoter@example.com", role=ROLE_PROMOTER)
    r = await client.get("/api/v1/events", headers=auth_headers(user))
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient role: admin required"


# =========================================================
# Promoters
# =========================================================
@pytest.mark.asyncio
async def test_create_promoter_allocates_token(client, db, admin_headers):
    r = await client.post(
        "/api/v1/promoters",
        json={"name": "Night Owls", "email": "Owls@Example.com", "commission_percentage": "7.5"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert TOKEN_RE.match(body["qr_code_identifier"])
    assert body["email"] == "owls@example.com"
    assert body["is_active"] is True

    # the token is server-owned
    r = await client.post(
        "/api/v1/promoters",
        json={"name": "Sneaky", "qr_code_identifier": "BLS-CUSTOM-0000"},
        headers=admin_headers,
    )
    assert r.status_code == 422
    r = await client.patch(
        f"/api/v1/promoters/{body['id']}",
        json={"qr_code_identifier": "BLS-CUSTOM-0000"},
        headers=admin_headers,
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_promoter_event_qr_is_get_or_create(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    url = f"/api/v1/promoters/{promoter.id}/events/{event.id}/qr"

    r1 = await client.post(url, headers=admin_headers)
    assert r1.status_code == 200, r1.text
    r2 = await client.post(url, headers=admin_headers)
    assert r2.status_code == 200

    a, b = r1.json(), r2.json()
    assert a["id"] == b["id"]
    assert a["qr_code_identifier"] == f"{promoter.qr_code_identifier}-{str(event.id)[:8]}"
    assert a["share_url"].endswith(f"/guestlist/{a['qr_code_identifier']}")

    count = await db.scalar(
        select(func.count()).select_from(PromoterEventQR).where(PromoterEventQR.promoter_id == promoter.id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_qr_creation_rules(client, db, admin_headers):
    live_event = await create_event(db, status="live")
    event = await create_event(db)
    inactive = await create_promoter(db, is_active=False)
    active = await create_promoter(db)

    r = await client.post(f"/api/v1/promoters/{inactive.id}/events/{event.id}/qr", headers=admin_headers)
    assert r.status_code == 403
    assert r.json()["detail"]["error"] == "PROMOTER_INACTIVE"

    r = await client.post(f"/api/v1/promoters/{active.id}/events/{live_event.id}/qr", headers=admin_headers)
    assert r.status_code == 410

    r = await client.post(f"/api/v1/promoters/{active.id}/events/{uuid.uuid4()}/qr", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_promoter_list_includes_stats(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db, name="Stats Crew")
    await create_promoter(db, name="Idle Crew")
    qr = await create_attribution(db, promoter, event)

    await client.get(f"/api/v1/guestlist/{qr.qr_code_identifier}")
    await client.get(f"/api/v1/guestlist/{qr.qr_code_identifier}")
    r = await client.post(f"/api/v1/guestlist/{qr.qr_code_identifier}/register", json=guest_payload())
    guest_id = r.json()["guest_id"]
    await client.patch(f"/api/v1/guests/{guest_id}/attendance", json={"attended": True}, headers=admin_headers)

    r = await client.get("/api/v1/promoters", headers=admin_headers)
    assert r.status_code == 200, r.text
    items = {p["name"]: p for p in r.json()["items"]}
    assert items["Stats Crew"]["stats"] == {"registrations": 1, "attended": 1, "scans": 2}
    assert items["Idle Crew"]["stats"] == {"registrations": 0, "attended": 0, "scans": 0}

    r = await client.get("/api/v1/promoters", params={"q": "stats"}, headers=admin_headers)
    assert r.json()["total"] == 1


# =========================================================
# Guests
# =========================================================
@pytest.mark.asyncio
async def test_guest_list_filters(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    qr = await create_attribution(db, promoter, event)

    await client.post(f"/api/v1/guestlist/{qr.qr_code_identifier}/register", json=guest_payload())
    await client.post(
        "/api/v1/guestlist/register",
        params={"event": str(event.id)},
        json=guest_payload(full_name="Casey Walk", email="casey@example.com", whatsapp_number="+44 7700 900123"),
    )

    r = await client.get("/api/v1/guests", params={"event_id": str(event.id)}, headers=admin_headers)
    assert r.json()["total"] == 2

    r = await client.get("/api/v1/guests", params={"direct": "true"}, headers=admin_headers)
    body = r.json()
    assert body["total"] == 1
    assert body["items"][0]["full_name"] == "Casey Walk"

    r = await client.get("/api/v1/guests", params={"promoter_id": str(promoter.id)}, headers=admin_headers)
    assert r.json()["items"][0]["email"] == "jordan@example.com"

    r = await client.get("/api/v1/guests", params={"search": "casey"}, headers=admin_headers)
    assert r.json()["total"] == 1

    r = await client.patch(f"/api/v1/guests/{uuid.uuid4()}/attendance", json={"attended": True}, headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_each_token_resolves_to_one_promoter_event_pair(client, db, admin_headers):
    events = [await create_event(db) for _ in range(2)]
    promoters = [await create_promoter(db, name=f"Crew {i}") for i in range(2)]

    tokens = {}
    for p in promoters:
        for e in events:
            r = await client.post(f"/api/v1/promoters/{p.id}/events/{e.id}/qr", headers=admin_headers)
            assert r.status_code == 200, r.text
            tokens[r.json()["qr_code_identifier"]] = (str(p.id), str(e.id))

    assert len(tokens) == 4
    for token, (promoter_id, event_id) in tokens.items():
        r = await client.get(f"/api/v1/guestlist/{token}")
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["promoter"]["id"] == promoter_id
        assert body["event"]["id"] == event_id
