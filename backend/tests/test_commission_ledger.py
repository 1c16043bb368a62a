# tests/test_commission_ledger.py
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from guestlist.core.commissions import compute_commission_amount
from guestlist.models.commission_ledger import CommissionLedgerEntry
from guestlist.models.guest import Guest

from factories import auth_headers, create_event, create_promoter, create_user


async def reload_entry(db, entry_id) -> CommissionLedgerEntry | None:
    return (
        await db.execute(
            select(CommissionLedgerEntry)
            .where(CommissionLedgerEntry.id == uuid.UUID(str(entry_id)))
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()


async def create_commission(client, headers, promoter, event, **fields) -> dict:
    payload = {"promoter_id": str(promoter.id), "event_id": str(event.id), **fields}
    r = await client.post("/api/v1/commissions", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_compute_commission_amount():
    assert compute_commission_amount(registrations_count=10, commission_rate=Decimal("5")) == Decimal("50.00")
    assert compute_commission_amount(registrations_count=0, commission_rate=Decimal("7.5")) == Decimal("0.00")
    assert compute_commission_amount(registrations_count=3, commission_rate=Decimal("2.333")) == Decimal("7.00")
    with pytest.raises(ValueError):
        compute_commission_amount(registrations_count=-1, commission_rate=Decimal("1"))


@pytest.mark.asyncio
async def test_full_lifecycle_pending_approved_paid(client, db, admin, admin_headers):
    event = await create_event(db, status="past")
    promoter = await create_promoter(db)

    entry = await create_commission(
        client,
        admin_headers,
        promoter,
        event,
        registrations_count=10,
        commission_rate="5",
        amount="50",
    )
    assert entry["status"] == "pending"
    assert Decimal(entry["amount"]) == Decimal("50.00")
    assert entry["promoter_name"] == promoter.name
    assert entry["event_name"] == event.name
    assert sorted(entry["available_actions"]) == ["approve", "revoke"]

    r = await client.post("/api/v1/commissions/approve", json={"ids": [entry["id"]]}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"requested": 1, "updated": 1}

    row = await reload_entry(db, entry["id"])
    assert row.status == "approved"
    assert row.approved_by == admin.id
    assert row.approved_at is not None

    r = await client.post(
        f"/api/v1/commissions/{entry['id']}/pay",
        json={"payment_reference": "TRX-001", "notes": "bank transfer"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"requested": 1, "updated": 1}

    row = await reload_entry(db, entry["id"])
    assert row.status == "paid"
    assert row.paid_at is not None
    assert row.payment_reference == "TRX-001"

    # paid entries expose no actions and cannot be revoked
    r = await client.get("/api/v1/commissions", headers=admin_headers)
    assert r.json()["items"][0]["available_actions"] == []

    r = await client.delete(f"/api/v1/commissions/{entry['id']}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "NOT_REVOCABLE"
    assert (await reload_entry(db, entry["id"])) is not None


@pytest.mark.asyncio
async def test_approve_twice_changes_status_once(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    entry = await create_commission(client, admin_headers, promoter, event, registrations_count=4)

    r1 = await client.post("/api/v1/commissions/approve", json={"ids": [entry["id"]]}, headers=admin_headers)
    assert r1.json()["updated"] == 1
    first_approved_at = (await reload_entry(db, entry["id"])).approved_at

    r2 = await client.post("/api/v1/commissions/approve", json={"ids": [entry["id"]]}, headers=admin_headers)
    assert r2.status_code == 200
    assert r2.json() == {"requested": 1, "updated": 0}
    assert (await reload_entry(db, entry["id"])).approved_at == first_approved_at


@pytest.mark.asyncio
async def test_status_never_moves_backwards(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    entry = await create_commission(client, admin_headers, promoter, event, registrations_count=1)

    # pay before approval does nothing
    r = await client.post(f"/api/v1/commissions/{entry['id']}/pay", headers=admin_headers)
    assert r.json()["updated"] == 0
    assert (await reload_entry(db, entry["id"])).status == "pending"

    await client.post("/api/v1/commissions/approve", json={"ids": [entry["id"]]}, headers=admin_headers)
    await client.post(f"/api/v1/commissions/{entry['id']}/pay", headers=admin_headers)

    # neither approve nor pay can touch a paid entry again
    r = await client.post("/api/v1/commissions/approve", json={"ids": [entry["id"]]}, headers=admin_headers)
    assert r.json()["updated"] == 0
    r = await client.post(f"/api/v1/commissions/{entry['id']}/pay", headers=admin_headers)
    assert r.json()["updated"] == 0
    assert (await reload_entry(db, entry["id"])).status == "paid"


@pytest.mark.asyncio
async def test_bulk_approve_skips_non_pending(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    a = await create_commission(client, admin_headers, promoter, event, registrations_count=1)
    b = await create_commission(client, admin_headers, promoter, event, registrations_count=2)
    await client.post("/api/v1/commissions/approve", json={"ids": [a["id"]]}, headers=admin_headers)

    r = await client.post(
        "/api/v1/commissions/approve",
        json={"ids": [a["id"], b["id"], str(uuid.uuid4())]},
        headers=admin_headers,
    )
    assert r.json() == {"requested": 3, "updated": 1}


@pytest.mark.asyncio
async def test_revoke_pending_entry(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db)
    entry = await create_commission(client, admin_headers, promoter, event, registrations_count=1)

    r = await client.delete(f"/api/v1/commissions/{entry['id']}", headers=admin_headers)
    assert r.status_code == 204
    assert (await reload_entry(db, entry["id"])) is None

    r = await client.delete(f"/api/v1/commissions/{entry['id']}", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_entry_snapshot_survives_rate_and_attendance_changes(client, db, admin_headers):
    event = await create_event(db)
    promoter = await create_promoter(db, commission_percentage=Decimal("5.00"))
    for i in range(3):
        db.add(
            Guest(
                full_name=f"Guest {i}",
                email=f"g{i}@example.com",
                whatsapp_number=f"+6281200000{i:03d}",
                whatsapp_digits=f"6281200000{i:03d}",
                event_id=event.id,
                promoter_id=promoter.id,
                attended=False,
            )
        )
    await db.commit()

    entry = await create_commission(client, admin_headers, promoter, event)
    assert entry["registrations_count"] == 3
    assert Decimal(entry["commission_rate"]) == Decimal("5.00")
    assert Decimal(entry["amount"]) == Decimal("15.00")

    r = await client.patch(
        f"/api/v1/promoters/{promoter.id}",
        json={"commission_percentage": "9.00"},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text

    guest = (await db.execute(select(Guest).where(Guest.email == "g0@example.com"))).scalar_one()
    r = await client.patch(f"/api/v1/guests/{guest.id}/attendance", json={"attended": True}, headers=admin_headers)
    assert r.status_code == 200

    row = await reload_entry(db, entry["id"])
    assert row.commission_rate == Decimal("5.00")
    assert row.amount == Decimal("15.00")
    assert row.registrations_count == 3

    # new entries pick up the new rate
    fresh = await create_commission(client, admin_headers, promoter, event)
    assert Decimal(fresh["commission_rate"]) == Decimal("9.00")
    assert Decimal(fresh["amount"]) == Decimal("27.00")


@pytest.mark.asyncio
async def test_list_filters_and_totals(client, db, admin_headers):
    event = await create_event(db)
    p1 = await create_promoter(db, name="Alpha")
    p2 = await create_promoter(db, name="Beta")

    a = await create_commission(client, admin_headers, p1, event, registrations_count=2, commission_rate="10")
    await create_commission(client, admin_headers, p1, event, registrations_count=1, commission_rate="10")
    await create_commission(client, admin_headers, p2, event, registrations_count=5, commission_rate="1")
    await client.post("/api/v1/commissions/approve", json={"ids": [a["id"]]}, headers=admin_headers)

    r = await client.get("/api/v1/commissions", headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 3
    assert Decimal(body["totals"]["pending"]) == Decimal("15.00")
    assert Decimal(body["totals"]["approved"]) == Decimal("20.00")
    assert Decimal(body["totals"]["paid"]) == Decimal("0.00")
    assert body["totals"]["pending_count"] == 2

    r = await client.get(
        "/api/v1/commissions",
        params={"promoter_id": str(p1.id), "status": "pending"},
        headers=admin_headers,
    )
    body = r.json()
    assert body["total"] == 1
    assert body["items"][0]["promoter_name"] == "Alpha"

    r = await client.get("/api/v1/commissions/summary", params={"promoter_id": str(p2.id)}, headers=admin_headers)
    assert r.status_code == 200
    assert Decimal(r.json()["pending"]) == Decimal("5.00")


@pytest.mark.asyncio
async def test_commission_endpoints_require_admin(client, db):
    user = await create_user(db, "someone@example.com")

    r = await client.get("/api/v1/commissions", headers=auth_headers(user))
    assert r.status_code == 403

    r = await client.get("/api/v1/commissions")
    assert r.status_code in (401, 403)
