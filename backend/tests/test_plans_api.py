from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from wineclub.models.audit_log import AuditLog
from wineclub.models.membership_plan import MembershipPlan


async def _setup(factory):
    business = await factory.business()
    owner = await factory.team_member(business, "OWNER")
    admin = await factory.team_member(business, "ADMIN")
    staff = await factory.team_member(business, "STAFF")
    plan = await factory.plan(business)
    return business, owner, admin, staff, plan


@pytest.mark.asyncio
async def test_staff_can_view_plan(client, db, factory, headers_for):
    business, _owner, _admin, staff, plan = await _setup(factory)
    member = await factory.member(business)
    await factory.subscription(member, plan, status="ACTIVE")
    await factory.subscription(await factory.member(business), plan, status="CANCELED")
    await db.commit()

    r = await client.get(f"/api/v1/businesses/{business.id}/plans/{plan.id}", headers=headers_for(staff))
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Reds Quarterly"
    assert body["subscriber_count"] == 1


@pytest.mark.asyncio
async def test_plan_from_other_business_is_404(client, db, factory, headers_for):
    business, owner, _admin, _staff, _plan = await _setup(factory)
    other = await factory.business()
    foreign_plan = await factory.plan(other, name="Not Yours")
    await db.commit()

    foreign = await client.get(
        f"/api/v1/businesses/{business.id}/plans/{foreign_plan.id}", headers=headers_for(owner)
    )
    missing = await client.get(
        f"/api/v1/businesses/{business.id}/plans/{uuid.uuid4()}", headers=headers_for(owner)
    )
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


@pytest.mark.asyncio
async def test_admin_edits_plan(client, db, factory, headers_for):
    business, _owner, admin, _staff, plan = await _setup(factory)
    await db.commit()

    r = await client.patch(
        f"/api/v1/businesses/{business.id}/plans/{plan.id}",
        json={"name": "Whites Monthly", "max_subscribers": 50},
        headers=headers_for(admin),
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Whites Monthly"
    assert r.json()["max_subscribers"] == 50

    entry = (await db.execute(select(AuditLog).where(AuditLog.type == "PLAN_UPDATED"))).scalar_one()
    assert entry.event_metadata["fields"] == ["max_subscribers", "name"]


@pytest.mark.asyncio
async def test_staff_cannot_edit_plan(client, db, factory, headers_for):
    business, _owner, _admin, staff, plan = await _setup(factory)
    await db.commit()

    r = await client.patch(
        f"/api/v1/businesses/{business.id}/plans/{plan.id}",
        json={"name": "Hijacked"},
        headers=headers_for(staff),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_patch_rejects_null_name_and_status(client, db, factory, headers_for):
    business, owner, _admin, _staff, plan = await _setup(factory)
    await db.commit()

    url = f"/api/v1/businesses/{business.id}/plans/{plan.id}"
    r = await client.patch(url, json={"name": None}, headers=headers_for(owner))
    assert r.status_code == 422
    r = await client.patch(url, json={"status": None}, headers=headers_for(owner))
    assert r.status_code == 422

    # nullable columns can still be cleared
    r = await client.patch(url, json={"description": None}, headers=headers_for(owner))
    assert r.status_code == 200
    assert r.json()["name"] == "Reds Quarterly"

    updates = (await db.execute(select(AuditLog).where(AuditLog.type == "PLAN_UPDATED"))).scalars().all()
    assert len(updates) == 1


@pytest.mark.asyncio
async def test_delete_unused_plan_archives(client, db, factory, headers_for):
    business, owner, _admin, _staff, plan = await _setup(factory)
    await db.commit()

    r = await client.delete(f"/api/v1/businesses/{business.id}/plans/{plan.id}", headers=headers_for(owner))
    assert r.status_code == 200
    assert r.json()["status"] == "archived"

    status = (
        await db.execute(select(MembershipPlan.status).where(MembershipPlan.id == plan.id))
    ).scalar_one()
    assert status == "ARCHIVED"

    entry = (await db.execute(select(AuditLog).where(AuditLog.type == "PLAN_ARCHIVED"))).scalar_one()
    assert entry.event_metadata["plan_id"] == str(plan.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("sub_status", ["ACTIVE", "PAUSED", "CANCELED"])
async def test_delete_plan_with_subscriptions_refused(client, db, factory, headers_for, sub_status):
    business, owner, _admin, _staff, plan = await _setup(factory)
    await factory.subscription(await factory.member(business), plan, status=sub_status)
    await db.commit()

    r = await client.delete(f"/api/v1/businesses/{business.id}/plans/{plan.id}", headers=headers_for(owner))
    assert r.status_code == 400
    assert "Archive it instead" in r.json()["detail"]

    status = (
        await db.execute(select(MembershipPlan.status).where(MembershipPlan.id == plan.id))
    ).scalar_one()
    assert status == "ACTIVE"

    archived = (await db.execute(select(AuditLog).where(AuditLog.type == "PLAN_ARCHIVED"))).scalars().all()
    assert archived == []
