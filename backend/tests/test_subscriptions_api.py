from __future__ import annotations

import pytest


async def _setup(factory, status="ACTIVE"):
    business = await factory.business()
    admin = await factory.team_member(business, "ADMIN")
    staff = await factory.team_member(business, "STAFF")
    plan = await factory.plan(business)
    sub = await factory.subscription(await factory.member(business), plan, status=status)
    return business, admin, staff, sub


@pytest.mark.asyncio
async def test_pause_then_resume(client, db, factory, headers_for):
    business, admin, _staff, sub = await _setup(factory)
    await db.commit()
    base = f"/api/v1/businesses/{business.id}/subscriptions/{sub.id}"

    r = await client.post(f"{base}/pause", headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json()["status"] == "PAUSED"
    assert r.json()["paused_at"] is not None

    r = await client.post(f"{base}/pause", headers=headers_for(admin))
    assert r.status_code == 409

    r = await client.post(f"{base}/resume", headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json()["status"] == "ACTIVE"
    assert r.json()["paused_at"] is None


@pytest.mark.asyncio
async def test_cancel_is_final(client, db, factory, headers_for):
    business, admin, _staff, sub = await _setup(factory, status="PAUSED")
    await db.commit()
    base = f"/api/v1/businesses/{business.id}/subscriptions/{sub.id}"

    r = await client.post(f"{base}/cancel", headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELED"

    r = await client.post(f"{base}/resume", headers=headers_for(admin))
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_staff_cannot_cancel(client, db, factory, headers_for):
    business, _admin, staff, sub = await _setup(factory)
    await db.commit()

    r = await client.post(
        f"/api/v1/businesses/{business.id}/subscriptions/{sub.id}/cancel",
        headers=headers_for(staff),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_cross_tenant_subscription_is_404(client, db, factory, headers_for):
    business, admin, _staff, _sub = await _setup(factory)
    other_business, _other_admin, _other_staff, other_sub = await _setup(factory)
    await db.commit()

    r = await client.post(
        f"/api/v1/businesses/{business.id}/subscriptions/{other_sub.id}/cancel",
        headers=headers_for(admin),
    )
    assert r.status_code == 404
    assert r.json()["detail"]["message"] == "Subscription not found"
