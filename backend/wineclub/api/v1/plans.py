# wineclub/api/v1/plans.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wineclub.api.deps.auth import get_current_user
from wineclub.api.deps.tenant import AuditRecorder, business_permission, get_audit_recorder
from wineclub.auth.permissions import Permission
from wineclub.core.tenant_guard import BusinessAccess, ResourceType, require_resource_ownership
from wineclub.db.session import get_db
from wineclub.models.membership_plan import MembershipPlan
from wineclub.models.subscription import Subscription
from wineclub.models.user import User
from wineclub.schemas.plan import PlanOut, PlanUpdate

router = APIRouter(prefix="/businesses/{business_id}/plans", tags=["plans"])

LIVE_SUBSCRIPTION_STATUSES = ("ACTIVE", "PAUSED")


async def _count_live_subscriptions(db: AsyncSession, plan_id: uuid.UUID) -> int:
    stmt = (
        select(func.count(Subscription.id))
        .where(Subscription.membership_plan_id == plan_id)
        .where(Subscription.status.in_(LIVE_SUBSCRIPTION_STATUSES))
    )
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def _count_subscriptions(db: AsyncSession, plan_id: uuid.UUID) -> int:
    stmt = select(func.count(Subscription.id)).where(Subscription.membership_plan_id == plan_id)
    res = await db.execute(stmt)
    return int(res.scalar() or 0)


async def _plan_out(db: AsyncSession, plan: MembershipPlan) -> PlanOut:
    return PlanOut(
        id=str(plan.id),
        business_id=str(plan.business_id),
        name=plan.name,
        description=plan.description,
        status=plan.status,
        max_subscribers=plan.max_subscribers,
        subscriber_count=await _count_live_subscriptions(db, plan.id),
        created_at=plan.created_at,
    )


async def _load_owned_plan(db: AsyncSession, business_id: uuid.UUID, plan_id: uuid.UUID) -> MembershipPlan:
    await require_resource_ownership(db, ResourceType.PLAN, plan_id, business_id)
    return await db.get(MembershipPlan, plan_id)


@router.get("/{plan_id}", response_model=PlanOut)
async def get_plan(
    business_id: uuid.UUID,
    plan_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.PLANS_VIEW)),
):
    plan = await _load_owned_plan(db, business_id, plan_id)
    return await _plan_out(db, plan)


@router.patch("/{plan_id}", response_model=PlanOut)
async def update_plan(
    business_id: uuid.UUID,
    plan_id: uuid.UUID,
    payload: PlanUpdate,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.PLANS_EDIT)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    plan = await _load_owned_plan(db, business_id, plan_id)

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(plan, field, value)
    await db.commit()

    await audit.record(
        business_id,
        actor.id,
        "PLAN_UPDATED",
        {"plan_id": str(plan_id), "fields": sorted(changes)},
    )
    return await _plan_out(db, plan)


@router.delete("/{plan_id}", status_code=status.HTTP_200_OK)
async def delete_plan(
    business_id: uuid.UUID,
    plan_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.PLANS_DELETE)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Plans are never hard-deleted: an unused plan is archived, and a plan that
    any subscription references (canceled ones included) is refused.
    """
    plan = await _load_owned_plan(db, business_id, plan_id)

    if await _count_subscriptions(db, plan_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete plan with active subscriptions. Archive it instead.",
        )

    plan.status = "ARCHIVED"
    await db.commit()
    await audit.record(business_id, actor.id, "PLAN_ARCHIVED", {"plan_id": str(plan_id), "name": plan.name})
    return {"status": "archived", "plan_id": str(plan_id)}
