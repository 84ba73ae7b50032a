# wineclub/api/v1/subscriptions.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from wineclub.api.deps.auth import get_current_user
from wineclub.api.deps.tenant import AuditRecorder, business_permission, get_audit_recorder
from wineclub.auth.permissions import Permission
from wineclub.core.tenant_guard import BusinessAccess, ResourceType, require_resource_ownership
from wineclub.db.session import get_db
from wineclub.models.subscription import Subscription
from wineclub.models.user import User
from wineclub.schemas.subscription import SubscriptionOut

router = APIRouter(prefix="/businesses/{business_id}/subscriptions", tags=["subscriptions"])

# action -> (statuses it may start from, resulting status, audit type)
TRANSITIONS = {
    "pause": ({"ACTIVE"}, "PAUSED", "SUBSCRIPTION_PAUSED"),
    "resume": ({"PAUSED"}, "ACTIVE", "SUBSCRIPTION_RESUMED"),
    "cancel": ({"ACTIVE", "PAUSED"}, "CANCELED", "SUBSCRIPTION_CANCELED"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_out(sub: Subscription) -> SubscriptionOut:
    return SubscriptionOut(
        id=str(sub.id),
        member_id=str(sub.member_id),
        membership_plan_id=str(sub.membership_plan_id),
        status=sub.status,
        paused_at=sub.paused_at,
        canceled_at=sub.canceled_at,
    )


async def _transition(
    action: str,
    business_id: uuid.UUID,
    subscription_id: uuid.UUID,
    db: AsyncSession,
    actor: User,
    audit: AuditRecorder,
) -> SubscriptionOut:
    await require_resource_ownership(db, ResourceType.SUBSCRIPTION, subscription_id, business_id)
    sub = await db.get(Subscription, subscription_id)

    allowed_from, new_status, audit_type = TRANSITIONS[action]
    if sub.status not in allowed_from:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} a subscription that is {sub.status}",
        )

    previous = sub.status
    sub.status = new_status
    if new_status == "PAUSED":
        sub.paused_at = _utcnow()
    elif new_status == "ACTIVE":
        sub.paused_at = None
    elif new_status == "CANCELED":
        sub.canceled_at = _utcnow()
    await db.commit()

    await audit.record(
        business_id,
        actor.id,
        audit_type,
        {"subscription_id": str(subscription_id), "from": previous, "to": new_status},
    )
    return _to_out(sub)


@router.post("/{subscription_id}/pause", response_model=SubscriptionOut)
async def pause_subscription(
    business_id: uuid.UUID,
    subscription_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.MEMBERS_CANCEL)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    return await _transition("pause", business_id, subscription_id, db, actor, audit)


@router.post("/{subscription_id}/resume", response_model=SubscriptionOut)
async def resume_subscription(
    business_id: uuid.UUID,
    subscription_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.MEMBERS_CANCEL)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    return await _transition("resume", business_id, subscription_id, db, actor, audit)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionOut)
async def cancel_subscription(
    business_id: uuid.UUID,
    subscription_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.MEMBERS_CANCEL)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    return await _transition("cancel", business_id, subscription_id, db, actor, audit)
