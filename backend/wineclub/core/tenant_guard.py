# backend/wineclub/core/tenant_guard.py
"""
Tenant-scoped authorization.

Every handler that reads or mutates tenant data asks this module first:

  - require_business_access(): is the caller on the business's team (and in
    one of the given roles)?
  - require_permission(): does the caller's role carry a named permission?
  - verify_resource_ownership(): does a plan/member/price/subscription belong
    to the business the caller was authorized for?
  - log_tenant_action(): append an audit entry without ever failing the
    action it describes.

Nothing is cached between calls; a role change applies to the next check.
"""
from __future__ import annotations

import asyncio
import enum
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from wineclub.auth.permissions import has_permission, parse_permission
from wineclub.core.errors import AccessDenied, NotFound
from wineclub.core.roles import BusinessRole, parse_role
from wineclub.models.audit_log import AuditLog
from wineclub.models.business import Business
from wineclub.models.business_user import BusinessUser
from wineclub.models.member import Member
from wineclub.models.membership_plan import MembershipPlan
from wineclub.models.price import Price
from wineclub.models.subscription import Subscription


class ResourceType(str, enum.Enum):
    PLAN = "plan"
    MEMBER = "member"
    PRICE = "price"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class BusinessAccess:
    business: Business
    role: BusinessRole


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


async def _get_business_user(
    db: AsyncSession,
    user_id: Any,
    business_id: Any,
) -> Optional[BusinessUser]:
    """
    The one membership lookup both access checks share.
    Malformed ids are treated as "no link".
    """
    user_uuid = _as_uuid(user_id)
    business_uuid = _as_uuid(business_id)
    if user_uuid is None or business_uuid is None:
        return None

    stmt = (
        select(BusinessUser)
        .options(joinedload(BusinessUser.business))
        .where(
            BusinessUser.user_id == user_uuid,
            BusinessUser.business_id == business_uuid,
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def require_business_access(
    db: AsyncSession,
    user_id: Any,
    business_id: Any,
    required_roles: Optional[Iterable[BusinessRole | str]] = None,
) -> Business:
    """
    Return the business if `user_id` is on its team.

    Raises AccessDenied when there is no membership link (whether or not the
    business exists) or when `required_roles` is given and the caller's role
    is not among them.
    """
    link = await _get_business_user(db, user_id, business_id)
    if link is None:
        raise AccessDenied(
            "Access denied: You do not have access to this business",
            code="no_business_access",
            user_id=user_id,
            business_id=business_id,
        )

    if required_roles is not None:
        allowed = [r for r in (parse_role(x) for x in required_roles) if r is not None]
        if parse_role(link.role) not in allowed:
            required = " or ".join(r.value for r in allowed) or "an unknown"
            raise AccessDenied(
                f"Access denied: This operation requires {required} role",
                code="insufficient_role",
                user_id=user_id,
                business_id=business_id,
            )

    return link.business


async def require_permission(
    db: AsyncSession,
    user_id: Any,
    business_id: Any,
    permission: Any,
) -> BusinessAccess:
    """
    Resolve the caller's role in the business and check it against the
    permission table. Unknown permission names deny.
    """
    link = await _get_business_user(db, user_id, business_id)
    if link is None:
        raise AccessDenied(
            "Access denied: You do not have access to this business",
            code="no_business_access",
            user_id=user_id,
            business_id=business_id,
        )

    role = parse_role(link.role)
    if role is None or not has_permission(role, permission):
        p = parse_permission(permission)
        name = p.value if p is not None else str(permission)
        raise AccessDenied(
            f"Access denied: Missing permission {name}",
            code="missing_permission",
            user_id=user_id,
            business_id=business_id,
            permission=name,
        )

    return BusinessAccess(business=link.business, role=role)


def _owner_query(resource_type: ResourceType, resource_id: uuid.UUID):
    if resource_type is ResourceType.PLAN:
        return select(MembershipPlan.business_id).where(MembershipPlan.id == resource_id)
    if resource_type is ResourceType.MEMBER:
        return select(Member.business_id).where(Member.id == resource_id)
    if resource_type is ResourceType.PRICE:
        return (
            select(MembershipPlan.business_id)
            .join(Price, Price.membership_plan_id == MembershipPlan.id)
            .where(Price.id == resource_id)
        )
    if resource_type is ResourceType.SUBSCRIPTION:
        return (
            select(Member.business_id)
            .join(Subscription, Subscription.member_id == Member.id)
            .where(Subscription.id == resource_id)
        )
    return None


async def verify_resource_ownership(
    db: AsyncSession,
    resource_type: ResourceType | str,
    resource_id: Any,
    expected_business_id: Any,
) -> bool:
    """
    True only when the resource exists and belongs to `expected_business_id`.

    "Missing" and "owned by another business" both return False so callers
    cannot probe for resources in other tenants.
    """
    try:
        rtype = ResourceType(resource_type)
    except ValueError:
        return False

    rid = _as_uuid(resource_id)
    expected = _as_uuid(expected_business_id)
    if rid is None or expected is None:
        return False

    stmt = _owner_query(rtype, rid)
    if stmt is None:
        return False

    owner_id = (await db.execute(stmt)).scalar_one_or_none()
    return owner_id is not None and owner_id == expected


async def require_resource_ownership(
    db: AsyncSession,
    resource_type: ResourceType | str,
    resource_id: Any,
    expected_business_id: Any,
) -> None:
    """
    Raising form of verify_resource_ownership(). The 404 never says whether
    the resource exists elsewhere.
    """
    if not await verify_resource_ownership(db, resource_type, resource_id, expected_business_id):
        label = getattr(resource_type, "value", resource_type)
        raise NotFound(
            f"{str(label).capitalize()} not found",
            code="resource_not_found",
            business_id=expected_business_id,
            resource_type=label,
        )


async def log_tenant_action(
    session_factory: async_sessionmaker[AsyncSession],
    business_id: Any,
    actor_user_id: Any,
    action: str,
    metadata: Optional[dict[str, Any]] = None,
) -> bool:
    """
    Append an audit entry in its own session.

    An unavailable audit sink is logged and reported as False; it never
    raises into, blocks, or rolls back the action being audited.
    """
    try:
        async with session_factory() as session:
            session.add(
                AuditLog(
                    business_id=_as_uuid(business_id),
                    actor_user_id=_as_uuid(actor_user_id),
                    type=action,
                    event_metadata=metadata or None,
                )
            )
            await session.commit()
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        logger.bind(
            business_id=str(business_id),
            actor_user_id=str(actor_user_id),
            action=action,
        ).warning("Audit log write failed: {}", exc)
        return False

    return True
