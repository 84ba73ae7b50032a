# wineclub/crud/business_user.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from wineclub.core.roles import ROLE_SORT_ORDER
from wineclub.models.business_user import BusinessUser
from wineclub.models.user import User

_ROLE_ORDER = case(
    *[(BusinessUser.role == role.value, rank) for role, rank in ROLE_SORT_ORDER.items()],
    else_=len(ROLE_SORT_ORDER),
)


async def list_team(db: AsyncSession, business_id: uuid.UUID) -> List[BusinessUser]:
    """
    Team members of a business: OWNER first, then ADMIN, then STAFF,
    oldest first within a role.
    """
    stmt = (
        select(BusinessUser)
        .options(joinedload(BusinessUser.user))
        .where(BusinessUser.business_id == business_id)
        .order_by(_ROLE_ORDER, BusinessUser.created_at)
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_team_member(
    db: AsyncSession,
    business_id: uuid.UUID,
    member_id: uuid.UUID,
) -> Optional[BusinessUser]:
    """
    Membership link by id, scoped to the business so ids from other
    tenants never resolve.
    """
    stmt = (
        select(BusinessUser)
        .options(joinedload(BusinessUser.user))
        .where(
            BusinessUser.id == member_id,
            BusinessUser.business_id == business_id,
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def find_team_member_by_email(
    db: AsyncSession,
    business_id: uuid.UUID,
    email: str,
) -> Optional[BusinessUser]:
    stmt = (
        select(BusinessUser)
        .join(User, User.id == BusinessUser.user_id)
        .where(
            BusinessUser.business_id == business_id,
            User.email == User.normalize_email(email),
        )
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_or_create_user(db: AsyncSession, email: str) -> User:
    """
    Look a user up by email, creating a bare record when unknown.
    The invitee completes their profile on first sign-in.
    """
    email = User.normalize_email(email)
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is None:
        user = User(email=email, is_active=True)
        db.add(user)
        await db.flush()
    return user
