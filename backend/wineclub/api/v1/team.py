# wineclub/api/v1/team.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wineclub.api.deps.auth import get_current_user
from wineclub.api.deps.tenant import AuditRecorder, business_permission, get_audit_recorder
from wineclub.auth.permissions import Permission, is_owner
from wineclub.core.errors import AccessDenied, NotFound
from wineclub.core.roles import get_role_label, is_assignable_role, parse_role
from wineclub.core.tenant_guard import BusinessAccess
from wineclub.crud.business_user import (
    find_team_member_by_email,
    get_or_create_user,
    get_team_member,
    list_team,
)
from wineclub.db.session import get_db
from wineclub.models.business_user import BusinessUser
from wineclub.models.user import User
from wineclub.schemas.team import TeamInviteCreate, TeamMemberOut, TeamRoleUpdate

router = APIRouter(prefix="/businesses/{business_id}/team", tags=["team"])


def _to_member_out(link: BusinessUser) -> TeamMemberOut:
    return TeamMemberOut(
        id=str(link.id),
        user_id=str(link.user_id),
        email=link.user.email,
        name=link.user.name,
        role=link.role,
        role_label=get_role_label(link.role),
        created_at=link.created_at,
    )


def _require_assignable(role: str) -> str:
    if not is_assignable_role(role):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid role. Must be ADMIN or STAFF (Employee).",
        )
    return parse_role(role).value


async def _load_member_or_404(db: AsyncSession, business_id: uuid.UUID, member_id: uuid.UUID) -> BusinessUser:
    target = await get_team_member(db, business_id, member_id)
    if target is None:
        raise NotFound("Team member not found", code="team_member_not_found", business_id=business_id)
    return target


@router.get("", response_model=List[TeamMemberOut])
async def list_team_members(
    business_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.TEAM_VIEW)),
):
    return [_to_member_out(link) for link in await list_team(db, business_id)]


@router.post("/invite", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
async def invite_team_member(
    business_id: uuid.UUID,
    payload: TeamInviteCreate,
    db: AsyncSession = Depends(get_db),
    access: BusinessAccess = Depends(business_permission(Permission.TEAM_INVITE)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Add someone to the team. Unknown emails get a bare user record and
    complete their profile on first sign-in.
    """
    role = _require_assignable(payload.role)

    if await find_team_member_by_email(db, business_id, payload.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This person is already on the team",
        )

    user = await get_or_create_user(db, payload.email)
    link = BusinessUser(business_id=access.business.id, user_id=user.id, role=role)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # race: linked concurrently after the check above
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This person is already on the team",
        )

    link = await _load_member_or_404(db, business_id, link.id)

    logger.bind(business_id=str(business_id), user_id=str(user.id), role=role).info("Team member invited")
    await audit.record(
        business_id,
        actor.id,
        "TEAM_MEMBER_INVITED",
        {"email": user.email, "role": role, "member_id": str(link.id)},
    )
    return _to_member_out(link)


@router.patch("/{member_id}", response_model=TeamMemberOut)
async def change_team_member_role(
    business_id: uuid.UUID,
    member_id: uuid.UUID,
    payload: TeamRoleUpdate,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.TEAM_CHANGE_ROLE)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    new_role = _require_assignable(payload.role)
    target = await _load_member_or_404(db, business_id, member_id)

    if is_owner(target.role):
        raise AccessDenied(
            "Cannot change the business owner's role",
            code="owner_immutable",
            business_id=business_id,
        )

    previous_role = target.role
    target.role = new_role
    await db.commit()

    logger.bind(
        business_id=str(business_id),
        member_id=str(member_id),
        previous_role=previous_role,
        role=new_role,
    ).info("Team member role changed")
    await audit.record(
        business_id,
        actor.id,
        "TEAM_ROLE_CHANGED",
        {"member_id": str(member_id), "from": previous_role, "to": new_role},
    )
    return _to_member_out(target)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team_member(
    business_id: uuid.UUID,
    member_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _access: BusinessAccess = Depends(business_permission(Permission.TEAM_REMOVE)),
    actor: User = Depends(get_current_user),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    target = await _load_member_or_404(db, business_id, member_id)

    if is_owner(target.role):
        raise AccessDenied(
            "Cannot remove the business owner",
            code="owner_immutable",
            business_id=business_id,
        )

    if target.user_id == actor.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove yourself from the team",
        )

    removed = {"member_id": str(target.id), "user_id": str(target.user_id), "role": target.role}
    await db.delete(target)
    await db.commit()

    logger.bind(business_id=str(business_id), **removed).info("Team member removed")
    await audit.record(business_id, actor.id, "TEAM_MEMBER_REMOVED", removed)
    return None
