# wineclub/api/v1/businesses.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wineclub.api.deps.tenant import business_permission, business_roles
from wineclub.auth.permissions import Permission, permissions_for_role
from wineclub.core.roles import BusinessRole, get_role_label
from wineclub.core.tenant_guard import BusinessAccess
from wineclub.db.session import get_db
from wineclub.models.audit_log import AuditLog
from wineclub.models.business import Business
from wineclub.schemas.audit_log import AuditLogOut
from wineclub.schemas.business import BusinessContextOut, BusinessOut

router = APIRouter(prefix="/businesses", tags=["businesses"])


def _business_out(business: Business) -> BusinessOut:
    return BusinessOut(
        id=str(business.id),
        name=business.name,
        slug=business.slug,
        is_active=business.is_active,
        created_at=business.created_at,
    )


@router.get("/{business_id}", response_model=BusinessContextOut)
async def get_business(
    access: BusinessAccess = Depends(business_permission(Permission.DASHBOARD_VIEW)),
):
    """
    Business record plus the caller's role and effective permissions,
    for UI gating.
    """
    return BusinessContextOut(
        business=_business_out(access.business),
        role=access.role.value,
        role_label=get_role_label(access.role),
        permissions=permissions_for_role(access.role),
    )


@router.get("/{business_id}/audit-logs", response_model=List[AuditLogOut])
async def list_audit_logs(
    business_id: uuid.UUID,
    limit: int = Query(default=50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _business: Business = Depends(business_roles(BusinessRole.OWNER, BusinessRole.ADMIN)),
):
    stmt = (
        select(AuditLog)
        .where(AuditLog.business_id == business_id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return [
        AuditLogOut(
            id=str(row.id),
            business_id=str(row.business_id),
            actor_user_id=str(row.actor_user_id) if row.actor_user_id else None,
            type=row.type,
            metadata=row.event_metadata,
            created_at=row.created_at,
        )
        for row in rows
    ]
