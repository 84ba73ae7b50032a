import uuid
from typing import Callable

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wineclub.api.deps.auth import get_current_user
from wineclub.auth.permissions import Permission
from wineclub.core.config import settings
from wineclub.core.roles import BusinessRole
from wineclub.core.tenant_guard import (
    BusinessAccess,
    log_tenant_action,
    require_business_access,
    require_permission,
)
from wineclub.db.session import get_audit_sessionmaker, get_db
from wineclub.models.business import Business
from wineclub.models.user import User


def business_permission(permission: Permission) -> Callable:
    """
    Enforce `permission` for the caller on the `business_id` path parameter.
    Returns the authorized business plus the caller's role.
    """

    async def _checker(
        business_id: uuid.UUID,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ) -> BusinessAccess:
        return await require_permission(db, user.id, business_id, permission)

    return _checker


def business_roles(*allowed_roles: BusinessRole) -> Callable:
    """
    Enforce membership role ∈ allowed_roles; no roles means any team member.
    """
    required = list(allowed_roles) or None

    async def _checker(
        business_id: uuid.UUID,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ) -> Business:
        return await require_business_access(db, user.id, business_id, required)

    return _checker


class AuditRecorder:
    """
    Writes audit entries after the guarded action, inline or as a
    background task depending on AUDIT_LOG_MODE. Never raises.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        background_tasks: BackgroundTasks,
        mode: str,
    ):
        self.session_factory = session_factory
        self.background_tasks = background_tasks
        self.mode = mode

    async def record(self, business_id, actor_user_id, action: str, metadata: dict | None = None) -> None:
        if self.mode == "background":
            self.background_tasks.add_task(
                log_tenant_action,
                self.session_factory,
                business_id,
                actor_user_id,
                action,
                metadata,
            )
            return
        await log_tenant_action(self.session_factory, business_id, actor_user_id, action, metadata)


async def get_audit_recorder(
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_audit_sessionmaker),
) -> AuditRecorder:
    return AuditRecorder(session_factory, background_tasks, settings.AUDIT_LOG_MODE)
