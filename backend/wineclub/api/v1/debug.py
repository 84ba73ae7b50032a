# wineclub/api/v1/debug.py
from fastapi import APIRouter, Depends

from wineclub.auth.permissions import PERMISSIONS
from wineclub.core.admin_guard import require_admin_routes_enabled
from wineclub.core.roles import ASSIGNABLE_ROLES

router = APIRouter(
    prefix="/debug",
    tags=["debug"],
    dependencies=[Depends(require_admin_routes_enabled)],
)


@router.get("/permissions")
async def dump_permissions():
    """
    The whole permission table, for auditing the authorization surface.
    """
    return {
        "permissions": {
            p.value: sorted(r.value for r in roles) for p, roles in PERMISSIONS.items()
        },
        "assignable_roles": [{"value": r.value, "label": label} for r, label in ASSIGNABLE_ROLES],
    }
