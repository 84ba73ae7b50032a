# wineclub/core/admin_guard.py
"""
Admin/debug route protection.

Admin and debug endpoints are open in development and hidden (404) in
production unless ENABLE_ADMIN_ROUTES is set. Routers opt in with the
require_admin_routes_enabled dependency; block_debug_routes covers every
path under the debug prefixes, including ones no router serves.
"""
from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from wineclub.core.config import Settings, settings as default_settings

DEBUG_ROUTE_PREFIXES = ("/api/debug/", "/api/admin/", "/api/test/", "/admin/")

_BLOCKED_DETAIL = {
    "error": "Not available",
    "message": "This endpoint is disabled in production",
}


def is_admin_access_allowed(settings: Optional[Settings] = None) -> bool:
    s = settings or default_settings
    if not s.is_production:
        return True
    return bool(s.ENABLE_ADMIN_ROUTES)


def is_debug_route(pathname: str) -> bool:
    return pathname.startswith(DEBUG_ROUTE_PREFIXES)


def admin_route_blocked() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=dict(_BLOCKED_DETAIL))


def get_settings() -> Settings:
    return default_settings


async def require_admin_routes_enabled() -> None:
    """
    Dependency for admin/debug routers.
    """
    if not is_admin_access_allowed(get_settings()):
        raise admin_route_blocked()


async def block_debug_routes(request: Request, call_next):
    """
    HTTP middleware: answer 404 for any debug-prefixed path when admin
    routes are disabled, before routing runs.
    """
    if is_debug_route(request.url.path) and not is_admin_access_allowed(get_settings()):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": dict(_BLOCKED_DETAIL)},
        )
    return await call_next(request)
