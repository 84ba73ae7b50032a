# wineclub/core/errors.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class TenantGuardError(Exception):
    """
    Base for authorization outcomes raised by the tenant guard.

    `code` distinguishes the cause for logs; the boundary only sees the
    status code (403 / 404).
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "tenant_guard_error"

    def __init__(self, message: str, *, code: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class AccessDenied(TenantGuardError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "access_denied"


class NotFound(TenantGuardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


async def tenant_guard_exception_handler(request: Request, exc: TenantGuardError) -> JSONResponse:
    logger.bind(
        code=exc.code,
        path=request.url.path,
        **{k: str(v) for k, v in exc.context.items()},
    ).info("Tenant guard rejected request: {}", exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})
