from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wineclub.core.admin_guard import block_debug_routes
from wineclub.core.config import settings
from wineclub.core.errors import TenantGuardError, tenant_guard_exception_handler
from wineclub.core.logger import setup_logging
import wineclub.models  # noqa: F401  # force model registration

from wineclub.api.v1.businesses import router as businesses_router
from wineclub.api.v1.team import router as team_router
from wineclub.api.v1.plans import router as plans_router
from wineclub.api.v1.subscriptions import router as subscriptions_router
from wineclub.api.v1.debug import router as debug_router


def create_application() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Wine Club API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # debug/admin prefixes 404 in production unless ENABLE_ADMIN_ROUTES
    app.middleware("http")(block_debug_routes)

    # AccessDenied -> 403, NotFound -> 404
    app.add_exception_handler(TenantGuardError, tenant_guard_exception_handler)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "wineclub"}

    # Routers
    app.include_router(businesses_router, prefix="/api/v1")
    app.include_router(team_router, prefix="/api/v1")
    app.include_router(plans_router, prefix="/api/v1")
    app.include_router(subscriptions_router, prefix="/api/v1")
    app.include_router(debug_router, prefix="/api")

    return app


app = create_application()
