"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_governance import __version__
from payroll_governance.api.routes import (
    calculations_router,
    company_settings_router,
    config_routers,
    health_router,
)
from payroll_governance.config import get_settings
from payroll_governance.database import create_all, dispose_db, get_session
from payroll_governance.errors import PayrollConfigError
from payroll_governance.services.company_settings_service import CompanySettingsService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/payroll-configuration"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup
    await create_all()
    if settings.company_settings_reset_on_startup:
        async with get_session() as session:
            await CompanySettingsService(session, settings).reset_status()
    logger.info("Payroll configuration API started (version %s)", settings.engine_version)
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Configuration API",
        description="Payroll configuration governance and entitlement calculations",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollConfigError)
    async def payroll_config_exception_handler(
        request: Request, exc: PayrollConfigError
    ) -> JSONResponse:
        """Render domain errors with their stable code."""
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers; calculation routes go first so their literal
    # segments are matched before the per-item routes.
    app.include_router(health_router)
    app.include_router(calculations_router, prefix=API_PREFIX)
    app.include_router(company_settings_router, prefix=API_PREFIX)
    for router in config_routers:
        app.include_router(router, prefix=API_PREFIX)

    return app


# Default app instance for uvicorn
app = create_app()
