"""API routes."""

from payroll_governance.api.routes.calculations import router as calculations_router
from payroll_governance.api.routes.company_settings import router as company_settings_router
from payroll_governance.api.routes.configurations import config_routers
from payroll_governance.api.routes.health import router as health_router

__all__ = [
    "calculations_router",
    "company_settings_router",
    "config_routers",
    "health_router",
]
