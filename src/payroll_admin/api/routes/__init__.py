"""API routes."""

from payroll_admin.api.routes.auth import router as auth_router
from payroll_admin.api.routes.companies import router as companies_router
from payroll_admin.api.routes.employees import router as employees_router
from payroll_admin.api.routes.health import router as health_router
from payroll_admin.api.routes.payroll import router as payroll_router

__all__ = [
    "auth_router",
    "companies_router",
    "employees_router",
    "health_router",
    "payroll_router",
]
