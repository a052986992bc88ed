"""API router aggregation."""

from fastapi import APIRouter

from landbook.api.admin import router as admin_router
from landbook.api.cancelled_sales import router as cancelled_sales_router
from landbook.api.clients import router as clients_router
from landbook.api.expenses import router as expenses_router
from landbook.api.health import router as health_router
from landbook.api.payroll import router as payroll_router
from landbook.api.plots import router as plots_router
from landbook.api.projects import router as projects_router
from landbook.api.reports import router as reports_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(projects_router)
api_router.include_router(plots_router)
api_router.include_router(clients_router)
api_router.include_router(cancelled_sales_router)
api_router.include_router(reports_router)
api_router.include_router(expenses_router)
api_router.include_router(payroll_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
