"""API router aggregating the dashboard endpoints under /api."""

from fastapi import APIRouter

from src.bd_dashboard.api.v1.customers import router as customers_router
from src.bd_dashboard.api.v1.dashboard import router as dashboard_router
from src.bd_dashboard.api.v1.deals import router as deals_router
from src.bd_dashboard.api.v1.debug import router as debug_router
from src.bd_dashboard.api.v1.kanban import router as kanban_router
from src.bd_dashboard.api.v1.projects import router as projects_router
from src.bd_dashboard.api.v1.reminders import router as reminders_router

api_router = APIRouter(prefix="/api")
api_router.include_router(customers_router)
api_router.include_router(projects_router)
api_router.include_router(deals_router)
api_router.include_router(reminders_router)
api_router.include_router(debug_router)
api_router.include_router(kanban_router)
api_router.include_router(dashboard_router)
