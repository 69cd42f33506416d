"""FastAPI dependencies that hand out the services stored on app.state."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status

from src.bd_dashboard.config import Settings
from src.bd_dashboard.services.customers import CustomerService
from src.bd_dashboard.services.deals import DealService
from src.bd_dashboard.services.projects import ProjectService
from src.bd_dashboard.services.reminders import ReminderService


def _state(request: Request, name: str) -> Any:
    """Retrieve a service from app.state, 503 if it was never initialized."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialized",
        )
    return value


def get_app_settings(request: Request) -> Settings:
    return _state(request, "settings")


def get_customer_service(request: Request) -> CustomerService:
    return _state(request, "customer_service")


def get_project_service(request: Request) -> ProjectService:
    return _state(request, "project_service")


def get_deal_service(request: Request) -> DealService:
    return _state(request, "deal_service")


def get_reminder_service(request: Request) -> ReminderService:
    return _state(request, "reminder_service")
