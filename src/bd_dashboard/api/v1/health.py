"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.bd_dashboard.api.deps import get_app_settings
from src.bd_dashboard.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    return {"status": "healthy", "environment": settings.ENVIRONMENT.value}
