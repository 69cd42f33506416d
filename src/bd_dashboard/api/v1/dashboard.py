"""Dashboard embed endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from src.bd_dashboard.api.deps import get_app_settings
from src.bd_dashboard.config import Settings
from src.bd_dashboard.core.errors import ConfigurationError

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/embed")
async def dashboard_embed(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    url = settings.FEISHU_DASHBOARD_EMBED_URL.strip()
    if not url:
        raise ConfigurationError("missing FEISHU_DASHBOARD_EMBED_URL")
    return {"success": True, "data": {"url": url}}
