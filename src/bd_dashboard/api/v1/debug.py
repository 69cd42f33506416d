"""Introspection endpoints for checking table wiring against Feishu."""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Depends, Request

from src.bd_dashboard.api.deps import (
    get_app_settings,
    get_customer_service,
    get_deal_service,
    get_project_service,
)
from src.bd_dashboard.config import Settings
from src.bd_dashboard.services.customers import CustomerService
from src.bd_dashboard.services.deals import DealService
from src.bd_dashboard.services.projects import ProjectService

router = APIRouter(tags=["debug"])


@router.get("/debug-env")
async def debug_env(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Which build is serving and which tables it points at. The secret is masked."""
    return {
        "buildId": getattr(request.app.state, "build_id", None),
        "cwd": os.getcwd(),
        "env": {
            "FEISHU_APP_ID": settings.FEISHU_APP_ID or None,
            "FEISHU_APP_SECRET": "***" if settings.FEISHU_APP_SECRET else None,
            "FEISHU_BITABLE_APP_TOKEN": settings.customer_app_token or None,
            "FEISHU_BITABLE_TABLE_ID": settings.customer_table_id or None,
            "FEISHU_PROJECT_APP_TOKEN": settings.project_app_token or None,
            "FEISHU_BITABLE_PROJECT_TABLE_ID": settings.project_table_id or None,
            "FEISHU_DEAL_APP_TOKEN": settings.deal_app_token or None,
            "FEISHU_BITABLE_DEAL_TABLE_ID": settings.deal_table_id or None,
            "PORT": settings.PORT,
            "ENVIRONMENT": settings.ENVIRONMENT.value,
        },
    }


@router.get("/records/{record_id}")
async def get_customer_record(
    record_id: str,
    service: CustomerService = Depends(get_customer_service),
) -> dict[str, Any]:
    """Read a customer record back by record id to confirm a write landed."""
    return {"success": True, "data": await service.get_record(record_id)}


@router.get("/test-fields")
async def customer_fields(
    service: CustomerService = Depends(get_customer_service),
) -> dict[str, Any]:
    return {"success": True, "data": await service.list_fields()}


@router.get("/test-project-fields")
async def project_fields(
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    return {"success": True, "data": await service.list_fields()}


@router.get("/test-deal-fields")
async def deal_fields(
    service: DealService = Depends(get_deal_service),
) -> dict[str, Any]:
    return {"success": True, "data": await service.list_fields()}


@router.get("/project-persons")
async def project_persons(
    service: ProjectService = Depends(get_project_service),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Person name/id pairs seen in the project table's BD and AM columns."""
    directory = await service.person_directory(settings.get_person_id_map())
    return {"success": True, "data": directory}
