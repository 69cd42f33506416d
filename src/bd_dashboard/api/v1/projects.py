"""Project endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.bd_dashboard.api.deps import get_project_service
from src.bd_dashboard.records.schemas import ItemResponse, ListResponse, Project, ProjectWrite
from src.bd_dashboard.services.projects import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ListResponse[Project])
async def list_projects(
    keyword: str = Query(default="", description="Match project name or short name"),
    customer_id: str = Query(default="", alias="customerId"),
    service: ProjectService = Depends(get_project_service),
) -> ListResponse[Project]:
    return ListResponse[Project](data=await service.search(keyword, customer_id))


@router.get("/{project_id}", response_model=ItemResponse[Project])
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> ItemResponse[Project]:
    return ItemResponse[Project](data=await service.get(project_id))


@router.post("")
async def create_project(
    body: ProjectWrite,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    return await service.create(body)


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectWrite,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    return await service.update(project_id, body)
