"""Deal (立项) endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.bd_dashboard.api.deps import get_deal_service
from src.bd_dashboard.records.schemas import Deal, DealWrite, ItemResponse, ListResponse
from src.bd_dashboard.services.deals import DealService

router = APIRouter(prefix="/deals", tags=["deals"])


@router.get("", response_model=ListResponse[Deal])
async def list_deals(
    keyword: str = Query(default="", description="Match project name"),
    project_id: str = Query(default="", alias="projectId"),
    service: DealService = Depends(get_deal_service),
) -> ListResponse[Deal]:
    return ListResponse[Deal](data=await service.search(keyword, project_id))


@router.get("/{deal_id}", response_model=ItemResponse[Deal])
async def get_deal(
    deal_id: str,
    service: DealService = Depends(get_deal_service),
) -> ItemResponse[Deal]:
    return ItemResponse[Deal](data=await service.get(deal_id))


@router.post("")
async def create_deal(
    body: DealWrite,
    service: DealService = Depends(get_deal_service),
) -> dict[str, Any]:
    return await service.create(body)


@router.put("/{deal_id}")
async def update_deal(
    deal_id: str,
    body: DealWrite,
    service: DealService = Depends(get_deal_service),
) -> dict[str, Any]:
    """Update a deal by 立项ID; numeric fields that do not parse are dropped."""
    return await service.update(deal_id, body)
