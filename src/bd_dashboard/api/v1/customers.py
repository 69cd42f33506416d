"""Customer endpoints: list/search, create, update."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.bd_dashboard.api.deps import get_customer_service
from src.bd_dashboard.records.schemas import Customer, CustomerWrite, ListResponse
from src.bd_dashboard.services.customers import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=ListResponse[Customer])
async def list_customers(
    keyword: str = Query(default="", description="Match short name, company name or 客户ID"),
    service: CustomerService = Depends(get_customer_service),
) -> ListResponse[Customer]:
    return ListResponse[Customer](data=await service.search(keyword))


@router.post("")
async def create_customer(
    body: CustomerWrite,
    service: CustomerService = Depends(get_customer_service),
) -> dict[str, Any]:
    """Create a customer; ``ownerBd`` names are resolved to user ids."""
    return await service.create(body)


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    body: CustomerWrite,
    service: CustomerService = Depends(get_customer_service),
) -> dict[str, Any]:
    """Update a customer by record id or 客户ID. 客户ID itself is never changed."""
    return await service.update(customer_id, body)
