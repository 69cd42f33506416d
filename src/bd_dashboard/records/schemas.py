"""Pydantic schemas for dashboard records and request bodies.

Response models serialise with the frontend's camelCase keys. Request models
accept camelCase, stay tolerant of extra keys, and keep field types loose
because the forms post strings, numbers and empty strings interchangeably.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Cell = str | int | float | bool
Amount = float | int | str | None
Person = str | list[dict[str, Any]] | None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestBody(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


# ── Records ──────────────────────────────────────────────────────────────────


class Customer(CamelModel):
    id: str = ""
    customer_id: Cell = ""
    short_name: Cell = ""
    company_name: Cell = ""
    hq: Cell = ""
    customer_type: Cell = ""
    level: Cell = ""
    cooperation_status: Cell = ""
    industry: Cell = ""
    is_annual: bool = False
    owner: Cell = ""
    owner_user_id: str = ""


class Project(CamelModel):
    project_id: Cell = ""
    customer_id: Cell = ""
    short_name: Cell = ""
    project_name: Cell = ""
    service_type: Cell = ""
    project_type: Cell = ""
    stage: Cell = ""
    priority: Cell = ""
    bd: Cell = ""
    am: Cell = ""
    month: Cell = ""
    next_follow_date: str = ""
    campaign_name: Cell = ""
    deliverable_name: Cell = ""
    expected_amount: float | int = 0
    total_bd_hours: float | int = 0
    last_update_date: str = ""


class Deal(CamelModel):
    serial_no: str = ""
    deal_id: str = ""
    project_id: str = ""
    customer_id: str = ""
    project_name: str = ""
    month: str = ""
    start_date: str = ""
    end_date: str = ""
    is_finished: Any = ""
    sign_company: Any = ""
    income_with_tax: float | int | None = None
    income_without_tax: float | int | None = None
    estimated_cost: float | int | None = None
    paid_third_party_cost: float | int | None = None
    gross_profit: float | int | None = None
    gross_margin: float | int | None = None
    first_payment_date: str = ""
    final_payment_date: str = ""
    received_amount: float | int | None = None
    remaining_receivable: float | int | None = None


class ReminderItem(CamelModel):
    project_id: Cell = ""
    project_name: Cell = ""
    short_name: Cell = ""
    bd: Cell = ""
    stage: Cell = ""
    last_update_date: str = ""
    next_follow_date: str = ""
    reason: str = ""


# ── Envelopes ────────────────────────────────────────────────────────────────

T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    data: list[T] = Field(default_factory=list)


class ItemResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


# ── Request Bodies ───────────────────────────────────────────────────────────


class CustomerWrite(RequestBody):
    """Body for creating or updating a customer."""

    short_name: str | None = None
    name: str | None = None
    company_name: str | None = None
    hq: str | None = None
    customer_type: str | None = None
    level: str | None = None
    cooperation_status: str | None = None
    industry: str | None = None
    is_annual: Any = None
    owner_user_id: str | None = None
    owner_bd: str | None = None
    owner: str | None = None


class ProjectWrite(RequestBody):
    """Body for creating or updating a project.

    ``bd`` / ``am`` take a display name or a ready ``[{"id": ...}]`` list.
    """

    project_id: str | None = None
    customer_id: str | None = None
    project_name: str | None = None
    short_name: str | None = None
    service_type: str | None = None
    project_type: str | None = None
    stage: str | None = None
    priority: str | None = None
    month: str | None = None
    next_follow_date: str | None = None
    campaign_name: str | None = None
    deliverable_name: str | None = None
    total_bd_hours: Amount = None
    last_update_date: str | None = None
    expected_amount: Amount = None
    bd: Person = None
    am: Person = None


class DealWrite(RequestBody):
    """Body for creating or updating a deal (立项)."""

    deal_id: str | None = None
    project_id: str | None = None
    customer_id: str | None = None
    project_name: str | None = None
    month: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    is_finished: Any = None
    sign_company: str | None = None
    income_with_tax: Amount = None
    income_without_tax: Amount = None
    estimated_cost: Amount = None
    paid_third_party_cost: Amount = None
    third_party_cost: Amount = None
    gross_profit: Amount = None
    gross_margin: Amount = None
    received_amount: Amount = None
    remaining_receivable: Amount = None
    first_payment_date: str | None = None
    final_payment_date: str | None = None
