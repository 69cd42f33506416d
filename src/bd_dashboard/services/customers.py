"""Customer table operations.

The customer table is the original single-table setup: its writes go
through the field map cache so column labels with stray whitespace still
match, and its 主BD负责人 person column falls back to the project table's BD
column when the customer table has no usable person data yet.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from src.bd_dashboard.bitable.field_map import FieldMapCache
from src.bd_dashboard.bitable.persons import PersonField, PersonResolver
from src.bd_dashboard.core.errors import BadRequestError, NotFoundError, UnresolvedPersonError
from src.bd_dashboard.records.field_mapping import (
    CUSTOMER_FIELD,
    CUSTOMER_SPECS,
    FieldSet,
    map_record,
)
from src.bd_dashboard.records.schemas import Customer, CustomerWrite
from src.bd_dashboard.services.base import TableService

logger = structlog.get_logger(__name__)

RECORD_ID_PATTERN = re.compile(r"^rec[A-Za-z0-9]+$")

_ID_SPEC = CUSTOMER_SPECS[0]


def to_customer(item: dict[str, Any]) -> Customer:
    data = map_record(item, CUSTOMER_SPECS)
    data["id"] = item.get("record_id") or ""
    return Customer.model_validate(data)


class CustomerService(TableService):
    resource = "customers"

    def __init__(
        self,
        client: Any,
        app_token: str,
        table_id: str,
        field_maps: FieldMapCache,
        persons: PersonResolver,
        owner_fallback: PersonField | None = None,
        page_size: int = 200,
    ) -> None:
        super().__init__(
            client,
            app_token,
            table_id,
            "缺少 FEISHU_BITABLE_APP_TOKEN 或 FEISHU_BITABLE_TABLE_ID",
            page_size=page_size,
        )
        self.field_maps = field_maps
        self.persons = persons
        self.owner_fallback = owner_fallback

    @property
    def owner_field(self) -> PersonField:
        return PersonField(self.app_token, self.table_id, CUSTOMER_FIELD["owner"])

    async def search(self, keyword: str = "") -> list[Customer]:
        customers = [to_customer(item) for item in await self.scan()]
        keyword = keyword.strip().lower()
        if keyword:
            customers = [
                c
                for c in customers
                if any(
                    keyword in str(value).lower()
                    for value in (c.short_name, c.company_name, c.customer_id)
                )
            ]
        return customers

    async def get_record(self, record_id: str) -> dict[str, Any]:
        self.require_table()
        return await self.client.get_record(self.app_token, self.table_id, record_id)

    async def resolve_owner(self, name: str) -> tuple[list[dict[str, Any]] | None, list[str]]:
        """Resolve a BD owner name on the customer table, then the project table."""
        fields = [self.owner_field]
        if self.owner_fallback is not None:
            fields.append(self.owner_fallback)
        return await self.persons.resolve_with_fallback(fields, name)

    async def _apply_owner(self, fs: FieldSet, body: CustomerWrite) -> None:
        owner_user_id = (body.owner_user_id or "").strip()
        owner_name = (body.owner_bd or body.owner or "").strip()
        label = CUSTOMER_FIELD["owner"]
        if owner_user_id:
            fs.set_raw(label, [{"id": owner_user_id}])
        elif owner_name:
            resolved, known = await self.resolve_owner(owner_name)
            if not resolved:
                logger.warning("customers.owner_unresolved", name=owner_name, known=len(known))
                raise UnresolvedPersonError("BD", owner_name, known)
            fs.set_raw(label, resolved)

    def _apply_common(self, fs: FieldSet, body: CustomerWrite) -> None:
        fs.set_if(CUSTOMER_FIELD["companyName"], body.company_name)
        fs.set_if(CUSTOMER_FIELD["hq"], body.hq)
        fs.set_if(CUSTOMER_FIELD["customerType"], body.customer_type)
        fs.set_if(CUSTOMER_FIELD["level"], body.level)
        fs.set_if(CUSTOMER_FIELD["cooperationStatus"], body.cooperation_status)
        fs.set_if(CUSTOMER_FIELD["industry"], body.industry)

    async def create(self, body: CustomerWrite) -> dict[str, Any]:
        self.require_table()
        short_name = (body.short_name or body.name or "").strip()
        if not short_name:
            raise BadRequestError("缺少 shortName 或 name")

        fs = FieldSet()
        fs.set_if(CUSTOMER_FIELD["shortName"], short_name)
        fs.set_raw(CUSTOMER_FIELD["isAnnual"], bool(body.is_annual))
        self._apply_common(fs, body)
        await self._apply_owner(fs, body)

        fields = await self.field_maps.canonicalize(self.app_token, self.table_id, fs.fields)
        record_id = await self.create_one(fields)
        return {"success": True, "record_id": record_id, "target": self.target, "fields": fields}

    async def resolve_record_id(self, customer_id: str) -> str:
        """Accept a record id as-is; otherwise look up the 客户ID column."""
        customer_id = customer_id.strip()
        if not customer_id:
            raise BadRequestError("缺少 customerId")
        if RECORD_ID_PATTERN.match(customer_id):
            return customer_id
        item = await self.find_record(customer_id, _ID_SPEC)
        if item is None or not item.get("record_id"):
            raise NotFoundError(f"未找到对应客户（customerId={customer_id}）")
        return item["record_id"]

    async def update(self, customer_id: str, body: CustomerWrite) -> dict[str, Any]:
        self.require_table()
        record_id = await self.resolve_record_id(customer_id)

        # 客户ID is never written on update
        fs = FieldSet()
        fs.set_if(CUSTOMER_FIELD["shortName"], body.short_name)
        self._apply_common(fs, body)
        if body.is_annual is not None:
            fs.set_raw(CUSTOMER_FIELD["isAnnual"], bool(body.is_annual))
        await self._apply_owner(fs, body)

        fields = await self.field_maps.canonicalize(self.app_token, self.table_id, fs.fields)
        data = await self.update_one(record_id, fields)
        return {"success": True, "record_id": record_id, "data": data, "fields": fields}
