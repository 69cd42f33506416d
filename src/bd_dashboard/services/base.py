"""Shared plumbing for services backed by one Bitable table."""

from __future__ import annotations

from typing import Any

import structlog

from src.bd_dashboard.core.errors import ConfigurationError, NotFoundError, VendorError
from src.bd_dashboard.records.field_mapping import FieldSpec, business_id

logger = structlog.get_logger(__name__)


class TableService:
    """Base for a service reading and writing one Bitable table.

    Subclasses set ``resource`` (used in log events) and pass the table's
    coordinates. Missing coordinates are only reported when a request
    actually needs the table.

    Args:
        client: The Bitable client (or a test double with the same methods).
        app_token: Bitable app token of the table.
        table_id: Table id.
        missing_config_message: Error text when either is unset.
        page_size: Records read per scan.
    """

    resource = "records"

    def __init__(
        self,
        client: Any,
        app_token: str,
        table_id: str,
        missing_config_message: str,
        page_size: int = 200,
    ) -> None:
        self.client = client
        self.app_token = app_token
        self.table_id = table_id
        self.missing_config_message = missing_config_message
        self.page_size = page_size

    @property
    def configured(self) -> bool:
        return bool(self.app_token and self.table_id)

    @property
    def target(self) -> dict[str, str]:
        return {"appToken": self.app_token, "tableId": self.table_id}

    def require_table(self) -> None:
        if not self.configured:
            raise ConfigurationError(self.missing_config_message)

    async def scan(self) -> list[dict[str, Any]]:
        """One bounded page of raw records."""
        self.require_table()
        return await self.client.list_records(
            self.app_token, self.table_id, page_size=self.page_size
        )

    async def find_record(self, identifier: str, spec: FieldSpec) -> dict[str, Any] | None:
        """Linear scan for the record whose business id equals ``identifier``."""
        wanted = str(identifier).strip()
        for item in await self.scan():
            if business_id(item, spec) == wanted:
                return item
        return None

    async def require_record(
        self, identifier: str, spec: FieldSpec, message: str
    ) -> dict[str, Any]:
        item = await self.find_record(identifier, spec)
        if item is None or not item.get("record_id"):
            raise NotFoundError(message)
        return item

    async def list_fields(self) -> list[dict[str, Any]]:
        """Field metadata trimmed to id, name and type."""
        self.require_table()
        items = await self.client.list_fields(self.app_token, self.table_id)
        return [
            {
                "field_id": item.get("field_id"),
                "field_name": item.get("field_name"),
                "type": item.get("type"),
            }
            for item in items or []
        ]

    async def create_one(self, fields: dict[str, Any]) -> str:
        """Create a single record and return its record id."""
        logger.info(f"{self.resource}.create", table_id=self.table_id, fields=fields)
        data = await self.client.batch_create_records(
            self.app_token, self.table_id, [{"fields": fields}]
        )
        records = (data or {}).get("records") or []
        record_id = (records[0] or {}).get("record_id") if records else None
        if not record_id:
            raise VendorError("飞书返回异常：未生成 record_id", data=data)
        logger.info(f"{self.resource}.created", table_id=self.table_id, record_id=record_id)
        return record_id

    async def update_one(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        logger.info(
            f"{self.resource}.update", table_id=self.table_id, record_id=record_id, fields=fields
        )
        return await self.client.update_record(self.app_token, self.table_id, record_id, fields)
