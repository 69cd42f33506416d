"""Deal (立项) table operations."""

from __future__ import annotations

from typing import Any

from src.bd_dashboard.core.errors import BadRequestError
from src.bd_dashboard.records.dates import DEFAULT_HEURISTICS, DateHeuristics
from src.bd_dashboard.records.field_mapping import (
    DEAL_FIELD,
    DEAL_NUMBER_FIELDS,
    DEAL_SPECS,
    FieldSet,
    map_record,
    normalize_month,
)
from src.bd_dashboard.records.schemas import Deal, DealWrite
from src.bd_dashboard.services.base import TableService

_ID_SPEC = next(spec for spec in DEAL_SPECS if spec.key == "dealId")


class DealService(TableService):
    resource = "deals"

    def __init__(
        self,
        client: Any,
        app_token: str,
        table_id: str,
        page_size: int = 200,
        heuristics: DateHeuristics = DEFAULT_HEURISTICS,
    ) -> None:
        super().__init__(
            client,
            app_token,
            table_id,
            "missing deal appToken/tableId (FEISHU_DEAL_APP_TOKEN/FEISHU_BITABLE_DEAL_TABLE_ID)",
            page_size=page_size,
        )
        self.heuristics = heuristics

    def to_deal(self, item: dict[str, Any]) -> Deal:
        return Deal.model_validate(map_record(item, DEAL_SPECS, self.heuristics))

    async def search(self, keyword: str = "", project_id: str = "") -> list[Deal]:
        deals = [self.to_deal(item) for item in await self.scan()]
        keyword = keyword.strip().lower()
        project_id = project_id.strip()
        if keyword:
            deals = [d for d in deals if keyword in d.project_name.lower()]
        if project_id:
            deals = [d for d in deals if d.project_id == project_id]
        return deals

    async def get(self, deal_id: str) -> Deal:
        item = await self.require_record(deal_id, _ID_SPEC, "deal not found")
        return self.to_deal(item)

    def _apply_common(self, fs: FieldSet, body: DealWrite) -> None:
        fs.set_if(DEAL_FIELD["projectId"], body.project_id)
        fs.set_if(DEAL_FIELD["customerId"], body.customer_id)
        fs.set_if(DEAL_FIELD["month"], normalize_month(body.month))
        fs.set_if(DEAL_FIELD["startDate"], body.start_date)
        fs.set_if(DEAL_FIELD["endDate"], body.end_date)
        fs.set_if(DEAL_FIELD["isFinished"], body.is_finished)
        fs.set_if(DEAL_FIELD["signCompany"], body.sign_company)
        for key in DEAL_NUMBER_FIELDS:
            fs.set_number(DEAL_FIELD[key], getattr(body, _snake(key)))
        # thirdPartyCost is the older name of paidThirdPartyCost and wins when both are sent
        fs.set_number(DEAL_FIELD["paidThirdPartyCost"], body.third_party_cost)
        fs.set_if(DEAL_FIELD["firstPaymentDate"], body.first_payment_date)
        fs.set_if(DEAL_FIELD["finalPaymentDate"], body.final_payment_date)

    async def create(self, body: DealWrite) -> dict[str, Any]:
        self.require_table()
        deal_id = (body.deal_id or "").strip()
        if not deal_id:
            raise BadRequestError("missing dealId")

        fs = FieldSet()
        fs.set_if(DEAL_FIELD["dealId"], deal_id)
        self._apply_common(fs, body)

        record_id = await self.create_one(fs.fields)
        return {"success": True, "record_id": record_id, "fields": fs.fields}

    async def update(self, deal_id: str, body: DealWrite) -> dict[str, Any]:
        item = await self.require_record(deal_id, _ID_SPEC, "deal not found")
        record_id = item["record_id"]

        # 立项ID is never written on update
        fs = FieldSet()
        self._apply_common(fs, body)

        data = await self.update_one(record_id, fs.fields)
        return {"success": True, "record_id": record_id, "data": data, "fields": fs.fields}


def _snake(key: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in key)
