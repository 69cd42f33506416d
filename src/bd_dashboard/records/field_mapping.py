"""Bitable column mappings for customers, projects and deals.

Defines:
- CUSTOMER_FIELD / PROJECT_FIELD / DEAL_FIELD: app field -> Bitable column label.
- CUSTOMER_SPECS / PROJECT_SPECS / DEAL_SPECS: how each app field is read back.
- map_record(): Converts one Bitable record into a flat app dict.
- FieldSet: Builds a write payload with "set if present" semantics.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

from src.bd_dashboard.bitable.persons import pick_person_id
from src.bd_dashboard.records.dates import DEFAULT_HEURISTICS, DateHeuristics, format_date_loose
from src.bd_dashboard.records.values import (
    coerce_number,
    normalize_any,
    parse_number,
    pick_number,
    pick_single,
)

FieldKind = Literal["text", "trimmed", "number", "amount", "date", "flag", "raw", "person_id"]


@dataclass(frozen=True)
class FieldSpec:
    """How one app field is read from a Bitable record.

    ``labels`` are tried in order, then the app key itself. Identifier fields
    additionally fall back to a generic ``id`` and to the record's own id.
    """

    key: str
    labels: tuple[str, ...]
    kind: FieldKind = "text"
    identifier: bool = False


# ── Column Labels ──────────────────────────────────────────────────────────

CUSTOMER_FIELD: dict[str, str] = {
    "customerId": "客户ID",
    "shortName": "客户/部门简称",
    "companyName": "企业名称",
    "hq": "公司总部地区",
    "customerType": "客户类型",
    "level": "客户等级",
    "cooperationStatus": "合作状态",
    "industry": "行业大类",
    "isAnnual": "年框客户",
    "owner": "主BD负责人",
}

PROJECT_FIELD: dict[str, str] = {
    "projectId": "项目ID",
    "customerId": "客户ID",
    "projectName": "项目名称",
    "shortName": "客户/部门简称",
    "campaignName": "活动名称",
    "deliverableName": "交付名称",
    "month": "所属年月",
    "serviceType": "服务类型",
    "projectType": "项目类别",
    "stage": "项目进度",
    "priority": "优先级",
    "expectedAmount": "预估项目金额",
    "bd": "BD",
    "am": "AM",
    "totalBdHours": "累计商务时间（hr）",
    "lastUpdateDate": "最新更新日期",
    "nextFollowDate": "下次跟进日期",
}

DEAL_FIELD: dict[str, str] = {
    "serialNo": "编号",
    "dealId": "立项ID",
    "projectId": "项目ID",
    "customerId": "客户ID",
    "projectName": "项目名称",
    "month": "所属月份",
    "startDate": "项目开始时间",
    "endDate": "项目结束时间",
    "isFinished": "是否完结",
    "signCompany": "签约公司主体",
    "incomeWithTax": "含税收入",
    "incomeWithoutTax": "不含税收入",
    "estimatedCost": "预估成本",
    "paidThirdPartyCost": "已付三方成本",
    "grossProfit": "毛利",
    "grossMargin": "毛利率",
    "firstPaymentDate": "预计首款时间",
    "finalPaymentDate": "预计尾款时间",
    "receivedAmount": "已收金额",
    "remainingReceivable": "剩余应收金额",
}

# Older deal tables used these labels
DEAL_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "isFinished": ("是否完成",),
    "signCompany": ("签约主体",),
}

DEAL_NUMBER_FIELDS = (
    "incomeWithTax",
    "incomeWithoutTax",
    "estimatedCost",
    "paidThirdPartyCost",
    "grossProfit",
    "grossMargin",
    "receivedAmount",
    "remainingReceivable",
)


def _spec(table: dict[str, str], key: str, kind: FieldKind = "text", **kwargs: Any) -> FieldSpec:
    return FieldSpec(key=key, labels=(table[key],), kind=kind, **kwargs)


CUSTOMER_SPECS: tuple[FieldSpec, ...] = (
    _spec(CUSTOMER_FIELD, "customerId", identifier=True),
    _spec(CUSTOMER_FIELD, "shortName"),
    _spec(CUSTOMER_FIELD, "companyName"),
    _spec(CUSTOMER_FIELD, "hq"),
    _spec(CUSTOMER_FIELD, "customerType"),
    _spec(CUSTOMER_FIELD, "level"),
    _spec(CUSTOMER_FIELD, "cooperationStatus"),
    _spec(CUSTOMER_FIELD, "industry"),
    _spec(CUSTOMER_FIELD, "isAnnual", "flag"),
    _spec(CUSTOMER_FIELD, "owner"),
    FieldSpec(key="ownerUserId", labels=(CUSTOMER_FIELD["owner"],), kind="person_id"),
)

PROJECT_SPECS: tuple[FieldSpec, ...] = (
    _spec(PROJECT_FIELD, "projectId", identifier=True),
    _spec(PROJECT_FIELD, "customerId"),
    _spec(PROJECT_FIELD, "shortName"),
    _spec(PROJECT_FIELD, "projectName"),
    _spec(PROJECT_FIELD, "serviceType"),
    _spec(PROJECT_FIELD, "projectType"),
    _spec(PROJECT_FIELD, "stage"),
    _spec(PROJECT_FIELD, "priority"),
    _spec(PROJECT_FIELD, "bd"),
    _spec(PROJECT_FIELD, "am"),
    _spec(PROJECT_FIELD, "month"),
    _spec(PROJECT_FIELD, "nextFollowDate", "date"),
    _spec(PROJECT_FIELD, "campaignName"),
    _spec(PROJECT_FIELD, "deliverableName"),
    _spec(PROJECT_FIELD, "expectedAmount", "number"),
    _spec(PROJECT_FIELD, "totalBdHours", "number"),
    _spec(PROJECT_FIELD, "lastUpdateDate", "date"),
)

DEAL_SPECS: tuple[FieldSpec, ...] = tuple(
    FieldSpec(
        key=key,
        labels=(label, *DEAL_FIELD_ALIASES.get(key, ())),
        kind=(
            "amount" if key in DEAL_NUMBER_FIELDS
            else "date" if key.endswith("Date")
            else "raw" if key in ("isFinished", "signCompany")
            else "trimmed"
        ),
        identifier=key == "dealId",
    )
    for key, label in DEAL_FIELD.items()
)


# ── Read Side ──────────────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def lookup(fields: dict[str, Any], spec: FieldSpec, record_id: str | None = None) -> Any:
    """Find the raw cell for ``spec``: labels, then app key, then ids."""
    candidates: list[Any] = [fields.get(label) for label in spec.labels]
    candidates.append(fields.get(spec.key))
    if spec.identifier:
        candidates.extend([fields.get("id"), record_id])
    for value in candidates:
        if not _is_blank(value):
            return value
    return None


def convert(value: Any, kind: FieldKind, heuristics: DateHeuristics = DEFAULT_HEURISTICS) -> Any:
    if kind == "number":
        return pick_number(value)
    if kind == "amount":
        return coerce_number(pick_single(value)) if value is not None else None
    if kind == "date":
        return format_date_loose(pick_single(value), heuristics)
    if kind == "trimmed":
        return str(normalize_any(value)).strip()
    if kind == "flag":
        picked = pick_single(value)
        if isinstance(picked, str):
            return picked.strip().lower() in ("true", "1", "是", "yes")
        return bool(picked)
    if kind == "person_id":
        first = value[0] if isinstance(value, list) and value else value
        return pick_person_id(first)
    if kind == "raw":
        return "" if value is None else value
    return normalize_any(value)


def map_record(
    item: dict[str, Any],
    specs: tuple[FieldSpec, ...],
    heuristics: DateHeuristics = DEFAULT_HEURISTICS,
) -> dict[str, Any]:
    """Flatten one Bitable record (``{"record_id", "fields"}``) into an app dict."""
    item = item or {}
    fields = item.get("fields") or {}
    record_id = item.get("record_id")
    return {
        spec.key: convert(lookup(fields, spec, record_id), spec.kind, heuristics)
        for spec in specs
    }


def business_id(item: dict[str, Any], spec: FieldSpec) -> str:
    """The trimmed business identifier of a raw record, for lookup scans."""
    value = lookup((item or {}).get("fields") or {}, spec, (item or {}).get("record_id"))
    return str(pick_single(value)).strip()


# ── Write Side ─────────────────────────────────────────────────────────────

_TRAILING_MONTH = re.compile(r"(?:^|\.)(\d{1,2})$")


def normalize_month(value: Any) -> int | float | str | None:
    """Reduce a month input to its month number: "2024.03" -> 3.

    Inputs that are not numeric are returned trimmed; blank input gives None.
    """
    text = "" if value is None else str(value).strip()
    if not text:
        return None
    match = _TRAILING_MONTH.search(text)
    number = parse_number(match.group(1) if match else text)
    return text if number is None else number


class FieldSet:
    """Write payload keyed by Bitable column label.

    Only present values are written: None and blank strings are skipped, so
    an update never clears a column.
    """

    def __init__(self) -> None:
        self.fields: dict[str, Any] = {}

    def set_if(self, label: str, value: Any) -> None:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return
        if value is None:
            return
        self.fields[label] = value

    def set_number(self, label: str, value: Any) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return
        number = coerce_number(value)
        if number is not None:
            self.fields[label] = number

    def set_raw(self, label: str, value: Any) -> None:
        self.fields[label] = value
