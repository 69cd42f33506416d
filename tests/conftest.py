"""Test fixtures for the dashboard API.

Provides:
- FakeBitableClient: in-memory stand-in for BitableClient
- Seeded customer, project and deal tables
- FastAPI app with services wired to the fake client
- Async HTTP client for API testing

The app lifespan is not run under ASGITransport, so fixtures call
``init_state`` directly.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.bd_dashboard.config import Settings
from src.bd_dashboard.main import create_app, init_state

CUSTOMER_TABLE = ("appCustomer", "tblCustomer")
PROJECT_TABLE = ("appProject", "tblProject")
DEAL_TABLE = ("appProject", "tblDeal")


# ── In-Memory Test Double ────────────────────────────────────────────────────


class FakeBitableClient:
    """In-memory BitableClient for testing without Feishu.

    Tables are keyed by ``(app_token, table_id)`` and hold a field list and
    records. Every call is appended to ``calls`` so tests can count them.
    """

    def __init__(self) -> None:
        self.tables: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self._ids = itertools.count(1)

    def add_table(
        self,
        table: tuple[str, str],
        field_names: list[str],
        records: list[dict[str, Any]] | None = None,
    ) -> None:
        self.tables[table] = {
            "fields": [
                {"field_id": f"fld{i}", "field_name": name, "type": 1}
                for i, name in enumerate(field_names, start=1)
            ],
            "records": copy.deepcopy(records or []),
        }

    def records(self, table: tuple[str, str]) -> list[dict[str, Any]]:
        return self.tables[table]["records"]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    async def list_fields(self, app_token: str, table_id: str) -> list[dict[str, Any]]:
        self.calls.append(("list_fields", app_token, table_id))
        return copy.deepcopy(self.tables[(app_token, table_id)]["fields"])

    async def list_records(
        self, app_token: str, table_id: str, page_size: int = 200
    ) -> list[dict[str, Any]]:
        self.calls.append(("list_records", app_token, table_id))
        return copy.deepcopy(self.tables[(app_token, table_id)]["records"][:page_size])

    async def get_record(self, app_token: str, table_id: str, record_id: str) -> dict[str, Any]:
        self.calls.append(("get_record", app_token, table_id))
        for record in self.tables[(app_token, table_id)]["records"]:
            if record["record_id"] == record_id:
                return copy.deepcopy(record)
        return {}

    async def batch_create_records(
        self, app_token: str, table_id: str, records: list[dict[str, Any]]
    ) -> dict[str, Any]:
        self.calls.append(("batch_create_records", app_token, table_id))
        created = []
        for record in records:
            item = {"record_id": f"recNew{next(self._ids)}", "fields": dict(record["fields"])}
            self.tables[(app_token, table_id)]["records"].append(item)
            created.append(copy.deepcopy(item))
        return {"records": created}

    async def update_record(
        self, app_token: str, table_id: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        self.calls.append(("update_record", app_token, table_id))
        for record in self.tables[(app_token, table_id)]["records"]:
            if record["record_id"] == record_id:
                record["fields"].update(fields)
                return {"record": copy.deepcopy(record)}
        return {"record": {"record_id": record_id, "fields": dict(fields)}}

    async def aclose(self) -> None:
        return None


# ── Seed Data ────────────────────────────────────────────────────────────────

CUSTOMER_FIELDS = [
    "客户ID",
    "客户/部门简称",
    "企业名称",
    "公司总部 地区",
    "客户类型",
    "客户等级",
    "合作状态",
    "行业大类",
    "年框客户",
    "主BD负责人",
]

CUSTOMER_RECORDS = [
    {
        "record_id": "recC1",
        "fields": {
            "客户ID": "C-001",
            "客户/部门简称": "Acme",
            "企业名称": "Acme 有限公司",
            "客户等级": [{"text": "A"}],
            "年框客户": True,
            "主BD负责人": [{"name": "赵六", "id": "ou_zhaoliu"}],
        },
    },
    {
        "record_id": "recC2",
        "fields": {
            "客户ID": "C-002",
            "客户/部门简称": [{"text": "Beta"}],
            "企业名称": "Beta Corp",
            "年框客户": "否",
        },
    },
]

PROJECT_FIELDS = [
    "项目ID",
    "客户ID",
    "项目名称",
    "客户/部门简称",
    "项目进度",
    "BD",
    "AM",
    "所属年月",
    "预估项目金额",
    "累计商务时间（hr）",
    "最新更新日期",
    "下次跟进日期",
]

PROJECT_RECORDS = [
    {
        "record_id": "recP1",
        "fields": {
            "项目ID": "P-001",
            "客户ID": "C-001",
            "项目名称": "春季发布会",
            "客户/部门简称": "Acme",
            "项目进度": "进行中",
            "BD": [{"name": "张三", "id": "ou_zhangsan"}],
            "AM": [{"name": "李四", "id": "ou_lisi"}],
            "预估项目金额": "12000",
            "累计商务时间（hr）": 3.5,
            "最新更新日期": "2023/11/01",
            "下次跟进日期": 1700000000000,
        },
    },
    {
        "record_id": "recP2",
        "fields": {
            "项目ID": "P-002",
            "客户ID": "C-002",
            "项目名称": "年度审计",
            "客户/部门简称": "Beta",
            "项目进度": "已完成",
            "BD": [{"name": "王五", "user_id": "ou_wangwu"}],
            "下次跟进日期": 44000,
        },
    },
]

DEAL_FIELDS = [
    "编号",
    "立项ID",
    "项目ID",
    "项目名称",
    "所属月份",
    "项目开始时间",
    "是否完成",
    "签约主体",
    "含税收入",
    "不含税收入",
    "已付三方成本",
    "毛利率",
]

DEAL_RECORDS = [
    {
        "record_id": "recD1",
        "fields": {
            "编号": 1,
            "立项ID": "D-001",
            "项目ID": "P-001",
            "项目名称": "春季发布会",
            "所属月份": 3,
            "项目开始时间": 45000,
            "是否完成": "是",
            "签约主体": "A公司",
            "含税收入": "10600",
            "不含税收入": 10000,
            "毛利率": 0.35,
        },
    },
]


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the seeded tables; no .env file is read."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        FEISHU_APP_ID="cli_test",
        FEISHU_APP_SECRET="secret",
        FEISHU_BITABLE_APP_TOKEN=CUSTOMER_TABLE[0],
        FEISHU_BITABLE_TABLE_ID=CUSTOMER_TABLE[1],
        FEISHU_PROJECT_APP_TOKEN=PROJECT_TABLE[0],
        FEISHU_BITABLE_PROJECT_TABLE_ID=PROJECT_TABLE[1],
        FEISHU_BITABLE_DEAL_TABLE_ID=DEAL_TABLE[1],
        FEISHU_KANBAN_BOARD_ID="board-1",
        FEISHU_DASHBOARD_EMBED_URL="",
        FEISHU_PERSON_ID_MAP="",
        FEISHU_USER_ID_MAP="",
    )


@pytest.fixture
def fake_client() -> FakeBitableClient:
    client = FakeBitableClient()
    client.add_table(CUSTOMER_TABLE, CUSTOMER_FIELDS, CUSTOMER_RECORDS)
    client.add_table(PROJECT_TABLE, PROJECT_FIELDS, PROJECT_RECORDS)
    client.add_table(DEAL_TABLE, DEAL_FIELDS, DEAL_RECORDS)
    return client


@pytest.fixture
def app(settings: Settings, fake_client: FakeBitableClient):
    """FastAPI app with services wired to the fake client."""
    application = create_app()
    init_state(application, settings, fake_client)
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
