"""Tests for person name -> user id resolution."""

from __future__ import annotations

from typing import Any

from src.bd_dashboard.bitable.persons import (
    PersonField,
    PersonResolver,
    collect_person_ids,
    pick_person_id,
)

PROJECT_BD = PersonField("appProject", "tblProject", "BD")
CUSTOMER_OWNER = PersonField("appCustomer", "tblCustomer", "主BD负责人")


class RecordsClient:
    """list_records double serving fixed records per table."""

    def __init__(self, tables: dict[tuple[str, str], list[dict[str, Any]]]) -> None:
        self.tables = tables
        self.calls: list[tuple[str, str, int]] = []

    async def list_records(self, app_token: str, table_id: str, page_size: int = 200):
        self.calls.append((app_token, table_id, page_size))
        return self.tables.get((app_token, table_id), [])


def _records(field: str, *people: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"record_id": f"rec{i}", "fields": {field: [person]}} for i, person in enumerate(people)]


class TestCollectPersonIds:
    def test_first_id_per_name_wins(self):
        records = _records(
            "BD",
            {"name": "张三", "id": "ou_first"},
            {"name": "张三", "id": "ou_second"},
            {"name": " 李四 ", "union_id": "on_lisi"},
        )
        assert collect_person_ids(records, "BD") == {"张三": "ou_first", "李四": "on_lisi"}

    def test_non_person_cells_are_ignored(self):
        records = [
            {"fields": {"BD": "张三"}},
            {"fields": {"BD": [{"name": "", "id": "ou_x"}, {"name": "王五"}, "junk"]}},
            {"fields": {}},
        ]
        assert collect_person_ids(records, "BD") == {}

    def test_pick_person_id_key_order(self):
        assert pick_person_id({"open_id": "o", "user_id": "u"}) == "u"
        assert pick_person_id({"union_id": "n"}) == "n"
        assert pick_person_id("ou_x") == ""


class TestPersonResolver:
    async def test_resolves_from_index(self):
        client = RecordsClient({("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"})})
        resolver = PersonResolver(client, page_size=50)

        assert await resolver.resolve(PROJECT_BD, " 张三 ") == [{"id": "ou_zs"}]
        assert client.calls == [("appProject", "tblProject", 50)]

    async def test_env_map_wins_over_index(self):
        client = RecordsClient({("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"})})
        resolver = PersonResolver(client, env_map={"张三": "ou_env"})

        assert await resolver.resolve(PROJECT_BD, "张三") == [{"id": "ou_env"}]
        assert client.calls == []

    async def test_list_value_passes_through(self):
        resolver = PersonResolver(RecordsClient({}))
        value = [{"id": "ou_direct"}]
        assert await resolver.resolve(PROJECT_BD, value) is value

    async def test_blank_and_unknown_names(self):
        client = RecordsClient({("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"})})
        resolver = PersonResolver(client)

        assert await resolver.resolve(PROJECT_BD, "  ") is None
        assert await resolver.resolve(PROJECT_BD, None) is None
        assert await resolver.resolve(PROJECT_BD, "不存在") is None
        assert await resolver.known_names(PROJECT_BD) == ["张三"]

    async def test_known_names_sort_by_normalized_form(self):
        # Fullwidth "Ｂ" sorts as "B"
        client = RecordsClient(
            {
                ("appProject", "tblProject"): _records(
                    "BD",
                    {"name": "C", "id": "ou_c"},
                    {"name": "Ｂ", "id": "ou_b"},
                    {"name": "A", "id": "ou_a"},
                )
            }
        )
        resolver = PersonResolver(client)
        assert await resolver.known_names(PROJECT_BD) == ["A", "Ｂ", "C"]

    async def test_index_is_cached_per_field(self):
        client = RecordsClient({("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"})})
        now = [0.0]
        resolver = PersonResolver(client, ttl=300, clock=lambda: now[0])

        await resolver.resolve(PROJECT_BD, "张三")
        await resolver.resolve(PROJECT_BD, "张三")
        assert len(client.calls) == 1

        now[0] += 301
        await resolver.resolve(PROJECT_BD, "张三")
        assert len(client.calls) == 2

    async def test_fallback_to_second_field(self):
        client = RecordsClient(
            {
                ("appCustomer", "tblCustomer"): _records("主BD负责人", {"name": "赵六", "id": "ou_zl"}),
                ("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"}),
            }
        )
        resolver = PersonResolver(client)

        resolved, known = await resolver.resolve_with_fallback([CUSTOMER_OWNER, PROJECT_BD], "张三")
        assert resolved == [{"id": "ou_zs"}]
        assert known == ["张三"]

    async def test_fallback_failure_reports_union_of_known_names(self):
        client = RecordsClient(
            {
                ("appCustomer", "tblCustomer"): _records("主BD负责人", {"name": "赵六", "id": "ou_zl"}),
                ("appProject", "tblProject"): _records("BD", {"name": "张三", "id": "ou_zs"}),
            }
        )
        resolver = PersonResolver(client)

        resolved, known = await resolver.resolve_with_fallback([CUSTOMER_OWNER, PROJECT_BD], "不存在")
        assert resolved is None
        assert known == ["张三", "赵六"]
