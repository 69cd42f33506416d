"""Tests for the Bitable record <-> app dict mappings."""

from __future__ import annotations

import pytest

from src.bd_dashboard.records.field_mapping import (
    CUSTOMER_SPECS,
    DEAL_SPECS,
    PROJECT_SPECS,
    FieldSet,
    business_id,
    lookup,
    map_record,
    normalize_month,
)


class TestMapRecord:
    """Reading records back into flat app dicts."""

    def test_project_record(self):
        item = {
            "record_id": "recP1",
            "fields": {
                "项目ID": "P-001",
                "项目名称": [{"text": "春季"}, {"text": "发布会"}],
                "BD": [{"name": "张三", "id": "ou_1"}, {"name": "李四", "id": "ou_2"}],
                "预估项目金额": "12000",
                "累计商务时间（hr）": [{"value": 3.5}],
                "下次跟进日期": 1700000000000,
                "最新更新日期": "2023/11/1",
            },
        }
        project = map_record(item, PROJECT_SPECS)

        assert project["projectId"] == "P-001"
        assert project["projectName"] == "春季、发布会"
        assert project["bd"] == "张三、李四"
        assert project["expectedAmount"] == 12000
        assert project["totalBdHours"] == 3.5
        assert project["nextFollowDate"] == "2023-11-14"
        assert project["lastUpdateDate"] == "2023-11-01"
        assert project["stage"] == ""

    def test_missing_numbers_default_to_zero(self):
        project = map_record({"record_id": "r", "fields": {}}, PROJECT_SPECS)
        assert project["expectedAmount"] == 0
        assert project["totalBdHours"] == 0

    def test_identifier_falls_back_to_record_id(self):
        project = map_record({"record_id": "recX", "fields": {}}, PROJECT_SPECS)
        assert project["projectId"] == "recX"

    def test_customer_flag_and_owner(self):
        item = {
            "record_id": "recC1",
            "fields": {
                "年框客户": "是",
                "主BD负责人": [{"name": "赵六", "open_id": "ou_open"}],
            },
        }
        customer = map_record(item, CUSTOMER_SPECS)
        assert customer["isAnnual"] is True
        assert customer["owner"] == "赵六"
        assert customer["ownerUserId"] == "ou_open"

    def test_deal_aliases_and_amounts(self):
        item = {
            "record_id": "recD1",
            "fields": {
                "立项ID": " D-001 ",
                "是否完成": "是",
                "签约主体": [{"text": "A公司"}],
                "含税收入": "10600",
                "不含税收入": "n/a",
                "项目开始时间": 45000,
            },
        }
        deal = map_record(item, DEAL_SPECS)
        assert deal["dealId"] == "D-001"
        assert deal["isFinished"] == "是"
        assert deal["signCompany"] == [{"text": "A公司"}]
        assert deal["incomeWithTax"] == 10600
        assert deal["incomeWithoutTax"] is None
        assert deal["estimatedCost"] is None
        assert deal["startDate"] == "2023-03-15"

    def test_current_label_wins_over_alias(self):
        item = {"record_id": "r", "fields": {"是否完结": "否", "是否完成": "是"}}
        assert map_record(item, DEAL_SPECS)["isFinished"] == "否"


class TestLookup:
    def test_app_key_is_used_when_label_is_missing(self):
        spec = PROJECT_SPECS[3]
        assert lookup({"projectName": "X"}, spec) == "X"

    def test_blank_values_are_skipped(self):
        spec = PROJECT_SPECS[0]
        assert lookup({"项目ID": "", "projectId": [], "id": "P-9"}, spec) == "P-9"

    def test_business_id_is_trimmed(self):
        item = {"record_id": "recA", "fields": {"项目ID": [{"text": " P-7 "}]}}
        assert business_id(item, PROJECT_SPECS[0]) == "P-7"


class TestNormalizeMonth:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024.03", 3),
            ("2024.12", 12),
            ("7", 7),
            (5, 5),
            ("三月", "三月"),
            ("2024-03", "2024-03"),
            ("", None),
            (None, None),
        ],
    )
    def test_month_inputs(self, value, expected):
        assert normalize_month(value) == expected


class TestFieldSet:
    """Write payloads only carry present values."""

    def test_set_if_skips_blank_and_none(self):
        fs = FieldSet()
        fs.set_if("A", "  ")
        fs.set_if("B", None)
        fs.set_if("C", "  x ")
        fs.set_if("D", False)
        assert fs.fields == {"C": "x", "D": False}

    def test_set_number_drops_non_numeric(self):
        fs = FieldSet()
        fs.set_number("A", "abc")
        fs.set_number("B", "")
        fs.set_number("C", "1,000")
        fs.set_number("D", "12.5")
        fs.set_number("E", 0)
        assert fs.fields == {"D": 12.5, "E": 0}

    def test_set_raw_writes_blank_values_too(self):
        fs = FieldSet()
        fs.set_raw("BD", [{"id": "ou_1"}])
        fs.set_raw("AM", [])
        assert fs.fields == {"BD": [{"id": "ou_1"}], "AM": []}
