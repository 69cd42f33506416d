"""Tests for loose date normalisation of Bitable date cells."""

from __future__ import annotations

import pytest

from src.bd_dashboard.records.dates import DateHeuristics, format_date_loose


class TestEpochs:
    """Millisecond and second epochs become UTC dates."""

    def test_millisecond_epoch(self):
        assert format_date_loose(1700000000000) == "2023-11-14"

    def test_millisecond_epoch_as_string(self):
        assert format_date_loose("1700000000000") == "2023-11-14"

    def test_second_epoch_by_length(self):
        assert format_date_loose("1678091500") == "2023-03-06"

    def test_integral_float_is_treated_as_integer(self):
        assert format_date_loose(1700000000000.0) == "2023-11-14"


class TestSerials:
    """Spreadsheet serial day counts inside the open window become dates."""

    @pytest.mark.parametrize(
        "serial, expected",
        [
            (44000, "2020-06-18"),
            (45000, "2023-03-15"),
            (46009, "2025-12-18"),
            ("44000", "2020-06-18"),
        ],
    )
    def test_serial_in_window(self, serial, expected):
        assert format_date_loose(serial) == expected

    @pytest.mark.parametrize("boundary", [20000, 60000])
    def test_window_bounds_are_exclusive(self, boundary):
        assert format_date_loose(boundary) == str(boundary)

    def test_small_number_is_returned_unchanged(self):
        assert format_date_loose(123) == "123"

    def test_window_is_configurable(self):
        wide = DateHeuristics(serial_max=70000)
        assert format_date_loose(65000) == "65000"
        assert format_date_loose(65000, wide).startswith("2077-12")


class TestText:
    """Textual dates and values that are not dates."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1678/09/15", "1678-09-15"),
            ("2024/3/5", "2024-03-05"),
            ("2024-03-05", "2024-03-05"),
            ("  2024/12/31 ", "2024-12-31"),
        ],
    )
    def test_year_month_day(self, text, expected):
        assert format_date_loose(text) == expected

    def test_impossible_calendar_date_is_unchanged(self):
        assert format_date_loose("2024/2/30") == "2024/2/30"

    def test_free_text_is_unchanged(self):
        assert format_date_loose("下周一") == "下周一"

    @pytest.mark.parametrize("empty", [None, "", "  ", 0, "0"])
    def test_empty_values_give_empty_string(self, empty):
        assert format_date_loose(empty) == ""
