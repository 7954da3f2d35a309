"""
tests/test_utils.py

Unit tests for the cell coercers and header helpers.

Coverage
--------
- Currency parsing with prefixes, separators and garbage
- Serial, string and native date decoding, 1900 and 1904 date systems
- Date fallback policy (today vs blank) and the fell_back flag
- Closed-set status mapping
- Header snake_casing and header-row detection
"""

from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest
from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH

from plant_dashboard.config import INSTRUMENT_STATUSES, PROJECT_STATUS_ALIASES, PROJECT_STATUSES
from plant_dashboard.loaders.utils import (
    coerce_currency,
    coerce_date,
    coerce_status,
    coerce_text,
    find_header_row,
    is_blank,
    parse_date,
    to_snake_case,
)


# ---------------------------------------------------------------------------
# coerce_currency
# ---------------------------------------------------------------------------


class TestCoerceCurrency:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("RM 1,200.50", 1200.5),
            ("rm1,200.50", 1200.5),
            ("$3,000", 3000.0),
            ("1 500 000", 1_500_000.0),
            ("  42 ", 42.0),
            (850000, 850000.0),
            (12.75, 12.75),
        ],
    )
    def test_parses_formatted_amounts(self, raw, expected) -> None:
        assert coerce_currency(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", None, "garbage", "RM", "N/A", float("nan")])
    def test_unparseable_gives_zero(self, raw) -> None:
        assert coerce_currency(raw) == 0.0

    @pytest.mark.parametrize("raw", [-500, "-1,000", float("inf"), True])
    def test_never_negative_or_non_finite(self, raw) -> None:
        assert coerce_currency(raw) == 0.0


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class TestParseDate:
    def test_serial_and_iso_string_agree(self) -> None:
        from_serial = coerce_date(45306)
        from_string = coerce_date("2024-01-15")
        assert from_serial.date == from_string.date == pd.Timestamp("2024-01-15")
        assert from_serial.display == from_string.display == "2024-01-15"

    def test_1904_date_system(self) -> None:
        # 1462 days separate the two epochs
        assert parse_date(45306 - 1462, epoch=MAC_EPOCH) == pd.Timestamp("2024-01-15")
        assert parse_date(0, epoch=MAC_EPOCH) == pd.Timestamp("1904-01-01")

    def test_native_values(self) -> None:
        assert parse_date(datetime(2024, 3, 5, 14, 30)) == pd.Timestamp("2024-03-05")
        assert parse_date(date(2024, 3, 5)) == pd.Timestamp("2024-03-05")
        assert parse_date(pd.Timestamp("2024-03-05 08:00")) == pd.Timestamp("2024-03-05")

    def test_time_of_day_dropped_from_serial(self) -> None:
        assert parse_date(45306.75, epoch=WINDOWS_EPOCH) == pd.Timestamp("2024-01-15")

    @pytest.mark.parametrize("serial", [0, 0.0, 0.25, 0.999])
    def test_serials_below_one_are_the_epoch_day(self, serial) -> None:
        assert parse_date(serial, epoch=MAC_EPOCH) == pd.Timestamp("1904-01-01")
        assert parse_date(serial, epoch=WINDOWS_EPOCH) == pd.Timestamp("1899-12-30")

    def test_epoch_day_is_not_a_fallback(self) -> None:
        result = coerce_date(0, epoch=MAC_EPOCH, fallback_to_now=True)
        assert result.display == "1904-01-01"
        assert result.fell_back is False

    @pytest.mark.parametrize("serial", [-1, -0.5, float("inf")])
    def test_negative_or_infinite_serial_is_none(self, serial) -> None:
        assert parse_date(serial) is None

    @pytest.mark.parametrize("raw", [None, "", "not a date", True, 10**12])
    def test_unparseable_is_none(self, raw) -> None:
        assert parse_date(raw) is None


class TestCoerceDate:
    def test_blank_falls_back_to_today_silently(self) -> None:
        result = coerce_date(None, fallback_to_now=True)
        assert result.date == pd.Timestamp.now().normalize()
        assert result.display == result.date.strftime("%Y-%m-%d")
        assert result.fell_back is False

    def test_garbage_falls_back_to_today_and_flags(self) -> None:
        result = coerce_date("31/31/2024", fallback_to_now=True)
        assert result.date == pd.Timestamp.now().normalize()
        assert result.fell_back is True

    def test_without_fallback_gives_none(self) -> None:
        result = coerce_date("soon", fallback_to_now=False)
        assert result.date is None
        assert result.display == ""
        assert result.fell_back is True


# ---------------------------------------------------------------------------
# Status & text
# ---------------------------------------------------------------------------


class TestCoerceStatus:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Healthy", "Healthy"),
            ("  caution ", "Caution"),
            ("WARNING", "Warning"),
            ("unknown", "Unknown"),
        ],
    )
    def test_case_insensitive_exact_match(self, raw, expected) -> None:
        assert coerce_status(raw, INSTRUMENT_STATUSES, "Unknown") == expected

    @pytest.mark.parametrize("raw", [None, "", "OK", "healthy-ish", 3, "Warnings"])
    def test_anything_else_is_default(self, raw) -> None:
        assert coerce_status(raw, INSTRUMENT_STATUSES, "Unknown") == "Unknown"

    def test_alias_table(self) -> None:
        assert coerce_status("on-hold", PROJECT_STATUSES, "Active", PROJECT_STATUS_ALIASES) == "On Hold"
        assert coerce_status("Done", PROJECT_STATUSES, "Active", PROJECT_STATUS_ALIASES) == "Completed"
        assert coerce_status("cancelled", PROJECT_STATUSES, "Active", PROJECT_STATUS_ALIASES) == "Active"


class TestCoerceText:
    def test_integral_float_drops_decimal(self) -> None:
        assert coerce_text(1001.0) == "1001"

    def test_default_for_blank(self) -> None:
        assert coerce_text("   ", "General") == "General"
        assert coerce_text(None) == ""

    def test_strips(self) -> None:
        assert coerce_text("  FT-1001 ") == "FT-1001"

    def test_is_blank(self) -> None:
        assert is_blank(None) and is_blank(" ") and is_blank(float("nan"))
        assert not is_blank(0) and not is_blank("x")


# ---------------------------------------------------------------------------
# Header helpers
# ---------------------------------------------------------------------------


class TestHeaders:
    @pytest.mark.parametrize("raw", ["Current Budget", "current_budget", "currentBudget", " CURRENT  BUDGET "])
    def test_snake_case_styles_agree(self, raw) -> None:
        assert to_snake_case(raw) == "current_budget"

    def test_snake_case_symbols(self) -> None:
        assert to_snake_case("Tag No.") == "tag_no"
        assert to_snake_case("Utilization (%)") == "utilization_pct"

    def test_find_header_row_skips_title_banner(self) -> None:
        rows = [
            ("CAPEX Register 2024", None, None),
            (None, None, None),
            ("Project Name", "Discipline", "Actual Spend"),
            ("Pump Upgrade", "Mechanical", 100),
        ]
        signature = {"project_name", "discipline", "actual_spend"}
        assert find_header_row(rows, signature) == 2

    def test_find_header_row_needs_two_matches(self) -> None:
        rows = [("Name", "Foo", "Bar")]
        assert find_header_row(rows, {"name"}) is None
