"""
tests/test_rows.py

Row normalisation: rejection, defaults, synthetic ids, derived budget
fields and date fallback reporting.
"""

from __future__ import annotations

import pandas as pd
import pytest

from plant_dashboard.loaders.columns import resolve_columns
from plant_dashboard.loaders.rows import is_blank_record, normalize_row
from plant_dashboard.schema import CAPEX_SCHEMA, INSTRUMENT_SCHEMA
from plant_dashboard.template import INSTRUMENT_HEADERS


@pytest.fixture()
def instrument_columns():
    return resolve_columns(INSTRUMENT_HEADERS, INSTRUMENT_SCHEMA.aliases)


@pytest.fixture()
def capex_columns():
    headers = ["Project Name", "Discipline", "Original Budget", "Current Budget", "Actual Spend", "Start Date", "Status"]
    return resolve_columns(headers, CAPEX_SCHEMA.aliases)


# ---------------------------------------------------------------------------
# Instrument rows
# ---------------------------------------------------------------------------


class TestInstrumentRow:
    def test_full_row(self, instrument_columns) -> None:
        record = ["Flow Transmitter", "FT-1001", "Feed Flow", "healthy", "", "", "2024-01-15"]
        outcome = normalize_row(record, instrument_columns, 0, INSTRUMENT_SCHEMA, section="Ammonia")
        row = outcome.row
        assert outcome.messages == []
        assert row["id"] == "AMMONIA-1"
        assert row["area"] == "Ammonia"
        assert row["status"] == "Healthy"
        assert row["notification_date"] == pd.Timestamp("2024-01-15")
        assert row["notification_date_display"] == "2024-01-15"

    def test_rejected_without_type_or_tag(self, instrument_columns) -> None:
        record = ["", None, "Orphan description", "Warning", "", "", "2024-01-15"]
        outcome = normalize_row(record, instrument_columns, 3, INSTRUMENT_SCHEMA, section="Urea")
        assert outcome.row is None
        assert outcome.messages == [
            'Sheet "Urea", row 5: missing required field Equipment Type / Tag Number'
        ]

    def test_tag_alone_is_enough(self, instrument_columns) -> None:
        record = [None, 2004.0, None, None, None, None, None]
        outcome = normalize_row(record, instrument_columns, 1, INSTRUMENT_SCHEMA, section="Utility")
        row = outcome.row
        assert row["tag_number"] == "2004"
        assert row["equipment_type"] == ""
        assert row["status"] == "Unknown"
        assert row["id"] == "UTILITY-2"
        # blank date falls back to today without a message
        assert row["notification_date"] == pd.Timestamp.now().normalize()
        assert outcome.messages == []

    def test_unparseable_date_is_reported(self, instrument_columns) -> None:
        record = ["Analyzer", "AT-1", "", "Caution", "", "", "next week"]
        outcome = normalize_row(
            record, instrument_columns, 0, INSTRUMENT_SCHEMA, section="System", row_number=12
        )
        assert outcome.row["notification_date"] == pd.Timestamp.now().normalize()
        assert len(outcome.messages) == 1
        assert outcome.messages[0].startswith('Sheet "System", row 12: unparseable Notification Date')

    def test_short_record_is_padded(self, instrument_columns) -> None:
        outcome = normalize_row(["Actuator", "AC-9"], instrument_columns, 0, INSTRUMENT_SCHEMA, section="System")
        assert outcome.row["rectification_text"] == ""

    def test_ids_are_stable_across_parses(self, instrument_columns) -> None:
        record = ["Valve", "XV-1", "", "Healthy", "", "", "2024-01-01"]
        first = normalize_row(record, instrument_columns, 4, INSTRUMENT_SCHEMA, section="Turbomachinery")
        second = normalize_row(record, instrument_columns, 4, INSTRUMENT_SCHEMA, section="Turbomachinery")
        assert first.row["id"] == second.row["id"] == "TURBOMACHINERY-5"


# ---------------------------------------------------------------------------
# CAPEX rows
# ---------------------------------------------------------------------------


class TestCapexRow:
    def test_current_budget_falls_back_to_original(self, capex_columns) -> None:
        record = ["Pump Upgrade", "Mechanical", "RM 1,000,000", "", "RM 850,000", "2024-02-01", "on-hold"]
        outcome = normalize_row(record, capex_columns, 0, CAPEX_SCHEMA, section="Projects")
        row = outcome.row
        assert row["current_budget"] == 1_000_000.0
        assert row["actual_spend"] == 850_000.0
        assert row["utilization_pct"] == pytest.approx(85.0)
        assert row["health"] == "Caution"
        assert row["project_status"] == "On Hold"

    def test_defaults_and_synthetic_id(self, capex_columns) -> None:
        record = ["Fence Repair", None, None, 50_000, "garbage", None, None]
        row = normalize_row(record, capex_columns, 2, CAPEX_SCHEMA, section="Projects").row
        assert row["id"] == "PROJ-3"
        assert row["discipline"] == "General"
        assert row["project_manager"] == "Unassigned"
        assert row["priority"] == "Medium"
        assert row["project_status"] == "Active"
        assert row["actual_spend"] == 0.0
        assert row["utilization_pct"] == 0.0
        assert row["health"] == "Healthy"

    def test_bad_date_is_blank_and_silent(self, capex_columns) -> None:
        record = ["Fence Repair", "Civil", 100, 100, 10, "TBC", "Active"]
        outcome = normalize_row(record, capex_columns, 0, CAPEX_SCHEMA, section="Projects")
        assert outcome.row["start_date"] is None
        assert outcome.row["start_date_display"] == ""
        assert outcome.messages == []

    def test_rejected_without_name(self, capex_columns) -> None:
        record = [None, "Civil", 100, 100, 10, None, None]
        outcome = normalize_row(record, capex_columns, 1, CAPEX_SCHEMA, section="Projects")
        assert outcome.row is None
        assert outcome.messages == ['Sheet "Projects", row 3: missing required field Name']

    def test_explicit_id_kept(self) -> None:
        columns = resolve_columns(["Project ID", "Project Name"], CAPEX_SCHEMA.aliases)
        row = normalize_row(["CX-77", "Flare Tip"], columns, 0, CAPEX_SCHEMA, section="Projects").row
        assert row["id"] == "CX-77"


def test_is_blank_record() -> None:
    assert is_blank_record([None, "", "   "])
    assert not is_blank_record([None, 0])


def test_get_schema() -> None:
    from plant_dashboard.schema import get_schema

    assert get_schema("capex") is CAPEX_SCHEMA
    with pytest.raises(KeyError, match="Unknown domain"):
        get_schema("payroll")
