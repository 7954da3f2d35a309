"""
Shared fixtures: workbooks are written with openpyxl into tmp_path, row
frames are built through the same frame builder the loaders use.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pandas as pd
import pytest
from openpyxl import Workbook

from plant_dashboard.kpis import classify_utilization
from plant_dashboard.loaders.workbook import rows_to_frame
from plant_dashboard.schema import CAPEX_SCHEMA, INSTRUMENT_SCHEMA

INSTRUMENT_HEADERS = [
    "Equipment Type",
    "Tag Number",
    "Equipment Description",
    "Status",
    "Alarm Description",
    "Rectification",
    "Notification Date",
]


@pytest.fixture()
def write_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Factory: write {sheet name: list of rows} to an .xlsx file."""

    def _write(sheets: dict[str, list[list]], name: str = "upload.xlsx") -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for sheet_name, rows in sheets.items():
            ws = wb.create_sheet(sheet_name)
            for row in rows:
                ws.append(row)
        path = tmp_path / name
        wb.save(path)
        return path

    return _write


@pytest.fixture()
def instrument_rows() -> pd.DataFrame:
    """Six normalized instrument rows across five areas."""
    data = [
        ("AMMONIA-1", "Ammonia", "Flow Transmitter", "FT-1001", "Ammonia Feed Flow", "Healthy", "", "2024-01-15"),
        ("AMMONIA-2", "Ammonia", "Pressure Transmitter", "PT-1002", "Reactor Pressure", "Caution", "High pressure alarm", "2024-01-20"),
        ("UTILITY-1", "Utility", "Temperature Transmitter", "TT-2003", "Boiler Temperature", "Warning", "ALS - Obsolete model", "2024-01-25"),
        ("UREA-1", "Urea", "Level Transmitter", "LT-3004", "Product Tank Level", "Healthy", "", "2024-02-01"),
        ("SYSTEM-1", "System", "Analyzer", "AT-4001", "Main Analyzer", "Warning", "ALS - No spare parts", "2024-01-30"),
        ("TURBOMACHINERY-1", "Turbomachinery", "Speed Sensor", "SS-5002", "Turbine Speed", "Unknown", "Signal noise", "2024-01-19"),
    ]
    records = [
        {
            "id": row_id,
            "area": area,
            "equipment_type": equipment_type,
            "tag_number": tag,
            "equipment_description": description,
            "status": status,
            "alarm_text": alarm,
            "rectification_text": "",
            "notification_date": pd.Timestamp(day),
            "notification_date_display": day,
        }
        for row_id, area, equipment_type, tag, description, status, alarm, day in data
    ]
    return rows_to_frame(records, INSTRUMENT_SCHEMA)


def capex_record(name: str, discipline: str, budget: float, spend: float, **extra) -> dict:
    record = {
        "id": extra.pop("id", name.split()[0].upper()),
        "section": "Projects",
        "name": name,
        "discipline": discipline,
        "current_budget": budget,
        "actual_spend": spend,
        "planned_spend": extra.pop("planned", 0.0),
        "project_status": extra.pop("project_status", "Active"),
        "start_date": extra.pop("start_date", None),
        "end_date": extra.pop("end_date", None),
    }
    record["utilization_pct"] = spend / budget * 100 if budget else 0.0
    record["health"] = classify_utilization(record["utilization_pct"])
    record.update(extra)
    return record


@pytest.fixture()
def capex_rows() -> pd.DataFrame:
    """Five normalized CAPEX rows over three disciplines."""
    records = [
        capex_record("Pump Upgrade", "Mechanical", 1_000_000, 850_000, planned=900_000,
                     start_date=pd.Timestamp("2024-01-10"), end_date=pd.Timestamp("2024-06-30")),
        capex_record("HVAC Retrofit", "Mechanical", 200_000, 250_000, planned=200_000,
                     start_date=pd.Timestamp("2024-03-01"), end_date=pd.Timestamp("2024-09-30")),
        capex_record("Substation Relay", "Electrical", 500_000, 100_000,
                     project_status="Planning", start_date=pd.Timestamp("2024-05-01")),
        capex_record("DCS Migration", "Instrument", 800_000, 780_000, project_status="Completed"),
        capex_record("Control Room HVAC", "Electrical", 300_000, 60_000,
                     start_date=pd.Timestamp("2023-11-01"), end_date=pd.Timestamp("2024-02-28")),
    ]
    return rows_to_frame(records, CAPEX_SCHEMA)
