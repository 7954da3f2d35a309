"""
Blank-but-correct workbook templates for users to fill in.

Headers are the display labels the loaders expect, so a filled template
always passes column validation.
"""

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from .config import INSTRUMENT_ALIASES, INSTRUMENT_AREAS
from .schema import CAPEX_SCHEMA, INSTRUMENT_SCHEMA

logger = logging.getLogger(__name__)

INSTRUMENT_HEADERS = [INSTRUMENT_SCHEMA.label(name) for name in INSTRUMENT_ALIASES]

CAPEX_HEADERS = [
    CAPEX_SCHEMA.label(name)
    for name in (
        "name",
        "wbs_number",
        "project_manager",
        "discipline",
        "original_budget",
        "current_budget",
        "actual_spend",
        "planned_spend",
        "start_date",
        "end_date",
        "project_status",
        "priority",
        "remarks",
    )
]

INSTRUMENT_SAMPLE_ROWS: dict[str, list[list]] = {
    "Ammonia": [
        ["Flow Transmitter", "FT-1001", "Ammonia Feed Flow", "Healthy", "", "", "2024-01-15"],
        ["Pressure Transmitter", "PT-1002", "Reactor Pressure", "Caution", "High pressure alarm", "Calibrate sensor", "2024-01-20"],
        ["Temperature Transmitter", "TT-1003", "Converter Temperature", "Warning", "ALS - Obsolete model", "Replace with new model", "2024-01-25"],
        ["Level Transmitter", "LT-1004", "Storage Tank Level", "Healthy", "", "", "2024-02-01"],
    ],
    "Utility": [
        ["Flow Transmitter", "FT-2001", "Cooling Water Flow", "Healthy", "", "", "2024-01-10"],
        ["Pressure Transmitter", "PT-2002", "Steam Pressure", "Caution", "Fluctuating readings", "Inspect wiring", "2024-01-18"],
        ["Temperature Transmitter", "TT-2003", "Boiler Temperature", "Healthy", "", "", "2024-02-05"],
        ["Valve Positioner", "VP-2004", "Steam Control Valve", "Warning", "ALS - No spare parts", "Plan replacement", "2024-01-28"],
    ],
    "Urea": [
        ["Flow Transmitter", "FT-3001", "Urea Solution Flow", "Healthy", "", "", "2024-01-12"],
        ["Pressure Transmitter", "PT-3002", "Synthesis Pressure", "Warning", "Sensor drift detected", "Replace sensor", "2024-01-22"],
        ["Analyzer", "AT-3003", "Urea Concentration", "Caution", "ALS - Limited support", "Evaluate alternatives", "2024-02-03"],
        ["Level Transmitter", "LT-3004", "Product Tank Level", "Healthy", "", "", "2024-02-08"],
    ],
    "System": [
        ["DCS Controller", "DC-4001", "Main Process Controller", "Healthy", "", "", "2024-01-05"],
        ["Safety Valve", "SV-4002", "Emergency Relief Valve", "Caution", "Maintenance due", "Schedule inspection", "2024-01-16"],
        ["Actuator", "AC-4003", "Emergency Shutdown Valve", "Warning", "ALS - Obsolete firmware", "Upgrade firmware", "2024-01-30"],
        ["Power Supply", "PS-4004", "Instrument Power Supply", "Healthy", "", "", "2024-02-02"],
    ],
    "Turbomachinery": [
        ["Vibration Monitor", "VM-5001", "Compressor Vibration", "Healthy", "", "", "2024-01-08"],
        ["Speed Sensor", "SS-5002", "Turbine Speed", "Caution", "Signal noise", "Check grounding", "2024-01-19"],
        ["Temperature Sensor", "TS-5003", "Bearing Temperature", "Warning", "ALS - Out of production", "Source replacement", "2024-01-26"],
        ["Pressure Sensor", "PS-5004", "Discharge Pressure", "Healthy", "", "", "2024-02-06"],
    ],
}

CAPEX_SAMPLE_ROWS: list[list] = [
    ["Ammonia Compressor Upgrade", "WBS-001", "A. Rahman", "Mechanical", 5000000, 5000000, 3900000, 4200000, "2024-01-08", "2024-12-20", "Active", "High", ""],
    ["Urea Granulator Filters", "WBS-002", "S. Lim", "Mechanical", 2500000, 2500000, 800000, 1800000, "2024-02-01", "2024-10-31", "Active", "Medium", "Vendor delay"],
    ["Utilities DCS Network", "WBS-003", "K. Tan", "Instrument", 3200000, 3200000, 3100000, 2700000, "2024-01-15", "2024-11-30", "Active", "Critical", ""],
    ["Cooling Tower Refurbishment", "WBS-004", "N. Aziz", "Civil", 1800000, 1800000, 1750000, 1750000, "2023-06-01", "2024-03-31", "Completed", "Low", ""],
    ["Instrument Air Dryer", "WBS-005", "K. Tan", "Instrument", 900000, 900000, 200000, 600000, "2024-04-01", "2025-01-31", "Planning", "Medium", ""],
    ["Steam Turbine Overhaul", "WBS-006", "A. Rahman", "Rotating", 4200000, 4200000, 4500000, 3800000, "2024-03-01", "2024-09-30", "Active", "High", "Scope growth"],
]


def _write_sheet(ws, headers: list[str], rows: list[list]) -> None:
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append(row)
    for idx, header in enumerate(headers, start=1):
        ws.column_dimensions[ws.cell(row=1, column=idx).column_letter].width = max(12, len(header) + 4)


def build_instrument_template(path, with_samples: bool = True):
    """Write an instrument healthiness workbook with one sheet per area.

    ``path`` may be a filesystem path or a writable binary file-like.
    """
    if isinstance(path, str):
        path = Path(path)
    wb = Workbook()
    wb.remove(wb.active)
    for area in INSTRUMENT_AREAS:
        ws = wb.create_sheet(area)
        _write_sheet(ws, INSTRUMENT_HEADERS, INSTRUMENT_SAMPLE_ROWS[area] if with_samples else [])
    wb.save(path)
    logger.info("Wrote instrument template to %s", path)
    return path


def build_capex_template(path, with_samples: bool = True):
    """Write a CAPEX project register with a single "Projects" sheet."""
    if isinstance(path, str):
        path = Path(path)
    wb = Workbook()
    ws = wb.active
    ws.title = "Projects"
    _write_sheet(ws, CAPEX_HEADERS, CAPEX_SAMPLE_ROWS if with_samples else [])
    wb.save(path)
    logger.info("Wrote CAPEX template to %s", path)
    return path
