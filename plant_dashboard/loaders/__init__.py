"""Data ingestion loaders for CAPEX and instrument healthiness workbooks."""

from .capex_register import load_capex_register
from .instrument_health import load_instrument_workbook
from .workbook import ingest_workbook, open_workbook

__all__ = [
    "load_capex_register",
    "load_instrument_workbook",
    "ingest_workbook",
    "open_workbook",
]
