"""
Plant Dashboard — End-to-end analytics pipeline.

Writes the sample templates to a temporary directory, ingests them, applies
filters and prints smoke-test summaries.

Usage:
    python main.py
"""

import logging
import sys
import tempfile
from pathlib import Path

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from plant_dashboard.config import CAPEX_TEMPLATE_FILE, INSTRUMENT_TEMPLATE_FILE
from plant_dashboard.loaders import load_capex_register, load_instrument_workbook
from plant_dashboard.filters import FilterState, normalize_filters, serialize_filters
from plant_dashboard.dashboard import (
    get_capex_overview,
    get_instrument_overview,
    get_obsolescence_items,
)
from plant_dashboard.template import build_capex_template, build_instrument_template

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the full analytics pipeline and print smoke-test outputs."""

    print("=" * 70)
    print("  PLANT DASHBOARD — CAPEX & Instrument Healthiness")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    with tempfile.TemporaryDirectory() as tmp:
        capex_path = build_capex_template(Path(tmp) / CAPEX_TEMPLATE_FILE)
        instrument_path = build_instrument_template(Path(tmp) / INSTRUMENT_TEMPLATE_FILE)

        # ------------------------------------------------------------------
        # 1. Ingest
        # ------------------------------------------------------------------
        print("[ 1 ] INGESTING WORKBOOKS")
        print("-" * 40)

        capex = load_capex_register(capex_path)
        print(f"\nCAPEX register: {capex.success_count} of {capex.total_rows} rows, "
              f"{len(capex.warnings)} warnings, {len(capex.errors)} errors")
        print(capex.rows[["id", "name", "discipline", "current_budget", "actual_spend", "health"]]
              .to_string(index=False))

        instruments = load_instrument_workbook(instrument_path)
        print(f"\nInstrument workbook: {instruments.success_count} of {instruments.total_rows} rows, "
              f"{len(instruments.warnings)} warnings, {len(instruments.errors)} errors")
        print(instruments.rows[["id", "area", "tag_number", "status", "notification_date_display"]]
              .head(10).to_string(index=False))

    # ------------------------------------------------------------------
    # 2. CAPEX overview
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] CAPEX OVERVIEW")
    print("-" * 40)

    overview = get_capex_overview(capex.rows, FilterState(sort_by="severity"))
    print(overview["groups"].to_string(index=False))
    for key, value in overview["kpis"].items():
        print(f"  {key:16s} | {value}")

    # ------------------------------------------------------------------
    # 3. Instrument overview with a filter round-tripped through JSON form
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] INSTRUMENT OVERVIEW")
    print("-" * 40)

    stored = serialize_filters(
        FilterState(
            categories={"area": frozenset({"Ammonia", "Urea"})},
            date_to=pd.Timestamp("2024-01-31"),
            sort_by="severity",
        )
    )
    print(f"\nStored filter state: {stored}")
    filters = normalize_filters(stored)

    inst = get_instrument_overview(instruments.rows, filters)
    print(inst["rows"][["area", "tag_number", "status", "notification_date_display"]].to_string(index=False))
    print(f"\nHealth score: {inst['kpis']['score']:.1f} ({inst['kpis']['label']})")
    print(inst["by_equipment_type"].to_string(index=False))

    als = get_obsolescence_items(instruments.rows)
    print(f"\nObsolescence items: {len(als)}")

    # ------------------------------------------------------------------
    # 4. Acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] ACCEPTANCE CRITERIA CHECKS")
    print("-" * 40)

    check1 = capex.success_count == capex.total_rows and capex.ok
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] CAPEX template loads cleanly ({capex.success_count} rows)")

    check2 = instruments.success_count == 20 and instruments.ok
    print(f"  [{'PASS' if check2 else 'FAIL'}] Instrument template has {instruments.success_count} rows (need 20)")

    kpis = overview["kpis"]
    check3 = abs(kpis["total_approved"] - overview["groups"]["approved_budget"].sum()) < 1e-6
    print(f"  [{'PASS' if check3 else 'FAIL'}] KPI totals match group table")

    check4 = len(als) == 5
    print(f"  [{'PASS' if check4 else 'FAIL'}] Obsolescence panel has {len(als)} items (expect 5)")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
