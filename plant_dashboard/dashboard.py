"""
Dashboard-ready output functions.

These are the primary entry points for the Streamlit front end and the
export collaborators. Each function returns plain dicts or DataFrames
suitable for rendering cards, charts and tables.
"""

import logging
from typing import Sequence

import pandas as pd

from .config import DATE_DISPLAY_FORMAT, OBSOLESCENCE_MARKER
from .filters import FilterState, filter_and_sort
from .kpis import (
    aggregate_budget_groups,
    get_group_status_breakdown,
    summarise_budget_kpis,
    summarise_instrument_kpis,
)
from .schema import CAPEX_SCHEMA, INSTRUMENT_SCHEMA, DomainSchema

logger = logging.getLogger(__name__)


def get_capex_overview(
    rows: pd.DataFrame,
    filters: FilterState,
    group_by: str = "discipline",
    group_statuses: Sequence[str] | None = None,
) -> dict:
    """Single entry point the CAPEX page calls to populate cards and tables.

    Parameters
    ----------
    rows : Normalized CAPEX rows from load_capex_register().
    filters : Current filter state.
    group_by : Column the group table is partitioned on.
    group_statuses : Keep only groups with these statuses (Healthy,
        Caution, Overrun). KPI totals follow the kept groups.

    Returns
    -------
    Dict with keys "rows" (filtered/sorted DataFrame), "groups" (GroupMetric
    DataFrame) and "kpis" (summary dict).
    """
    filtered = filter_and_sort(rows, filters, CAPEX_SCHEMA)
    groups = aggregate_budget_groups(filtered, group_by=group_by, statuses=list(group_statuses or []))
    return {
        "rows": filtered,
        "groups": groups,
        "kpis": summarise_budget_kpis(groups),
    }


def get_instrument_overview(rows: pd.DataFrame, filters: FilterState) -> dict:
    """Single entry point the instrument page calls for gauge, donuts and tables.

    Returns
    -------
    Dict with keys "rows", "kpis", "by_area" and "by_equipment_type".
    """
    filtered = filter_and_sort(rows, filters, INSTRUMENT_SCHEMA)
    return {
        "rows": filtered,
        "kpis": summarise_instrument_kpis(filtered),
        "by_area": get_group_status_breakdown(filtered, "area"),
        "by_equipment_type": get_group_status_breakdown(filtered, "equipment_type"),
    }


def get_obsolescence_items(rows: pd.DataFrame) -> pd.DataFrame:
    """Instrument rows flagged obsolete (ALS marker in the alarm text), newest first."""
    if rows.empty:
        return rows.copy()
    flagged = rows[
        rows["alarm_text"].astype(str).str.contains(OBSOLESCENCE_MARKER, case=False, regex=True)
    ]
    return flagged.sort_values("notification_date", ascending=False, kind="stable")


def get_export_frame(
    rows: pd.DataFrame,
    columns: Sequence[str],
    schema: DomainSchema,
) -> pd.DataFrame:
    """Hand rows to a document writer: selected columns, display headers.

    Rows are already validated; no coercion happens here. Date columns are
    rendered with their display strings.

    Raises
    ------
    KeyError if a requested column is not part of the schema.
    """
    unknown = [name for name in columns if name not in schema.columns]
    if unknown:
        raise KeyError(f"Unknown export columns for '{schema.name}': {unknown}")

    out = pd.DataFrame(index=rows.index)
    for name in columns:
        if name in schema.date_fields:
            out[schema.label(name)] = rows[name].dt.strftime(DATE_DISPLAY_FORMAT).fillna("")
        else:
            out[schema.label(name)] = rows[name]
    return out.reset_index(drop=True)
