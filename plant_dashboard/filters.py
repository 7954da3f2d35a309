"""
Filter and sort engine for normalized row frames.

Every function takes a frame and returns a new one; inputs are never
mutated. The individual filters are independent row masks, so the order
they are applied in does not change the resulting set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

import pandas as pd

from .config import DEFAULT_SORT, SORT_OPTIONS
from .schema import DomainSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterState:
    # field -> selected values; an empty selection means no restriction
    categories: Mapping[str, frozenset] = field(default_factory=dict)
    date_from: Optional[pd.Timestamp] = None
    date_to: Optional[pd.Timestamp] = None
    search_text: str = ""
    sort_by: str = DEFAULT_SORT


def _as_timestamp(value: object) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        logger.warning("Ignoring unparseable filter date: %r", value)
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        # Aware bounds (a browser's toISOString of local midnight) become local wall-clock time
        ts = pd.Timestamp(ts.to_pydatetime().astimezone()).tz_localize(None)
    return ts


def normalize_filters(raw: Mapping, schema: Optional[DomainSchema] = None) -> FilterState:
    """Build a FilterState from a plain dict (UI widgets or rehydrated JSON).

    Dates may be ISO-8601 strings or already-parsed date values. Aware
    values are converted to local time and made naive. Category selections
    for fields the schema does not filter on are dropped.
    """
    allowed = set(schema.category_fields) if schema is not None else None

    categories: dict[str, frozenset] = {}
    for name, values in (raw.get("categories") or {}).items():
        if allowed is not None and name not in allowed:
            continue
        categories[name] = frozenset(str(v) for v in (values or []) if v is not None)

    sort_by = raw.get("sort_by") or DEFAULT_SORT
    if sort_by not in SORT_OPTIONS:
        logger.warning("Unknown sort option %r, using %r", sort_by, DEFAULT_SORT)
        sort_by = DEFAULT_SORT

    return FilterState(
        categories=categories,
        date_from=_as_timestamp(raw.get("date_from")),
        date_to=_as_timestamp(raw.get("date_to")),
        search_text=str(raw.get("search_text") or ""),
        sort_by=sort_by,
    )


def serialize_filters(state: FilterState) -> dict:
    """JSON-ready dict for the storage collaborator; dates as ISO-8601."""
    return {
        "categories": {name: sorted(values) for name, values in state.categories.items()},
        "date_from": state.date_from.isoformat() if state.date_from is not None else None,
        "date_to": state.date_to.isoformat() if state.date_to is not None else None,
        "search_text": state.search_text,
        "sort_by": state.sort_by,
    }


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def apply_category_filters(rows: pd.DataFrame, categories: Mapping[str, Iterable]) -> pd.DataFrame:
    """Keep rows whose value is selected in every non-empty category."""
    mask = pd.Series(True, index=rows.index)
    for name, values in categories.items():
        values = list(values)
        if not values:
            continue
        if name not in rows.columns:
            logger.debug("Ignoring filter on unknown column '%s'", name)
            continue
        mask &= rows[name].isin(values)
    return rows[mask].copy()


def end_of_day(value: date | datetime | pd.Timestamp) -> pd.Timestamp:
    """Last representable instant of the calendar day of ``value``."""
    return pd.Timestamp(value).normalize() + pd.Timedelta(days=1) - pd.Timedelta(1, "ns")


def apply_date_range(
    rows: pd.DataFrame,
    date_from: Optional[date | datetime | pd.Timestamp],
    date_to: Optional[date | datetime | pd.Timestamp],
    fields: tuple[str, str],
) -> pd.DataFrame:
    """Keep rows inside [date_from, date_to], both ends inclusive.

    ``date_to`` covers its whole calendar day. Rows with no date in the
    compared field pass.
    """
    from_field, to_field = fields
    mask = pd.Series(True, index=rows.index)
    if date_from is not None:
        start = pd.Timestamp(date_from)
        col = rows[from_field]
        mask &= col.isna() | (col >= start)
    if date_to is not None:
        end = end_of_day(date_to)
        col = rows[to_field]
        mask &= col.isna() | (col <= end)
    return rows[mask].copy()


def apply_search(rows: pd.DataFrame, text: str, fields: Iterable[str]) -> pd.DataFrame:
    """Case-insensitive substring match across ``fields``; blank text keeps all."""
    needle = (text or "").strip().lower()
    if not needle:
        return rows.copy()
    mask = pd.Series(False, index=rows.index)
    for name in fields:
        if name in rows.columns:
            mask |= rows[name].astype(str).str.lower().str.contains(needle, regex=False)
    return rows[mask].copy()


# ---------------------------------------------------------------------------
# Sort
# ---------------------------------------------------------------------------

def sort_rows(rows: pd.DataFrame, sort_by: str, schema: DomainSchema) -> pd.DataFrame:
    """Sort with one of SORT_OPTIONS. Ties keep their input order.

    - date-desc / date-asc : on the schema's first date field, missing last
    - identifier-asc : case-insensitive on the schema's identifier field
    - severity : schema.severity_rank over the severity field, most severe first
    """
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"Unknown sort option '{sort_by}'. Expected one of {SORT_OPTIONS}")
    if rows.empty:
        return rows.copy()

    if sort_by in ("date-desc", "date-asc"):
        return rows.sort_values(
            schema.date_fields[0],
            ascending=(sort_by == "date-asc"),
            kind="stable",
            na_position="last",
        )
    if sort_by == "identifier-asc":
        return rows.sort_values(
            schema.identifier_field,
            kind="stable",
            key=lambda col: col.astype(str).str.casefold(),
        )
    worst_last = len(schema.severity_rank)
    return rows.sort_values(
        schema.severity_field,
        kind="stable",
        key=lambda col: col.map(schema.severity_rank).fillna(worst_last),
    )


def filter_and_sort(rows: pd.DataFrame, filters: FilterState, schema: DomainSchema) -> pd.DataFrame:
    """Apply category, date-range and search filters, then sort.

    Pure function of (rows, filters): safe to call on every widget change.
    """
    filtered = apply_category_filters(rows, filters.categories)
    filtered = apply_date_range(
        filtered, filters.date_from, filters.date_to, schema.date_range_fields
    )
    filtered = apply_search(filtered, filters.search_text, schema.search_fields)
    result = sort_rows(filtered, filters.sort_by, schema)
    logger.debug("Filtered %d rows down to %d", len(rows), len(result))
    return result


def get_unique_values(rows: pd.DataFrame, field_name: str) -> list[str]:
    """Sorted distinct non-blank values of a column, for filter selectors."""
    if rows.empty or field_name not in rows.columns:
        return []
    values = rows[field_name].dropna().astype(str)
    return sorted(v for v in values.unique().tolist() if v)
