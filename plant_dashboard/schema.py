"""
Domain schemas and the ingestion result container.

A DomainSchema describes one dashboard family: which headers it accepts,
which fields are required, how each field is typed and defaulted, how its
workbook is split into sections, and what to do when a section is
malformed. The row normalizer, section ingestor and filter engine are
shared; only the schema differs between domains.
"""

from dataclasses import dataclass, field
from typing import Callable, NamedTuple

import pandas as pd

from . import config
from .kpis import calc_utilization, classify_utilization


class StatusSpec(NamedTuple):
    labels: tuple[str, ...]
    default: str
    aliases: dict[str, str] | None = None


@dataclass(frozen=True)
class DomainSchema:
    name: str
    aliases: dict[str, tuple[str, ...]]
    required_columns: tuple[str, ...]
    # Row is rejected when all of these are blank
    identity_fields: tuple[str, ...]
    text_defaults: dict[str, str]
    numeric_fields: tuple[str, ...]
    date_fields: tuple[str, ...]
    status_fields: dict[str, StatusSpec]
    category_fields: tuple[str, ...]
    identifier_field: str
    severity_field: str
    severity_rank: dict[str, int]
    search_fields: tuple[str, ...]
    # (field compared against date_from, field compared against date_to)
    date_range_fields: tuple[str, str]
    # Column that receives the originating sheet name
    section_field: str = "section"
    # None means "first worksheet only"
    sections: tuple[str, ...] | None = None
    abort_on_structural_error: bool = False
    # None means the upper-cased section name
    id_prefix: str | None = None
    date_fallback_to_now: bool = False
    derived_fields: tuple[str, ...] = ()
    derive: Callable[[dict], None] | None = None

    @property
    def columns(self) -> list[str]:
        """Column order of the normalized row frame."""
        cols = ["id", self.section_field]
        cols += [name for name in self.aliases if name != "id"]
        cols += [f"{name}_display" for name in self.date_fields]
        cols += list(self.derived_fields)
        return cols

    def label(self, canonical: str) -> str:
        spellings = self.aliases.get(canonical)
        if spellings:
            return spellings[0]
        return canonical.replace("_", " ").title()

    def empty_frame(self) -> pd.DataFrame:
        return pd.DataFrame(columns=self.columns)


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one upload. Replaces any previous result wholesale."""

    rows: pd.DataFrame
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    # Non-blank data rows seen across all ingested sections
    total_rows: int = 0
    sections: tuple[str, ...] = field(default_factory=tuple)

    @property
    def success_count(self) -> int:
        return len(self.rows)

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# CAPEX budget domain
# ---------------------------------------------------------------------------

def _derive_budget_health(row: dict) -> None:
    if not row["current_budget"]:
        row["current_budget"] = row["original_budget"]
    row["utilization_pct"] = calc_utilization(row["actual_spend"], row["current_budget"])
    row["health"] = classify_utilization(row["utilization_pct"])


CAPEX_SCHEMA = DomainSchema(
    name="capex",
    aliases=config.CAPEX_ALIASES,
    required_columns=config.CAPEX_REQUIRED_COLUMNS,
    identity_fields=("name",),
    text_defaults={
        "id": "",
        "name": "",
        "wbs_number": "",
        "project_manager": "Unassigned",
        "discipline": "General",
        "vendor": "",
        "payment_terms": "",
        "remarks": "",
    },
    numeric_fields=(
        "original_budget",
        "contract_value",
        "budget_transfer_in",
        "budget_transfer_out",
        "current_budget",
        "actual_spend",
        "planned_spend",
    ),
    date_fields=("start_date", "end_date"),
    status_fields={
        "project_status": StatusSpec(
            config.PROJECT_STATUSES,
            config.PROJECT_STATUS_DEFAULT,
            config.PROJECT_STATUS_ALIASES,
        ),
        "priority": StatusSpec(config.PRIORITIES, config.PRIORITY_DEFAULT),
    },
    category_fields=("discipline", "project_status", "priority", "health"),
    identifier_field="name",
    severity_field="health",
    severity_rank=config.BUDGET_SEVERITY_RANK,
    search_fields=("name", "wbs_number", "remarks"),
    date_range_fields=("start_date", "end_date"),
    section_field="section",
    sections=None,
    abort_on_structural_error=False,
    id_prefix="PROJ",
    date_fallback_to_now=False,
    derived_fields=("utilization_pct", "health"),
    derive=_derive_budget_health,
)

# ---------------------------------------------------------------------------
# Instrument healthiness domain
# ---------------------------------------------------------------------------

INSTRUMENT_SCHEMA = DomainSchema(
    name="instrument",
    aliases=config.INSTRUMENT_ALIASES,
    required_columns=config.INSTRUMENT_REQUIRED_COLUMNS,
    identity_fields=("equipment_type", "tag_number"),
    text_defaults={
        "equipment_type": "",
        "tag_number": "",
        "equipment_description": "",
        "alarm_text": "",
        "rectification_text": "",
    },
    numeric_fields=(),
    date_fields=("notification_date",),
    status_fields={
        "status": StatusSpec(config.INSTRUMENT_STATUSES, config.INSTRUMENT_STATUS_DEFAULT),
    },
    category_fields=("area", "equipment_type", "status"),
    identifier_field="tag_number",
    severity_field="status",
    severity_rank=config.INSTRUMENT_SEVERITY_RANK,
    search_fields=("tag_number", "equipment_description", "alarm_text"),
    date_range_fields=("notification_date", "notification_date"),
    section_field="area",
    sections=config.INSTRUMENT_AREAS,
    abort_on_structural_error=True,
    id_prefix=None,
    date_fallback_to_now=True,
)

SCHEMAS = {schema.name: schema for schema in (CAPEX_SCHEMA, INSTRUMENT_SCHEMA)}


def get_schema(name: str) -> DomainSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise KeyError(f"Unknown domain '{name}'. Known: {sorted(SCHEMAS)}") from None
