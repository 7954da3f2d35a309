"""
Row normalisation: one raw spreadsheet row in, one typed row dict out.

Only the identity check can reject a row. Every other missing or malformed
cell is defaulted so partial data is kept rather than lost.
"""

import logging
from datetime import datetime
from typing import Any, NamedTuple, Sequence

from openpyxl.utils.datetime import WINDOWS_EPOCH

from ..schema import DomainSchema
from .columns import ColumnMap
from .utils import coerce_currency, coerce_date, coerce_status, coerce_text, is_blank

logger = logging.getLogger(__name__)


class RowOutcome(NamedTuple):
    row: dict | None
    messages: list[str]


def is_blank_record(record: Sequence[Any]) -> bool:
    """True when every cell of the row is empty."""
    return all(is_blank(val) for val in record)


def _cell(record: Sequence[Any], columns: ColumnMap, canonical: str) -> Any:
    idx = columns.get(canonical)
    if idx is None or idx >= len(record):
        return None
    return record[idx]


def _synthetic_id(prefix: str | None, section: str, ordinal: int) -> str:
    prefix = prefix or section.upper()
    return f"{prefix}-{ordinal + 1}"


def normalize_row(
    record: Sequence[Any],
    columns: ColumnMap,
    ordinal: int,
    schema: DomainSchema,
    *,
    section: str,
    epoch: datetime = WINDOWS_EPOCH,
    row_number: int | None = None,
    id_prefix: str | None = None,
) -> RowOutcome:
    """Normalize one raw row against a domain schema.

    Parameters
    ----------
    record : Cell values aligned to the section's header row.
    columns : Resolved canonical field -> column index.
    ordinal : 0-based data-row position within the section. Drives the
        synthetic id, so re-parsing the same file gives the same ids.
    schema : Domain schema describing fields, defaults and identity.
    section : Name of the sheet the row came from.
    epoch : Workbook date system for serial-number dates.
    row_number : 1-based spreadsheet row number for messages. Defaults to
        ordinal + 2 (header on row 1).
    id_prefix : Overrides schema.id_prefix for the synthetic id.

    Returns
    -------
    RowOutcome(row, messages). ``row`` is None when the row was rejected;
    ``messages`` holds the rejection reason or date fallback notes.
    """
    if row_number is None:
        row_number = ordinal + 2
    where = f'Sheet "{section}", row {row_number}'

    identity = {name: coerce_text(_cell(record, columns, name)) for name in schema.identity_fields}
    if not any(identity.values()):
        labels = " / ".join(schema.label(name) for name in schema.identity_fields)
        message = f"{where}: missing required field {labels}"
        logger.warning(message)
        return RowOutcome(None, [message])

    messages: list[str] = []
    row: dict = {schema.section_field: section}

    for name, default in schema.text_defaults.items():
        row[name] = coerce_text(_cell(record, columns, name), default)

    for name in schema.numeric_fields:
        row[name] = coerce_currency(_cell(record, columns, name))

    for name, spec in schema.status_fields.items():
        row[name] = coerce_status(_cell(record, columns, name), spec.labels, spec.default, spec.aliases)

    for name in schema.date_fields:
        raw = _cell(record, columns, name)
        parsed = coerce_date(raw, epoch=epoch, fallback_to_now=schema.date_fallback_to_now)
        row[name] = parsed.date
        row[f"{name}_display"] = parsed.display
        # Blank dates fall back silently; only guessed ones are reported
        if parsed.fell_back and schema.date_fallback_to_now:
            message = f"{where}: unparseable {schema.label(name)} '{raw}'; using {parsed.display}"
            logger.warning(message)
            messages.append(message)

    if not row.get("id"):
        row["id"] = _synthetic_id(id_prefix or schema.id_prefix, section, ordinal)

    if schema.derive is not None:
        schema.derive(row)

    return RowOutcome(row, messages)
