"""
Section ingestion: walk the sheets a domain expects, normalize their rows,
and collect warnings and errors instead of raising.

Message taxonomy
----------------
- Missing sheet / chart-only sheet / empty sheet / rejected row / guessed
  date -> warnings
- Missing required columns / unreadable workbook -> errors

When a sheet is missing required columns none of its rows are ingested.
Whether the other sheets still load is the schema's policy flag
``abort_on_structural_error``.
"""

import io
import logging
from pathlib import Path
from typing import Any, BinaryIO, Sequence

import openpyxl
import pandas as pd
from openpyxl.chartsheet import Chartsheet
from openpyxl.utils.datetime import WINDOWS_EPOCH

from ..config import HEADER_SEARCH_ROWS
from ..schema import DomainSchema, IngestionResult
from .columns import build_alias_index, missing_required, resolve_columns
from .rows import is_blank_record, normalize_row
from .utils import find_header_row

logger = logging.getLogger(__name__)

WorkbookSource = str | Path | bytes | bytearray | BinaryIO


def open_workbook(source: WorkbookSource) -> openpyxl.Workbook:
    """Open a workbook from a path, raw bytes or a binary file-like."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    return openpyxl.load_workbook(source, data_only=True)


def _locate_sheet(wb: openpyxl.Workbook, name: str) -> str | None:
    """Find a sheet by name, ignoring case and surrounding whitespace."""
    wanted = name.strip().lower()
    for sheet_name in wb.sheetnames:
        if sheet_name.strip().lower() == wanted:
            return sheet_name
    return None


def _header_index(rows: Sequence[Sequence[Any]], schema: DomainSchema) -> int:
    """Row index of the header: the first row matching two aliases, else the first non-blank row."""
    signature = build_alias_index(schema.aliases).keys()
    found = find_header_row(rows, signature, max_rows=HEADER_SEARCH_ROWS)
    if found is not None:
        return found
    for idx, row in enumerate(rows):
        if not is_blank_record(row):
            return idx
    return 0


def rows_to_frame(records: list[dict], schema: DomainSchema) -> pd.DataFrame:
    """Build the normalized row frame with stable columns and dtypes."""
    df = pd.DataFrame(records, columns=schema.columns)
    for name in schema.numeric_fields:
        df[name] = pd.to_numeric(df[name], errors="coerce").fillna(0.0).astype(float)
    for name in schema.date_fields:
        df[name] = pd.to_datetime(df[name])
    if "utilization_pct" in df.columns:
        df["utilization_pct"] = df["utilization_pct"].astype(float)
    return df


def _ingest_sheet(
    ws,
    section: str,
    schema: DomainSchema,
    epoch,
    records: list[dict],
    warnings: list[str],
    errors: list[str],
    id_prefix: str | None = None,
) -> int:
    """Ingest one worksheet into ``records``. Returns the number of non-blank data rows."""
    rows = list(ws.iter_rows(values_only=True))
    if all(is_blank_record(row) for row in rows):
        warnings.append(f'Sheet "{section}" is empty')
        logger.warning("Sheet '%s' is empty", section)
        return 0

    header_idx = _header_index(rows, schema)
    columns = resolve_columns(rows[header_idx], schema.aliases)

    missing = missing_required(columns, schema.required_columns, schema.aliases)
    if missing:
        errors.append(f'Sheet "{section}" is missing required columns: {", ".join(missing)}')
        logger.warning("Sheet '%s' is missing required columns: %s", section, missing)
        return 0

    data_rows = rows[header_idx + 1:]
    seen = 0
    for ordinal, record in enumerate(data_rows):
        if is_blank_record(record):
            continue
        seen += 1
        outcome = normalize_row(
            record,
            columns,
            ordinal,
            schema,
            section=section,
            epoch=epoch,
            # header_idx is 0-based; spreadsheet rows are 1-based
            row_number=header_idx + 2 + ordinal,
            id_prefix=id_prefix,
        )
        warnings.extend(outcome.messages)
        if outcome.row is not None:
            records.append(outcome.row)

    if seen == 0:
        warnings.append(f'Sheet "{section}" is empty')
        logger.warning("Sheet '%s' has a header but no data rows", section)
    else:
        logger.info("Loaded %d data rows from sheet '%s'", seen, section)
    return seen


def ingest_workbook(
    source: WorkbookSource,
    schema: DomainSchema,
    sections: Sequence[str] | None = None,
) -> IngestionResult:
    """Ingest every section of a workbook against a domain schema.

    Parameters
    ----------
    source : Path, bytes or binary file-like of an .xlsx workbook.
    schema : Domain schema (CAPEX_SCHEMA, INSTRUMENT_SCHEMA, ...).
    sections : Sheet names to read. Defaults to the schema's declared
        sections, or the first non-chart worksheet when the schema
        declares none.

    Returns
    -------
    IngestionResult. Never raises for bad input; problems are reported in
    ``warnings`` and ``errors``.
    """
    try:
        wb = open_workbook(source)
    except Exception as exc:
        logger.exception("Failed to open workbook")
        return IngestionResult(
            rows=rows_to_frame([], schema),
            errors=(f"Failed to parse Excel file: {exc}",),
        )

    epoch = getattr(wb, "epoch", WINDOWS_EPOCH)
    data_sheets = [name for name in wb.sheetnames if not isinstance(wb[name], Chartsheet)]
    wanted = list(sections or schema.sections or data_sheets[:1])
    if not wanted:
        logger.warning("Workbook has no data sheets: %s", wb.sheetnames)
    # With several sheets the prefix carries the sheet name: PROJ-FY24-1
    id_prefix = schema.id_prefix
    per_section_ids = bool(id_prefix) and len(wanted) > 1

    records: list[dict] = []
    warnings: list[str] = [] if wanted else ["Workbook has no data sheets"]
    errors: list[str] = []
    ingested: list[str] = []
    total_rows = 0

    for section in wanted:
        sheet_name = _locate_sheet(wb, section)
        if sheet_name is None:
            warnings.append(f'Missing sheet "{section}"')
            logger.warning("Sheet '%s' not found. Available: %s", section, wb.sheetnames)
            continue

        ws = wb[sheet_name]
        if isinstance(ws, Chartsheet):
            warnings.append(f'Sheet "{sheet_name}" is a chart sheet and holds no rows')
            logger.info("Skipped chart-only sheet '%s'", sheet_name)
            continue

        # Declared sections keep their canonical spelling; ad hoc ones keep the sheet's
        label = section if schema.sections else sheet_name
        if per_section_ids:
            id_prefix = f"{schema.id_prefix}-{'_'.join(label.upper().split())}"
        errors_before = len(errors)
        total_rows += _ingest_sheet(ws, label, schema, epoch, records, warnings, errors, id_prefix)
        if len(errors) == errors_before:
            ingested.append(label)

    wb.close()

    if errors and schema.abort_on_structural_error:
        logger.warning(
            "Rejecting whole upload for '%s': %d structural error(s)", schema.name, len(errors)
        )
        return IngestionResult(
            rows=rows_to_frame([], schema),
            warnings=tuple(warnings),
            errors=tuple(errors),
            total_rows=total_rows,
        )

    df = rows_to_frame(records, schema)
    logger.info(
        "Ingested %d of %d rows for '%s' (%d warnings, %d errors)",
        len(df), total_rows, schema.name, len(warnings), len(errors),
    )
    return IngestionResult(
        rows=df,
        warnings=tuple(warnings),
        errors=tuple(errors),
        total_rows=total_rows,
        sections=tuple(ingested),
    )
