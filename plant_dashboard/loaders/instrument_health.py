"""
Loader for the instrument asset healthiness workbook.

One sheet per plant area (config.INSTRUMENT_AREAS), each with the same
seven columns: Equipment Type, Tag Number, Equipment Description, Status,
Alarm Description, Rectification, Notification Date.

Policy: if any area sheet is missing a required column, the whole upload is
rejected (no rows returned) so the user fixes the workbook and re-uploads.
Missing or empty area sheets are only warnings.
"""

import logging

from ..schema import INSTRUMENT_SCHEMA, IngestionResult
from .workbook import WorkbookSource, ingest_workbook

logger = logging.getLogger(__name__)


def load_instrument_workbook(source: WorkbookSource) -> IngestionResult:
    """Load all area sheets of an instrument healthiness workbook.

    Assumptions
    -----------
    - A row is kept when it has an equipment type or a tag number.
    - Status text outside Healthy/Caution/Warning becomes Unknown.
    - Notification dates may be Excel serials, date strings or real dates;
      an unreadable date is replaced by today and reported as a warning.

    Returns
    -------
    IngestionResult whose rows carry the INSTRUMENT_SCHEMA columns, with
    the sheet name in ``area``.
    """
    result = ingest_workbook(source, INSTRUMENT_SCHEMA)
    if result.errors:
        logger.warning("Instrument workbook rejected: %s", "; ".join(result.errors))
    else:
        logger.info(
            "Instrument workbook: %d rows across %d areas",
            result.success_count, len(result.sections),
        )
    return result
