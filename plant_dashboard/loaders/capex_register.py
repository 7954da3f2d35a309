"""
Loader for CAPEX project registers.

One project per row, normally on the first worksheet. Headers vary between
exports ("Project Name", "project_name", "Name", ...) and are resolved
through config.CAPEX_ALIASES.

Policy: a sheet missing the Name column is reported as an error and skipped;
any other requested sheets still load.
"""

import logging
from typing import Sequence

from ..schema import CAPEX_SCHEMA, IngestionResult
from .workbook import WorkbookSource, ingest_workbook

logger = logging.getLogger(__name__)


def load_capex_register(
    source: WorkbookSource,
    sheets: Sequence[str] | None = None,
) -> IngestionResult:
    """Load a CAPEX project register.

    Assumptions
    -----------
    - The header row sits within the first few rows (title banners above
      it are skipped).
    - A row without a project name is rejected with a warning naming its
      spreadsheet row number.
    - Currency cells may carry an "RM" prefix and thousands separators.
    - Current budget falls back to original budget when blank or zero.

    Parameters
    ----------
    source : Path, bytes or binary file-like of the workbook.
    sheets : Sheets to read. Defaults to the first worksheet.

    Returns
    -------
    IngestionResult whose rows carry the CAPEX_SCHEMA columns plus
    utilization_pct and health.
    """
    result = ingest_workbook(source, CAPEX_SCHEMA, sections=sheets)
    logger.info(
        "CAPEX register: %d of %d projects loaded", result.success_count, result.total_rows
    )
    return result
