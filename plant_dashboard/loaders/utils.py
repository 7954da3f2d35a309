"""
Shared utilities for data ingestion: cell coercion, date normalisation,
header detection.

Every coercer is total. A malformed cell never raises; it is replaced by a
documented default so one badly typed cell cannot drop a row.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Iterable, NamedTuple, Sequence

import pandas as pd
from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel

from ..config import DATE_DISPLAY_FORMAT

logger = logging.getLogger(__name__)

# Currency prefixes/suffixes seen in budget exports ("RM 1,200.50", "$300")
_CURRENCY_RE = re.compile(r"^(RM|MYR|USD|US\$|\$|€|£)\s*|\s*(RM|MYR|USD)$", re.IGNORECASE)


class CoercedDate(NamedTuple):
    date: pd.Timestamp | None
    display: str
    fell_back: bool


def is_blank(val: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    if isinstance(val, float):
        return math.isnan(val)
    return False


def coerce_currency(val: Any) -> float:
    """Convert a currency cell to a non-negative float.

    Strips thousands separators, whitespace and a currency prefix such as
    ``RM``. Blank, unparseable, non-finite and negative values give 0.0.
    """
    if is_blank(val) or isinstance(val, bool):
        return 0.0
    if isinstance(val, (int, float)):
        number = float(val)
    else:
        cleaned = _CURRENCY_RE.sub("", str(val).strip())
        cleaned = cleaned.replace(",", "").replace(" ", "")
        try:
            number = float(cleaned)
        except ValueError:
            return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def parse_date(val: Any, epoch: datetime = WINDOWS_EPOCH) -> pd.Timestamp | None:
    """Convert an Excel serial number, date string or datetime to a Timestamp.

    Serial numbers are decoded against ``epoch`` (the workbook's 1900 or 1904
    date system). The time of day is dropped, so serials below 1 are the
    epoch day itself. Returns None for blank, negative or unparseable values.
    """
    if is_blank(val) or isinstance(val, bool):
        return None
    try:
        if isinstance(val, (int, float)):
            if val < 0:
                return None
            # from_excel returns a bare time for fractions below one day
            day = math.floor(val)
            ts = pd.Timestamp(from_excel(day, epoch) if day >= 1 else epoch)
        elif isinstance(val, (pd.Timestamp, datetime, date)):
            ts = pd.Timestamp(val)
        else:
            ts = pd.Timestamp(str(val).strip())
    except (ValueError, TypeError, OverflowError):
        logger.debug("Could not parse date value: %r", val)
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def coerce_date(
    val: Any,
    epoch: datetime = WINDOWS_EPOCH,
    fallback_to_now: bool = True,
) -> CoercedDate:
    """Convert a date cell to (date, display string, fell_back).

    When the value is blank or cannot be parsed, the date is today if
    ``fallback_to_now`` is set, otherwise None with an empty display string.
    ``fell_back`` is True only for a present value that could not be parsed.
    """
    ts = parse_date(val, epoch)
    if ts is not None:
        return CoercedDate(ts, ts.strftime(DATE_DISPLAY_FORMAT), False)

    fell_back = not is_blank(val)
    if fallback_to_now:
        today = pd.Timestamp.now().normalize()
        return CoercedDate(today, today.strftime(DATE_DISPLAY_FORMAT), fell_back)
    return CoercedDate(None, "", fell_back)


def coerce_status(
    val: Any,
    labels: Sequence[str],
    default: str,
    aliases: dict[str, str] | None = None,
) -> str:
    """Map free text onto a closed set of status labels.

    Matching is case-insensitive and exact on the trimmed text, first against
    ``labels`` and then against ``aliases``. Anything else returns ``default``.
    """
    if is_blank(val):
        return default
    key = " ".join(str(val).split()).lower()
    for label in labels:
        if key == label.lower():
            return label
    if aliases:
        for alias, label in aliases.items():
            if key == alias.lower():
                return label
    return default


def coerce_text(val: Any, default: str = "") -> str:
    """Trimmed cell text. Integral floats (tag numbers typed as numbers) drop '.0'."""
    if is_blank(val):
        return default
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if isinstance(val, (datetime, date)):
        return val.strftime(DATE_DISPLAY_FORMAT)
    return str(val).strip()


def to_snake_case(name: str) -> str:
    """Convert a column name to snake_case.

    Handles spaces, parentheses, slashes, percent signs and camelCase, so
    "Current Budget", "current_budget" and "currentBudget" all agree.
    """
    s = str(name).strip()
    # Replace common symbols
    s = s.replace("%", "pct").replace("/", "_per_").replace("(", "").replace(")", "")
    s = s.replace("-", "_").replace(".", "_")
    # CamelCase to snake_case
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s)
    # Collapse whitespace and special chars to underscores
    s = re.sub(r"[^a-zA-Z0-9]+", "_", s)
    s = s.lower().strip("_")
    # Collapse multiple underscores
    s = re.sub(r"_+", "_", s)
    return s


def find_header_row(
    rows: Sequence[Sequence[Any]],
    signature: Iterable[str],
    max_rows: int = 10,
) -> int | None:
    """Scan leading rows for the one containing signature headers.

    ``signature`` holds snake_case header spellings. Returns the 0-based
    index of the first row where at least two cells match, or None if not
    found within ``max_rows``.
    """
    signature = set(signature)
    for row_idx, row in enumerate(rows[:max_rows]):
        matches = 0
        for val in row:
            if not is_blank(val) and to_snake_case(val) in signature:
                matches += 1
        if matches >= 2:
            return row_idx
    return None
