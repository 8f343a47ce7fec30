from __future__ import annotations

import math
import re
import warnings
from collections.abc import Sequence

import pandas as pd

from ..models.selection import DataType

"""Cell value normalization: number/currency/date parsing and column type inference.

All monetary equality in the engine goes through `parse_number`; two cell strings
are never compared as raw text.
"""

__all__ = [
    "NOT_AVAILABLE_SENTINEL",
    "parse_number",
    "parse_date",
    "validate_sample",
    "detect_type",
    "passes_filter",
]

NOT_AVAILABLE_SENTINEL = "#N/DISP"  # spreadsheet "not available" marker, counted as 0
DETECTION_SAMPLE_LIMIT = 50
CONFIDENCE_THRESHOLD = 0.6

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")
_FLOAT_PREFIX = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
_DATE_SHAPE = re.compile(r"^(?:\d{1,2}[-/]\d{1,2}[-/]\d{4}|\d{4}[-/]\d{1,2}[-/]\d{1,2})$")
_ID_SHAPE = re.compile(r"^\d{3}\.\d{3}\.\d{3}-\d{2}$")  # CPF: 123.456.789-09
_CURRENCY_SYMBOL = re.compile(r"R\$|[$€£¥]")


def parse_number(raw: object) -> float:
    """Parse a cell into a float, returning NaN when no number can be read.

    Handles both "1.234,56" and "1,234.56": whichever of the last comma and the
    last dot comes later is the decimal separator, the other one is dropped as a
    thousands separator.

    >>> parse_number("R$ 1.234,56")
    1234.56
    >>> parse_number("1,234.56")
    1234.56
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)

    text = str(raw).strip()
    if text == NOT_AVAILABLE_SENTINEL:
        return 0.0

    cleaned = _NON_NUMERIC.sub("", text)
    if cleaned in ("", "-"):
        return math.nan

    if cleaned.rfind(",") > cleaned.rfind("."):
        # 1.234,56 -> 1234.56
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    else:
        cleaned = cleaned.replace(",", "")

    # Leading numeric prefix only ("10-20" reads as 10)
    match = _FLOAT_PREFIX.match(cleaned)
    if match is None:
        return math.nan
    return float(match.group())


def parse_date(raw: str) -> pd.Timestamp | None:
    """Locale-agnostic date parsing; None when the string is not a calendar date."""
    text = raw.strip()
    if not text:
        return None
    try:
        with warnings.catch_warnings():
            # pandas warns when it falls back to dateutil per element
            warnings.simplefilter("ignore", UserWarning)
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed


def validate_sample(sample: str | None, data_type: DataType) -> bool:
    """Check a single sample against a declared type. Empty samples are always valid."""
    if sample is None or str(sample).strip() == "":
        return True

    if data_type is DataType.TEXT:
        return True
    if data_type is DataType.NUMBER or data_type is DataType.CURRENCY:
        return math.isfinite(parse_number(sample))
    if data_type is DataType.DATE:
        return parse_date(str(sample)) is not None
    raise ValueError(f"unsupported data type: {data_type!r}")


def _looks_like_currency(sample: str) -> bool:
    if _CURRENCY_SYMBOL.search(sample):
        return True
    for sep in (",", "."):
        parts = sample.split(sep)
        if len(parts) > 1 and len(parts[1]) == 2:
            return True
    return False


def detect_type(samples: Sequence[str]) -> DataType:
    """Infer a column type from its cells (first 50 non-empty ones).

    Identifier-shaped cells (CPF) never count as numbers or dates; a column that
    is mostly identifiers is text. Otherwise the first of date / currency /
    number reaching 60% of the sample wins, text being the fallback.
    """
    valid = [s for s in samples if s is not None and str(s).strip() != ""][:DETECTION_SAMPLE_LIMIT]
    if not valid:
        return DataType.TEXT

    total = len(valid)
    id_count = sum(1 for s in valid if _ID_SHAPE.match(s))
    if id_count / total > 0.5:
        return DataType.TEXT

    date_candidates = 0
    number_candidates = 0
    currency_candidates = 0
    for sample in valid:
        if _ID_SHAPE.match(sample):
            continue
        if _DATE_SHAPE.match(sample) and parse_date(sample) is not None:
            date_candidates += 1
        if not math.isnan(parse_number(sample)):
            number_candidates += 1
            if _looks_like_currency(sample):
                currency_candidates += 1

    if date_candidates / total >= CONFIDENCE_THRESHOLD:
        return DataType.DATE
    if currency_candidates / total >= CONFIDENCE_THRESHOLD:
        return DataType.CURRENCY
    if number_candidates / total >= CONFIDENCE_THRESHOLD:
        return DataType.NUMBER
    return DataType.TEXT


def passes_filter(source_value: str | None, threshold: float | None = None) -> bool:
    """Numeric filter shared by comparison and correction.

    Keeps rows whose source value is a finite number that is > 0 (no threshold)
    or >= threshold.
    """
    if source_value is None:
        return False
    amount = parse_number(source_value)
    if not math.isfinite(amount):
        return False
    if threshold is None:
        return amount > 0
    return amount >= threshold
