from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.config_models import DEFAULT_HEADER_ROW
from ..models.selection import Column, WorksheetData
from ..services.normalizer import DETECTION_SAMPLE_LIMIT, detect_type

"""Spreadsheet reader: workbook -> per-sheet matrix of raw cell strings.

The header row is 1-based and configurable per worksheet (row 2 by default, the
first row usually being a title). Every cell is stringified; missing cells are "".
"""

__all__ = [
    "WorkbookReadError",
    "EXCEL_SUFFIXES",
    "read_workbook",
    "read_matrix",
    "extract_columns",
]

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class WorkbookReadError(Exception):
    """Raised when a spreadsheet file cannot be read."""


def _to_cell(val: Any) -> str:
    if val is None:
        return ""
    try:
        if pd.isna(val):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if isinstance(val, datetime):
        if (val.hour, val.minute, val.second, val.microsecond) == (0, 0, 0, 0):
            return val.date().isoformat()
        return val.isoformat()
    return str(val)


def _frame_to_matrix(df: pd.DataFrame) -> tuple[tuple[str, ...], ...]:
    return tuple(tuple(_to_cell(v) for v in row) for row in df.itertuples(index=False, name=None))


def read_matrix(path: Path, target_sheets: Iterable[str] | None = None) -> dict[str, tuple[tuple[str, ...], ...]]:
    """Read raw, headerless sheet matrices keyed by sheet name."""
    if not path.exists():
        raise WorkbookReadError(f"file not found: {path}")
    wanted = set(target_sheets) if target_sheets is not None else None
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=object, keep_default_na=False)
            return {path.stem: _frame_to_matrix(df)}
        if suffix not in EXCEL_SUFFIXES:
            raise WorkbookReadError(f"unsupported spreadsheet format: {path.name}")
        matrices: dict[str, tuple[tuple[str, ...], ...]] = {}
        with pd.ExcelFile(path) as xls:
            for name in xls.sheet_names:
                if wanted is not None and str(name) not in wanted:
                    continue
                df = xls.parse(name, header=None, dtype=object)
                matrices[str(name)] = _frame_to_matrix(df)
        return matrices
    except WorkbookReadError:
        raise
    except Exception as e:
        raise WorkbookReadError(f"could not read {path.name}: {e}") from e


def read_workbook(
    path: Path,
    header_rows: Mapping[str, int] | None = None,
    default_header_row: int = DEFAULT_HEADER_ROW,
    target_sheets: Iterable[str] | None = None,
) -> dict[str, WorksheetData]:
    """Read a workbook into WorksheetData keyed by sheet name."""
    header_rows = header_rows or {}
    return {
        name: WorksheetData(
            file_name=path.name,
            name=name,
            data=matrix,
            header_row=header_rows.get(name, default_header_row),
        )
        for name, matrix in read_matrix(path, target_sheets).items()
    }


def extract_columns(worksheet: WorksheetData) -> list[Column]:
    """Split a worksheet into columns below its header row, with detected types."""
    header = worksheet.header
    if not header:
        return []
    rows = worksheet.data_rows
    columns: list[Column] = []
    for index, name in enumerate(header):
        full_data = tuple(row[index] if index < len(row) else "" for row in rows)
        samples = [v for v in full_data if v.strip() != ""][:DETECTION_SAMPLE_LIMIT]
        columns.append(
            Column(
                name=name.strip() or f"Column {index + 1}",
                full_data=full_data,
                detected_type=detect_type(samples),
                index=index,
            )
        )
    return columns
