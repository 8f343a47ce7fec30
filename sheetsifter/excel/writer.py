from __future__ import annotations

from collections.abc import Sequence
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook

from ..models.corrected_file import SheetContent

"""Spreadsheet writer: SheetContent row matrices -> .xlsx bytes.

Per-cell number formats are applied as openpyxl `number_format` strings.
Styles, formulas and merged cells of the source workbook are not carried over.
"""

__all__ = [
    "MAX_SHEET_TITLE",
    "write_workbook",
    "save_workbook",
]

MAX_SHEET_TITLE = 31  # Excel limit


def _safe_title(name: str, used: set[str]) -> str:
    base = "".join("_" if ch in '[]:*?/\\' else ch for ch in name)[:MAX_SHEET_TITLE] or "Sheet"
    title = base
    n = 1
    while title in used:
        n += 1
        suffix = f" ({n})"
        title = base[: MAX_SHEET_TITLE - len(suffix)] + suffix
    used.add(title)
    return title


def write_workbook(sheets: Sequence[SheetContent]) -> bytes:
    if not sheets:
        raise ValueError("at least one sheet is required")
    wb = Workbook()
    wb.remove(wb.active)
    used: set[str] = set()
    for sheet in sheets:
        ws = wb.create_sheet(title=_safe_title(sheet.name, used))
        for r, row in enumerate(sheet.rows):
            for c, value in enumerate(row):
                cell = ws.cell(row=r + 1, column=c + 1, value=value)
                fmt = sheet.number_formats.get((r, c))
                if fmt is not None:
                    cell.number_format = fmt
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def save_workbook(path: Path, sheets: Sequence[SheetContent]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(write_workbook(sheets))
    return path
