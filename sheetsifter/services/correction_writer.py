from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..models.corrected_file import CorrectedFile, SheetContent, SkippedWorksheet
from ..models.selection import DataType, Selection, WorksheetData, WorksheetRef
from .duplicate_resolver import resolve_rows
from .errors import ConfigurationError
from .selection_index import WorksheetSelections, build_selection_index
from .source_map import SourceMap, build_source_map_from_index

"""Correction writer: assembles export-ready corrected worksheets.

Output per target worksheet = its header row + one resolved row per surviving key.
Corrected value cells are numeric; when the value column is declared as currency
they carry CURRENCY_FORMAT. Caller data is never mutated.
"""

__all__ = [
    "CURRENCY_FORMAT",
    "MissingColumnError",
    "CorrectedSheet",
    "CorrectionResult",
    "correct_worksheet",
    "build_corrected_files",
]

logger = logging.getLogger(__name__)

CURRENCY_FORMAT = '"R$" #,##0.00'


class MissingColumnError(Exception):
    """Target worksheet header lacks a selected key/value column."""
    pass


@dataclass(frozen=True)
class CorrectedSheet:
    content: SheetContent
    corrected_cells: int  # value cells whose amount changed
    dropped_rows: int  # data rows not carried to the output


@dataclass(frozen=True)
class CorrectionResult:
    files: list[CorrectedFile]
    skipped: list[SkippedWorksheet]
    corrected_cells: int
    dropped_rows: int = 0

    @property
    def nothing_to_do(self) -> bool:
        # dropped rows change the output as much as rewritten amounts
        return not self.files or (self.corrected_cells == 0 and self.dropped_rows == 0)


def _column_index(header: Sequence[str], column: str | int) -> int:
    if isinstance(column, int):
        if 0 <= column < len(header):
            return column
        raise MissingColumnError(f"column {column + 1} is outside the header row ({len(header)} columns)")
    wanted = column.strip()
    for i, cell in enumerate(header):
        if str(cell).strip() == wanted:
            return i
    raise MissingColumnError(f"column '{column}' not found in header row")


def correct_worksheet(
    worksheet: WorksheetData,
    key_column: str | int,
    value_column: str | int,
    source_map: SourceMap,
    value_data_type: DataType,
    threshold: float | None = None,
) -> CorrectedSheet:
    """Build the corrected copy of one target worksheet.

    Args:
        worksheet: Target worksheet, header row included
        key_column: 0-based header position, or header text (first match wins)
        value_column: Same as key_column, for the amount column
        source_map: Primary key -> value lookup
        value_data_type: Declared type of the value column; CURRENCY adds format hints
        threshold: Numeric filter, see passes_filter

    Returns:
        CorrectedSheet with the header plus one resolved row per surviving key.

    Raises:
        MissingColumnError: a column is absent from the header row.
    """
    header = worksheet.header
    key_idx = _column_index(header, key_column)
    value_idx = _column_index(header, value_column)
    data_rows = worksheet.data_rows

    resolved = resolve_rows(data_rows, key_idx, value_idx, source_map, threshold)

    rows: list[tuple] = [tuple(header)]
    number_formats: dict[tuple[int, int], str] = {}
    for out_row, item in enumerate(resolved, start=1):
        rows.append(item.cells)
        if item.corrected and value_data_type is DataType.CURRENCY:
            number_formats[(out_row, value_idx)] = CURRENCY_FORMAT

    changed = sum(1 for item in resolved if item.changed)
    filled = sum(1 for row in data_rows if any(str(c).strip() for c in row))
    logger.debug(
        "worksheet=%s rows_in=%d rows_out=%d changed=%d",
        worksheet.ref,
        len(data_rows),
        len(resolved),
        changed,
    )
    return CorrectedSheet(
        content=SheetContent(name=worksheet.name, rows=tuple(rows), number_formats=number_formats),
        corrected_cells=changed,
        dropped_rows=max(filled - len(resolved), 0),
    )


def _selected_column(sel: Selection) -> str | int:
    return sel.column_index if sel.column_index is not None else sel.column_name


def _correct_target(
    ws: WorksheetSelections, worksheet: WorksheetData, source_map: SourceMap, threshold: float | None
) -> CorrectedSheet:
    key_sel: Selection = ws.keys[0]
    value_sel: Selection = ws.values[0]
    if len(ws.values) > 1:
        logger.debug("worksheet %s: correcting first value column '%s' only", ws.ref, value_sel.column_name)
    return correct_worksheet(
        worksheet,
        _selected_column(key_sel),
        _selected_column(value_sel),
        source_map,
        value_sel.data_type,
        threshold,
    )


def build_corrected_files(
    worksheets: Sequence[WorksheetData],
    selections: Iterable[Selection],
    primary: WorksheetRef,
    threshold: float | None = None,
) -> CorrectionResult:
    """Produce corrected worksheets grouped per file.

    Args:
        worksheets: Loaded worksheet data; targets without data are skipped
        selections: Every selection of the run, primary included
        primary: Worksheet that supplies the correct amounts
        threshold: Numeric filter, see passes_filter

    Returns:
        CorrectionResult; worksheets with no surviving rows are left out of `files`.

    Raises:
        ConfigurationError: primary lacks key/value, or no eligible target worksheet.
    """
    index = build_selection_index(selections)
    source_map = build_source_map_from_index(index, primary)
    targets = index.eligible_targets(primary)
    if not targets:
        raise ConfigurationError(
            "at least one worksheet besides the primary needs a key and a value column"
        )

    by_ref = {ws.ref: ws for ws in worksheets}
    per_file: dict[str, list[SheetContent]] = {}
    skipped: list[SkippedWorksheet] = []
    corrected_cells = 0
    dropped_rows = 0
    for ws in targets:
        worksheet = by_ref.get(ws.ref)
        if worksheet is None:
            reason = "worksheet data not provided"
        else:
            try:
                sheet = _correct_target(ws, worksheet, source_map, threshold)
            except MissingColumnError as e:
                reason = str(e)
            else:
                corrected_cells += sheet.corrected_cells
                dropped_rows += sheet.dropped_rows
                if sheet.content.data_row_count:
                    per_file.setdefault(ws.ref.file_name, []).append(sheet.content)
                continue
        logger.warning("skipping worksheet %s: %s", ws.ref, reason)
        skipped.append(SkippedWorksheet(ws.ref.file_name, ws.ref.worksheet_name, reason))

    files = [CorrectedFile(file_name=name, sheets=tuple(sheets)) for name, sheets in per_file.items()]
    return CorrectionResult(files=files, skipped=skipped, corrected_cells=corrected_cells, dropped_rows=dropped_rows)
