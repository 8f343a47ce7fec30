from __future__ import annotations

from dataclasses import dataclass, field

"""Export-ready tabular payloads.

SheetContent is the opaque row matrix handed to the spreadsheet writer; numeric
cells may carry a display format keyed by (row, col), both 0-based, row 0 being
the header row.
"""

__all__ = [
    "CellValue",
    "SheetContent",
    "CorrectedFile",
    "SkippedWorksheet",
]

CellValue = str | float


@dataclass(frozen=True)
class SheetContent:
    name: str
    rows: tuple[tuple[CellValue, ...], ...]
    number_formats: dict[tuple[int, int], str] = field(default_factory=dict)

    @property
    def data_row_count(self) -> int:
        return max(len(self.rows) - 1, 0)


@dataclass(frozen=True)
class CorrectedFile:
    """Corrected worksheets of one source file."""
    file_name: str
    sheets: tuple[SheetContent, ...]


@dataclass(frozen=True)
class SkippedWorksheet:
    """Worksheet left out of a run with a warning (sibling worksheets still processed)."""
    file_name: str
    worksheet_name: str
    reason: str
