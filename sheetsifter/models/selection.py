from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Selection domain models for spreadsheet reconciliation.

A Selection is a spreadsheet column tagged with a data type and a semantic role.
Selections are grouped logically by (file_name, worksheet_name); the column cells
(`full_data`) are raw strings aligned by row index within their worksheet.
"""

__all__ = [
    "DataType",
    "Role",
    "Column",
    "Selection",
    "WorksheetRef",
    "WorksheetData",
]

SAMPLE_SIZE = 3


class DataType(Enum):
    """Declared (or detected) type of a column's cells."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"


class Role(Enum):
    """Semantic role of a selected column.

    - KEY: join key (person / account name)
    - VALUE: comparable amount
    - IDENTIFIER: document number carried into payment sheets (legacy label "cpf")
    - NONE: selected but not taking part in reconciliation
    """
    KEY = "key"
    VALUE = "value"
    IDENTIFIER = "identifier"
    NONE = "none"

    @classmethod
    def _missing_(cls, value: object) -> Role | None:
        if isinstance(value, str) and value.strip().lower() == "cpf":
            return cls.IDENTIFIER
        return None


@dataclass(frozen=True)
class Column:
    """A worksheet column after header extraction."""
    name: str
    full_data: tuple[str, ...]  # one cell per data row, "" for missing
    detected_type: DataType = DataType.TEXT
    index: int | None = None  # 0-based position in the header row


@dataclass(frozen=True)
class WorksheetRef:
    """(file, worksheet) pair; used to designate the primary worksheet."""
    file_name: str
    worksheet_name: str

    def __str__(self) -> str:
        return f"{self.file_name}/{self.worksheet_name}"


@dataclass(frozen=True)
class Selection:
    """A worksheet column tagged with a data type and a role."""
    file_name: str
    worksheet_name: str
    column_name: str
    data_type: DataType
    role: Role
    full_data: tuple[str, ...] = field(default=(), repr=False)
    column_index: int | None = None  # 0-based header position; None -> look up by name

    @property
    def ref(self) -> WorksheetRef:
        return WorksheetRef(self.file_name, self.worksheet_name)

    @property
    def key(self) -> str:
        """Stable identifier used by reports and validation requests."""
        return f"{self.file_name}-{self.worksheet_name}-{self.column_name}"

    @property
    def sample_data(self) -> list[str]:
        return [v for v in self.full_data[:SAMPLE_SIZE] if v.strip() != ""]


@dataclass(frozen=True)
class WorksheetData:
    """Raw worksheet matrix as handed over by the spreadsheet reader.

    `header_row` is 1-based (row 2 by default: first row is a title row).
    """
    file_name: str
    name: str
    data: tuple[tuple[str, ...], ...]
    header_row: int = 2

    @property
    def ref(self) -> WorksheetRef:
        return WorksheetRef(self.file_name, self.name)

    @property
    def header(self) -> tuple[str, ...]:
        idx = self.header_row - 1
        if idx < 0 or idx >= len(self.data):
            return ()
        return self.data[idx]

    @property
    def data_rows(self) -> tuple[tuple[str, ...], ...]:
        if self.header_row < 1:
            return ()
        return self.data[self.header_row:]
