from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .selection import DataType

"""Report models for the reconciliation engine.

One Report is produced per compared target value column. `to_dict()` renders the
JSON contract consumed by callers (camelCase keys).
"""

__all__ = [
    "ComparisonRow",
    "ReportSummary",
    "Report",
]


@dataclass(frozen=True)
class ComparisonRow:
    """Verdict for one target row that survived filtering."""
    row_index: int  # 0-based data row index within the target worksheet
    key_value: str
    value: str
    source_value: str | None  # None when the key is absent from the source map
    is_valid: bool

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "rowIndex": self.row_index,
            "keyValue": self.key_value,
            "value": self.value,
        }
        if self.source_value is not None:
            out["sourceValue"] = self.source_value
        out["isValid"] = self.is_valid
        return out


@dataclass(frozen=True)
class ReportSummary:
    total_rows: int
    valid_rows: int
    invalid_rows: int
    duplicate_keys: int

    @staticmethod
    def from_rows(results: tuple[ComparisonRow, ...], duplicate_key_list: tuple[str, ...]) -> ReportSummary:
        valid = sum(1 for r in results if r.is_valid)
        return ReportSummary(
            total_rows=len(results),
            valid_rows=valid,
            invalid_rows=len(results) - valid,
            duplicate_keys=len(duplicate_key_list),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "duplicateKeys": self.duplicate_keys,
        }


@dataclass(frozen=True)
class Report:
    """Comparison report for a single target column.

    Invariants:
        summary.valid_rows + summary.invalid_rows == summary.total_rows == len(results)
        summary.duplicate_keys == len(duplicate_key_list)
    """
    key: str
    file_name: str
    worksheet_name: str
    column_name: str
    key_column_name: str
    source_worksheet_name: str
    source_column_name: str
    source_key_column_name: str
    value_data_type: DataType
    source_value_data_type: DataType
    results: tuple[ComparisonRow, ...]
    duplicate_key_list: tuple[str, ...]
    summary: ReportSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "fileName": self.file_name,
            "columnName": self.column_name,
            "worksheetName": self.worksheet_name,
            "keyColumnName": self.key_column_name,
            "sourceWorksheetName": self.source_worksheet_name,
            "sourceColumnName": self.source_column_name,
            "sourceKeyColumnName": self.source_key_column_name,
            "valueDataType": self.value_data_type.value,
            "sourceValueDataType": self.source_value_data_type.value,
            "results": [r.to_dict() for r in self.results],
            "duplicateKeyList": list(self.duplicate_key_list),
            "summary": self.summary.to_dict(),
        }
