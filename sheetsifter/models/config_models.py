from __future__ import annotations

from dataclasses import dataclass, field

from .selection import DataType, Role, WorksheetRef

"""Config dataclasses for the reconciliation tool.

These are the typed counterparts of config/reconcile.yml, produced by
sheetsifter.config.loader after schema validation.
"""

DEFAULT_HEADER_ROW = 2
INCLUDE_ZERO_PAYMENTS = True  # payment generator keeps value >= 0 (False: value > 0)
UPDATE_MIN_VALUE = 10.0  # payment updater appends entries with value >= this


@dataclass(frozen=True)
class SelectionConfig:
    """One tagged column of a worksheet."""
    column: str
    role: Role
    data_type: DataType | None = None  # None -> use detected type


@dataclass(frozen=True)
class WorksheetConfig:
    name: str
    selections: tuple[SelectionConfig, ...]
    header_row: int = DEFAULT_HEADER_ROW
    primary: bool = False


@dataclass(frozen=True)
class FileConfig:
    file: str  # file name relative to source_directory
    worksheets: tuple[WorksheetConfig, ...]


@dataclass(frozen=True)
class PaymentConfig:
    include_zero: bool = INCLUDE_ZERO_PAYMENTS
    update_min_value: float = UPDATE_MIN_VALUE
    existing_sheet: str | None = None  # payment-update mode input


@dataclass(frozen=True)
class ReconcileConfig:
    """Root configuration object for a reconciliation run."""
    source_directory: str
    output_directory: str
    files: tuple[FileConfig, ...]
    filter_threshold: float | None = None  # None -> keep source values > 0
    payment: PaymentConfig = field(default_factory=PaymentConfig)

    @property
    def primary(self) -> WorksheetRef:
        for f in self.files:
            for ws in f.worksheets:
                if ws.primary:
                    return WorksheetRef(f.file, ws.name)
        raise LookupError("no primary worksheet configured")
