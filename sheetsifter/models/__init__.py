"""Domain models for the spreadsheet reconciliation tool.

This package contains the frozen dataclasses and enums shared by the engine
services, the spreadsheet adapter and the CLI.
"""

from .config_models import FileConfig, PaymentConfig, ReconcileConfig, SelectionConfig, WorksheetConfig
from .corrected_file import CellValue, CorrectedFile, SheetContent, SkippedWorksheet
from .error_record import ErrorRecord
from .processing_result import RunResult
from .report import ComparisonRow, Report, ReportSummary
from .selection import Column, DataType, Role, Selection, WorksheetData, WorksheetRef

__all__ = [
    # Configuration models
    "FileConfig",
    "PaymentConfig",
    "ReconcileConfig",
    "SelectionConfig",
    "WorksheetConfig",
    # Input models
    "Column",
    "DataType",
    "Role",
    "Selection",
    "WorksheetData",
    "WorksheetRef",
    # Output models
    "CellValue",
    "ComparisonRow",
    "CorrectedFile",
    "Report",
    "ReportSummary",
    "SheetContent",
    "SkippedWorksheet",
    "ErrorRecord",
    "RunResult",
]
