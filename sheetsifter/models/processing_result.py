from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Run result model for the reconciliation CLI.

Aggregates the metrics printed on the SUMMARY line and the artifacts written by
a single run.
"""


@dataclass(frozen=True)
class RunResult:
    """Aggregated results and summary output for one reconciliation run."""
    mode: str  # report / correct / payment / payment-update
    worksheets: int  # target worksheets considered
    reports: int  # report mode: compared columns
    total_rows: int  # rows surviving the filter (report) or written (other modes)
    valid_rows: int
    invalid_rows: int
    duplicate_keys: int
    corrected_cells: int  # correct mode: cells whose numeric value changed
    skipped_worksheets: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    outputs: list[Path] | None = None  # files written
    nothing_to_do: bool = False
