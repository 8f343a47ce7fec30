from __future__ import annotations

from ..models.processing_result import RunResult

"""SUMMARY line rendering.

Format:
SUMMARY mode={mode} worksheets={n} reports={n} rows={n} valid={n} invalid={n}
duplicates={n} corrected={n} skipped={n} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a finished run.

    >>> from datetime import datetime, timezone
    >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    >>> r = RunResult(mode="report", worksheets=2, reports=2, total_rows=10, valid_rows=8,
    ...               invalid_rows=2, duplicate_keys=1, corrected_cells=0, skipped_worksheets=0,
    ...               start_time=t, end_time=t, elapsed_seconds=2.0)
    >>> render_summary_line(r)
    'SUMMARY mode=report worksheets=2 reports=2 rows=10 valid=8 invalid=2 duplicates=1 corrected=0 skipped=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY mode={result.mode} "
        f"worksheets={result.worksheets} "
        f"reports={result.reports} "
        f"rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"invalid={result.invalid_rows} "
        f"duplicates={result.duplicate_keys} "
        f"corrected={result.corrected_cells} "
        f"skipped={result.skipped_worksheets} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
