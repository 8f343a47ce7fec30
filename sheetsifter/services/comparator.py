from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..models.corrected_file import SkippedWorksheet
from ..models.report import ComparisonRow, Report, ReportSummary
from ..models.selection import Selection, WorksheetRef
from .errors import AlignmentError, ConfigurationError
from .normalizer import parse_number, passes_filter
from .selection_index import SelectionIndex, WorksheetSelections, build_selection_index
from .source_map import SourceMap, build_source_map_from_index, normalize_key

"""Comparator: joins every non-primary worksheet against the primary source map.

For each target value column one Report is produced. Rows whose source value does
not pass the numeric filter are dropped from the results entirely; the duplicate
key list is always computed over the unfiltered key column.
"""

__all__ = [
    "ComparisonResult",
    "find_duplicate_keys",
    "compare_column",
    "compare_worksheets",
    "compare_selections",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonResult:
    reports: list[Report]
    skipped: list[SkippedWorksheet]


def find_duplicate_keys(keys: Iterable[str]) -> tuple[str, ...]:
    """Non-empty keys occurring more than once, in first-appearance order."""
    counts = Counter(k for k in (normalize_key(raw) for raw in keys) if k)
    return tuple(k for k, n in counts.items() if n > 1)


def _cell(column: Sequence[str], i: int) -> str:
    return column[i] if i < len(column) else ""


def compare_column(
    key_selection: Selection,
    value_selection: Selection,
    source_map: SourceMap,
    threshold: float | None = None,
) -> Report:
    """Compare one target value column against the primary source map.

    Args:
        key_selection: Key column of the target worksheet
        value_selection: Value column to check
        source_map: Primary key -> value lookup
        threshold: None keeps rows whose source value is > 0; otherwise value >= threshold

    Returns:
        Report with one row per kept target row. Its duplicate key list covers
        the whole key column, filtered rows included.
    """
    duplicate_key_list = find_duplicate_keys(key_selection.full_data)

    results: list[ComparisonRow] = []
    for row_index, value in enumerate(value_selection.full_data):
        target_key = normalize_key(_cell(key_selection.full_data, row_index))
        source_value = source_map.get(target_key) if target_key else None
        if not passes_filter(source_value, threshold):
            continue
        is_valid = (
            bool(target_key)
            and source_value is not None
            and parse_number(source_value) == parse_number(value)
        )
        results.append(
            ComparisonRow(
                row_index=row_index,
                key_value=target_key,
                value=value,
                source_value=source_value,
                is_valid=is_valid,
            )
        )

    rows = tuple(results)
    return Report(
        key=value_selection.key,
        file_name=value_selection.file_name,
        worksheet_name=value_selection.worksheet_name,
        column_name=value_selection.column_name,
        key_column_name=key_selection.column_name,
        source_worksheet_name=source_map.ref.worksheet_name,
        source_column_name=source_map.value_column_name,
        source_key_column_name=source_map.key_column_name,
        value_data_type=value_selection.data_type,
        source_value_data_type=source_map.value_data_type,
        results=rows,
        duplicate_key_list=duplicate_key_list,
        summary=ReportSummary.from_rows(rows, duplicate_key_list),
    )


def _compare_target(
    ws: WorksheetSelections, source_map: SourceMap, threshold: float | None
) -> list[Report]:
    ws.check_alignment()
    key_selection = ws.keys[0]
    if len(ws.keys) > 1:
        logger.debug("worksheet %s has %d key columns; using '%s'", ws.ref, len(ws.keys), key_selection.column_name)
    return [compare_column(key_selection, value_sel, source_map, threshold) for value_sel in ws.values]


def compare_worksheets(
    index: SelectionIndex,
    primary: WorksheetRef,
    threshold: float | None = None,
) -> ComparisonResult:
    """Build the source map and compare every comparison-eligible target worksheet.

    Args:
        index: Selections grouped by worksheet
        primary: Worksheet that supplies the correct amounts
        threshold: Numeric filter, see passes_filter

    Returns:
        ComparisonResult with the reports plus the worksheets skipped for
        misaligned key/value columns.

    Raises:
        ConfigurationError: primary worksheet lacks its key/value selection, or no
            other worksheet has both a key and a value selection.
    """
    source_map = build_source_map_from_index(index, primary)
    targets = index.eligible_targets(primary)
    if not targets:
        raise ConfigurationError(
            "at least one worksheet besides the primary needs a key and a value column"
        )

    reports: list[Report] = []
    skipped: list[SkippedWorksheet] = []
    for ws in targets:
        try:
            reports.extend(_compare_target(ws, source_map, threshold))
        except AlignmentError as e:
            logger.warning("skipping worksheet %s: %s", ws.ref, e)
            skipped.append(SkippedWorksheet(ws.ref.file_name, ws.ref.worksheet_name, str(e)))
    return ComparisonResult(reports=reports, skipped=skipped)


def compare_selections(
    selections: Iterable[Selection],
    primary: WorksheetRef,
    threshold: float | None = None,
) -> ComparisonResult:
    """Convenience entry point over a flat selection list."""
    return compare_worksheets(build_selection_index(selections), primary, threshold)
