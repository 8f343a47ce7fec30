from __future__ import annotations

import json
import logging
from datetime import UTC, date, datetime
from pathlib import Path

from ..excel.reader import WorkbookReadError, extract_columns, read_matrix, read_workbook
from ..excel.writer import save_workbook
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import ReconcileConfig, WorksheetConfig
from ..models.corrected_file import SkippedWorksheet
from ..models.processing_result import RunResult
from ..models.selection import Column, Selection, WorksheetData, WorksheetRef
from .comparator import compare_worksheets
from .correction_writer import build_corrected_files
from .payment_sheet import collect_payment_entries, generate_payment_sheet, update_payment_sheet
from .progress import ProgressTracker
from .selection_index import build_selection_index
from .type_validation import ValidationRequest, validate_selections

"""Run orchestration: config -> workbooks -> selections -> engine -> output files.

Modes:
- report: comparison reports written to report.json
- correct: one <stem>_corrected.xlsx per target file
- payment: payment sheet named after the current month
- payment-update: existing payment sheet merged with new primary entries
"""

logger = logging.getLogger(__name__)

MODES = ("report", "correct", "payment", "payment-update")
REPORT_FILE_NAME = "report.json"


class ProcessingError(Exception):
    """Fatal error that prevents the run (unreadable primary workbook, bad mode...)."""
    pass


def _skip(
    skipped: list[SkippedWorksheet], error_log: ErrorLogBuffer, ref: WorksheetRef, error_type: str, reason: str
) -> None:
    logger.warning("skipping worksheet %s: %s", ref, reason)
    skipped.append(SkippedWorksheet(ref.file_name, ref.worksheet_name, reason))
    error_log.append(ErrorRecord.create(ref.file_name, ref.worksheet_name, -1, error_type, reason))


def load_worksheets(
    config: ReconcileConfig, error_log: ErrorLogBuffer
) -> tuple[dict[WorksheetRef, WorksheetData], list[SkippedWorksheet]]:
    """Read every configured worksheet. Problems with the primary are fatal."""
    primary = config.primary
    source_dir = Path(config.source_directory)
    if not source_dir.is_dir():
        raise ProcessingError(f"directory not found: {source_dir}")

    loaded: dict[WorksheetRef, WorksheetData] = {}
    skipped: list[SkippedWorksheet] = []
    with ProgressTracker(len(config.files)) as progress:
        for file_cfg in config.files:
            path = source_dir / file_cfg.file
            progress.start_file(path)
            header_rows = {ws.name: ws.header_row for ws in file_cfg.worksheets}
            try:
                sheets = read_workbook(path, header_rows=header_rows, target_sheets=header_rows.keys())
            except WorkbookReadError as e:
                if primary.file_name == file_cfg.file:
                    raise ProcessingError(f"primary workbook unreadable: {e}") from e
                for ws in file_cfg.worksheets:
                    _skip(skipped, error_log, WorksheetRef(file_cfg.file, ws.name), "WORKBOOK_READ_ERROR", str(e))
                progress.finish_file(success=False)
                continue

            for ws in file_cfg.worksheets:
                ref = WorksheetRef(file_cfg.file, ws.name)
                sheet = sheets.get(ws.name)
                if sheet is None:
                    if ref == primary:
                        raise ProcessingError(f"primary worksheet not found: {ref}")
                    _skip(skipped, error_log, ref, "WORKSHEET_NOT_FOUND", "worksheet not found in workbook")
                    continue
                # Keep the configured file name even when the path differs (e.g. nested dirs)
                loaded[ref] = WorksheetData(
                    file_name=file_cfg.file, name=ws.name, data=sheet.data, header_row=ws.header_row
                )
            progress.finish_file(success=True, worksheets=len(loaded))
    return loaded, skipped


def _worksheet_selections(ref: WorksheetRef, ws_cfg: WorksheetConfig, data: WorksheetData) -> list[Selection]:
    # a repeated header name resolves to its first column, in every mode
    columns: dict[str, Column] = {}
    repeated: set[str] = set()
    for c in extract_columns(data):
        if c.name in columns:
            repeated.add(c.name)
        columns.setdefault(c.name, c)

    selections: list[Selection] = []
    for sel_cfg in ws_cfg.selections:
        column = columns.get(sel_cfg.column.strip())
        if column is None:
            raise KeyError(sel_cfg.column)
        if column.name in repeated:
            logger.warning(
                "worksheet %s: header '%s' repeats; using column %d", ref, column.name, (column.index or 0) + 1
            )
        selections.append(
            Selection(
                file_name=ref.file_name,
                worksheet_name=ref.worksheet_name,
                column_name=column.name,
                data_type=sel_cfg.data_type or column.detected_type,
                role=sel_cfg.role,
                full_data=column.full_data,
                column_index=column.index,
            )
        )
    return selections


def build_selections(
    config: ReconcileConfig,
    worksheets: dict[WorksheetRef, WorksheetData],
    error_log: ErrorLogBuffer,
) -> tuple[list[Selection], list[SkippedWorksheet]]:
    """Turn configured column names into Selections carrying their full column data."""
    primary = config.primary
    selections: list[Selection] = []
    skipped: list[SkippedWorksheet] = []
    for file_cfg in config.files:
        for ws_cfg in file_cfg.worksheets:
            ref = WorksheetRef(file_cfg.file, ws_cfg.name)
            data = worksheets.get(ref)
            if data is None:
                continue
            try:
                selections.extend(_worksheet_selections(ref, ws_cfg, data))
            except KeyError as e:
                reason = f"column {e} not found in header row {ws_cfg.header_row}"
                if ref == primary:
                    raise ProcessingError(f"primary worksheet {ref}: {reason}") from e
                _skip(skipped, error_log, ref, "MISSING_COLUMN", reason)
    return selections, skipped


def _warn_type_mismatches(selections: list[Selection]) -> None:
    """Advisory only: a declared type that does not fit its sample cells is logged, never fatal."""
    requests = [ValidationRequest(s.key, s) for s in selections]
    for response in validate_selections(requests):
        if not response.is_valid:
            logger.warning("selection %s: %s", response.key, response.reason)


def _write_report(output_dir: Path, reports: list) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / REPORT_FILE_NAME
    payload = [r.to_dict() for r in reports]
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def _resolve_existing_sheet(config: ReconcileConfig) -> Path:
    raw = config.payment.existing_sheet
    if not raw:
        raise ProcessingError("payment.existing_sheet is required for payment-update mode")
    path = Path(raw)
    if not path.exists() and not path.is_absolute():
        candidate = Path(config.source_directory) / raw
        if candidate.exists():
            return candidate
    return path


def _trim_empty_rows(rows: tuple[tuple[str, ...], ...]) -> list[tuple[str, ...]]:
    return [r for r in rows if any(c.strip() for c in r)]


def run(
    config: ReconcileConfig,
    mode: str = "report",
    threshold: float | None = None,
    today: date | None = None,
) -> RunResult:
    """Execute one reconciliation run.

    Args:
        config: Loaded configuration
        mode: One of MODES
        threshold: Numeric filter; falls back to config.filter_threshold
        today: Date used to name payment sheets (defaults to today)

    Raises:
        ProcessingError: unreadable primary workbook/worksheet, unknown mode
        ConfigurationError: selections cannot drive a reconciliation
        PaymentSheetError: payment-update input rejected
    """
    if mode not in MODES:
        raise ProcessingError(f"unknown mode: {mode}")
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer(started_at=start_time)
    threshold = threshold if threshold is not None else config.filter_threshold
    primary = config.primary
    output_dir = Path(config.output_directory)

    worksheets, skipped = load_worksheets(config, error_log)
    selections, skipped_cols = build_selections(config, worksheets, error_log)
    skipped.extend(skipped_cols)
    _warn_type_mismatches(selections)
    index = build_selection_index(selections)

    targets = sum(1 for f in config.files for ws in f.worksheets if WorksheetRef(f.file, ws.name) != primary)
    counts = dict(reports=0, total_rows=0, valid_rows=0, invalid_rows=0, duplicate_keys=0, corrected_cells=0)
    outputs: list[Path] = []
    nothing_to_do = False

    if mode == "report":
        comparison = compare_worksheets(index, primary, threshold)
        for s in comparison.skipped:
            error_log.append(ErrorRecord.create(s.file_name, s.worksheet_name, -1, "MISALIGNED_COLUMNS", s.reason))
        skipped.extend(comparison.skipped)
        for report in comparison.reports:
            counts["reports"] += 1
            counts["total_rows"] += report.summary.total_rows
            counts["valid_rows"] += report.summary.valid_rows
            counts["invalid_rows"] += report.summary.invalid_rows
            counts["duplicate_keys"] += report.summary.duplicate_keys
        outputs.append(_write_report(output_dir, comparison.reports))
        logger.info("report written: %s (%d column(s))", outputs[-1], len(comparison.reports))

    elif mode == "correct":
        correction = build_corrected_files(list(worksheets.values()), selections, primary, threshold)
        for s in correction.skipped:
            error_log.append(ErrorRecord.create(s.file_name, s.worksheet_name, -1, "MISSING_COLUMN", s.reason))
        skipped.extend(correction.skipped)
        counts["corrected_cells"] = correction.corrected_cells
        if correction.nothing_to_do:
            nothing_to_do = True
            logger.info("nothing to correct: every kept row already matches the primary worksheet")
        else:
            for corrected in correction.files:
                counts["total_rows"] += sum(s.data_row_count for s in corrected.sheets)
                path = output_dir / f"{Path(corrected.file_name).stem}_corrected.xlsx"
                outputs.append(save_workbook(path, corrected.sheets))
                logger.info("corrected file written: %s", path)

    elif mode == "payment":
        entries = collect_payment_entries(index, primary)
        sheet = generate_payment_sheet(entries, include_zero=config.payment.include_zero, today=today)
        counts["total_rows"] = sheet.data_row_count
        if sheet.data_row_count == 0:
            nothing_to_do = True
            logger.info("nothing to pay: no primary row has a payable value")
        else:
            outputs.append(save_workbook(output_dir / f"{sheet.name}.xlsx", [sheet]))
            logger.info("payment sheet written: %s (%d row(s))", outputs[-1], sheet.data_row_count)

    else:  # payment-update
        existing_path = _resolve_existing_sheet(config)
        try:
            matrices = read_matrix(existing_path)
        except WorkbookReadError as e:
            raise ProcessingError(f"existing payment sheet unreadable: {e}") from e
        sheet_name, matrix = next(iter(matrices.items()), (existing_path.stem, ()))
        entries = collect_payment_entries(index, primary)
        before = len(_trim_empty_rows(matrix))
        sheet = update_payment_sheet(
            _trim_empty_rows(matrix), entries, min_value=config.payment.update_min_value, sheet_name=sheet_name
        )
        counts["total_rows"] = len(sheet.rows) - before
        outputs.append(save_workbook(output_dir / f"{existing_path.stem}_updated.xlsx", [sheet]))
        logger.info("payment sheet updated: %s", outputs[-1])

    try:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info("warnings logged to %s", log_path)
    except OSError as e:
        logger.error("could not write error log: %s", e)

    end_time = datetime.now(UTC)
    return RunResult(
        mode=mode,
        worksheets=targets,
        skipped_worksheets=len(skipped),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        outputs=outputs,
        nothing_to_do=nothing_to_do,
        **counts,
    )
