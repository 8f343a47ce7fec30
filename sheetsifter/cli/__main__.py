from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from sheetsifter.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from sheetsifter.logging.init import enable_debug, log_summary, setup_logging
from sheetsifter.services.errors import ConfigurationError
from sheetsifter.services.orchestrator import MODES, ProcessingError, run
from sheetsifter.services.payment_sheet import PaymentSheetError
from sheetsifter.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (SHEETSIFTER_CONFIG may point to the config file)
- Load and validate the YAML config
- Run the requested mode and print a single SUMMARY line
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2  # finished, but some worksheets were skipped

CONFIG_ENV_VAR = "SHEETSIFTER_CONFIG"


def _load_env_file(path: Path) -> None:
    """Load .env without overriding variables already set in the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _threshold(raw: str) -> float:
    try:
        return float(raw.replace(",", "."))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid threshold: {raw!r}") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetsifter", description="Spreadsheet value reconciliation")
    p.add_argument("--mode", choices=MODES, default="report", help="Operation to run (default: report)")
    p.add_argument("--threshold", type=_threshold, default=None,
                   help="Keep only rows whose primary value is >= THRESHOLD (default: > 0)")
    p.add_argument("--config", type=Path, default=None, help="Config file (default: config/reconcile.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true",
                   help="Print worksheet headers and detected column types, then exit")
    return p.parse_args(argv)


def _inspect_data(cfg) -> int:
    from sheetsifter.excel.reader import WorkbookReadError, extract_columns, read_workbook

    directory = Path(cfg.source_directory)
    if not directory.exists():
        print(f"inspect: directory not found: {directory}")
        return EXIT_FATAL
    for file_cfg in cfg.files:
        path = directory / file_cfg.file
        print(f"FILE: {file_cfg.file}")
        header_rows = {ws.name: ws.header_row for ws in file_cfg.worksheets}
        try:
            sheets = read_workbook(path, header_rows=header_rows)
        except WorkbookReadError as e:
            print(f"  read_error: {e}")
            continue
        for name, sheet in sheets.items():
            columns = extract_columns(sheet)
            described = [f"{c.name}:{c.detected_type.value}" for c in columns]
            print(f"  SHEET: {name} header_row={sheet.header_row} rows={len(sheet.data_rows)} cols={described}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    config_path = args.config or Path(os.getenv(CONFIG_ENV_VAR, str(DEFAULT_CONFIG_PATH)))
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Processing files from: {cfg.source_directory} mode={args.mode}")
    try:
        result = run(cfg, mode=args.mode, threshold=args.threshold)
    except (ProcessingError, ConfigurationError, PaymentSheetError) as e:
        logger.error(f"{args.mode}: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.skipped_worksheets > 0:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
