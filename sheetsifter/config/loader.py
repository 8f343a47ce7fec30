from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match

from ..models.config_models import (
    DEFAULT_HEADER_ROW,
    INCLUDE_ZERO_PAYMENTS,
    UPDATE_MIN_VALUE,
    FileConfig,
    PaymentConfig,
    ReconcileConfig,
    SelectionConfig,
    WorksheetConfig,
)
from ..models.selection import DataType, Role

"""Config loader.

Responsibilities:
- Load YAML config (config/reconcile.yml by default)
- Validate against the bundled JSON schema (reconcile_schema.json)
- Apply defaults (output_directory=./output, header_row=2, payment bounds)
- Enforce exactly one primary worksheet
"""

SCHEMA_PATH = Path(__file__).with_name("reconcile_schema.json")
DEFAULT_CONFIG_PATH = Path("config/reconcile.yml")
DEFAULT_OUTPUT_DIRECTORY = "./output"


class ConfigError(Exception):
    pass


@lru_cache(maxsize=1)
def _schema_validator() -> Draft7Validator:
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    return Draft7Validator(schema)


def _check_schema(data: dict[str, Any]) -> None:
    """Raise ConfigError for the most relevant schema violation, with its location."""
    error = best_match(_schema_validator().iter_errors(data))
    if error is None:
        return
    where = "/".join(str(p) for p in error.absolute_path) or "<root>"
    raise ConfigError(f"config validation failed at {where}: {error.message}")


def _selection(raw: dict[str, Any]) -> SelectionConfig:
    data_type = raw.get("data_type")
    return SelectionConfig(
        column=raw["column"],
        role=Role(raw["role"]),
        data_type=DataType(data_type) if data_type else None,
    )


def _worksheet(raw: dict[str, Any]) -> WorksheetConfig:
    return WorksheetConfig(
        name=raw["name"],
        selections=tuple(_selection(s) for s in raw["selections"]),
        header_row=raw.get("header_row", DEFAULT_HEADER_ROW),
        primary=bool(raw.get("primary", False)),
    )


def load_config(path: Path) -> ReconcileConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top-level mapping expected")

    _check_schema(data)

    files = tuple(
        FileConfig(file=f["file"], worksheets=tuple(_worksheet(ws) for ws in f["worksheets"]))
        for f in data["files"]
    )
    primaries = [f"{f.file}/{ws.name}" for f in files for ws in f.worksheets if ws.primary]
    if len(primaries) != 1:
        raise ConfigError(
            f"config validation failed: exactly one primary worksheet required (found {len(primaries)})"
        )

    pay_raw = data.get("payment") or {}
    payment = PaymentConfig(
        include_zero=pay_raw.get("include_zero", INCLUDE_ZERO_PAYMENTS),
        update_min_value=float(pay_raw.get("update_min_value", UPDATE_MIN_VALUE)),
        existing_sheet=pay_raw.get("existing_sheet"),
    )
    threshold = data.get("filter_threshold")
    return ReconcileConfig(
        source_directory=data["source_directory"],
        output_directory=data.get("output_directory", DEFAULT_OUTPUT_DIRECTORY),
        files=files,
        filter_threshold=float(threshold) if threshold is not None else None,
        payment=payment,
    )
