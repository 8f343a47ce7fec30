from __future__ import annotations

from pathlib import Path

import pytest

from sheetsifter.config.loader import ConfigError, load_config
from sheetsifter.models.config_models import PaymentConfig
from sheetsifter.models.selection import DataType, Role, WorksheetRef


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.output_directory == "./output"
    assert cfg.filter_threshold is None
    assert cfg.primary == WorksheetRef("folha.xlsx", "Principal")

    primary_ws = cfg.files[0].worksheets[0]
    assert primary_ws.header_row == 2
    roles = [s.role for s in primary_ws.selections]
    assert roles == [Role.KEY, Role.IDENTIFIER, Role.VALUE]
    assert primary_ws.selections[2].data_type is DataType.CURRENCY
    assert primary_ws.selections[0].data_type is None

    assert cfg.payment.update_min_value == 10.0
    assert cfg.payment.include_zero is True
    assert cfg.payment.existing_sheet == "pagamento_anterior.xlsx"


def test_defaults_applied(temp_workdir: Path):
    path = temp_workdir / "config" / "minimal.yml"
    path.write_text(
        "source_directory: ./data\n"
        "filter_threshold: 5\n"
        "files:\n"
        "  - file: a.xlsx\n"
        "    worksheets:\n"
        "      - {name: S, primary: true, header_row: 1, selections: []}\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.output_directory == "./output"
    assert cfg.filter_threshold == 5.0
    assert cfg.payment == PaymentConfig()
    assert cfg.files[0].worksheets[0].header_row == 1


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("files: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("source_directory: ./data\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_unknown_role(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("role: cpf", "role: owner")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_requires_exactly_one_primary(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("        primary: true\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="exactly one primary"):
        load_config(write_config)


def test_load_config_rejects_two_primaries(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "      - name: Janeiro\n", "      - name: Janeiro\n        primary: true\n"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match=r"exactly one primary worksheet required \(found 2\)"):
        load_config(write_config)


def test_load_config_non_mapping(write_config: Path):
    write_config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="top-level mapping"):
        load_config(write_config)
