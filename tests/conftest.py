# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real .xlsx file, rows written verbatim (no pandas header/index)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


PRIMARY_ROWS: list[list[object]] = [
    ["Folha de pagamento"],
    ["Nome", "CPF", "Valor"],
    ["Ana", "123.456.789-09", "100,00"],
    ["Bruno", "987.654.321-00", "50,00"],
    ["Carla", "111.222.333-44", "0"],
]

TARGET_ROWS: list[list[object]] = [
    ["Lançamentos"],
    ["Nome", "Valor"],
    ["Ana", "90"],
    ["Ana", "100"],
    ["Bruno", "55"],
    ["Davi", "10"],
]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
output_directory: ./output
files:
  - file: folha.xlsx
    worksheets:
      - name: Principal
        primary: true
        selections:
          - {column: Nome, role: key}
          - {column: CPF, role: cpf}
          - {column: Valor, role: value, data_type: currency}
  - file: lancamentos.xlsx
    worksheets:
      - name: Janeiro
        selections:
          - {column: Nome, role: key}
          - {column: Valor, role: value, data_type: currency}
payment:
  update_min_value: 10
  existing_sheet: pagamento_anterior.xlsx
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "reconcile.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_workbooks(temp_workdir: Path) -> dict[str, Path]:
    data = temp_workdir / "data"
    return {
        "primary": make_excel(data / "folha.xlsx", {"Principal": PRIMARY_ROWS}),
        "target": make_excel(data / "lancamentos.xlsx", {"Janeiro": TARGET_ROWS}),
    }


@pytest.fixture()
def excel_factory():
    return make_excel
