from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from ..models.config_models import INCLUDE_ZERO_PAYMENTS, UPDATE_MIN_VALUE
from ..models.corrected_file import CellValue, SheetContent
from ..models.selection import WorksheetRef
from .correction_writer import CURRENCY_FORMAT
from .errors import ConfigurationError
from .normalizer import parse_number
from .selection_index import SelectionIndex

"""Payment sheet generation and incremental update.

The generator projects (name, identifier, value) triples out of the primary
worksheet. The updater merges those triples into an existing payment sheet,
appending only names that are not in it yet.
"""

__all__ = [
    "PAYMENT_HEADER",
    "PaymentEntry",
    "PaymentSheetError",
    "payment_sheet_name",
    "collect_payment_entries",
    "generate_payment_sheet",
    "update_payment_sheet",
]

logger = logging.getLogger(__name__)

PAYMENT_HEADER = ("Nome", "CPF", "Valor")
MONTH_NAMES = (
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
)
_NAME_HEADERS = {"nome", "name"}
_IDENTIFIER_HEADERS = {"cpf", "identificador", "identifier"}
_VALUE_HEADERS = {"valor", "value"}


class PaymentSheetError(Exception):
    """Uploaded payment sheet cannot be merged (empty, no name column, nothing new)."""
    pass


@dataclass(frozen=True)
class PaymentEntry:
    name: str
    identifier: str
    amount: float


def payment_sheet_name(today: date | None = None) -> str:
    today = today or date.today()
    return f"Pagamento {MONTH_NAMES[today.month - 1]} {today.year}"


def _name_key(name: str) -> str:
    return name.strip().casefold()


def collect_payment_entries(index: SelectionIndex, primary: WorksheetRef) -> list[PaymentEntry]:
    """All primary rows with a name and a finite amount, in row order."""
    ws = index.get(primary)
    if ws is None or ws.key is None or ws.value is None:
        raise ConfigurationError(
            f"primary worksheet '{primary}' needs a key (name) and a value column for payment sheets"
        )
    ws.check_alignment()
    names = ws.key.full_data
    values = ws.value.full_data
    identifiers = ws.identifier.full_data if ws.identifier is not None else ("",) * len(names)

    entries: list[PaymentEntry] = []
    for name, identifier, raw in zip(names, identifiers, values):
        amount = parse_number(raw)
        if not name.strip() or not math.isfinite(amount):
            continue
        entries.append(PaymentEntry(name=name.strip(), identifier=identifier.strip(), amount=amount))
    return entries


def generate_payment_sheet(
    entries: Sequence[PaymentEntry],
    include_zero: bool = INCLUDE_ZERO_PAYMENTS,
    today: date | None = None,
) -> SheetContent:
    """Payment sheet named after the current month; negative amounts are left out.

    Args:
        entries: Primary rows, see collect_payment_entries
        include_zero: Keep zero amounts
        today: Date that names the sheet (defaults to today)

    Returns:
        SheetContent with the Nome/CPF/Valor header and currency-formatted amounts.
    """
    rows: list[tuple[CellValue, ...]] = [PAYMENT_HEADER]
    formats: dict[tuple[int, int], str] = {}
    for entry in entries:
        if entry.amount < 0 or (entry.amount == 0 and not include_zero):
            continue
        rows.append((entry.name, entry.identifier, entry.amount))
        formats[(len(rows) - 1, 2)] = CURRENCY_FORMAT
    logger.debug("payment sheet: %d of %d entries kept", len(rows) - 1, len(entries))
    return SheetContent(name=payment_sheet_name(today), rows=tuple(rows), number_formats=formats)


def _find_header(header: Sequence[str], names: set[str]) -> int | None:
    for i, cell in enumerate(header):
        if str(cell).strip().casefold() in names:
            return i
    return None


def update_payment_sheet(
    existing: Sequence[Sequence[str]],
    entries: Sequence[PaymentEntry],
    min_value: float = UPDATE_MIN_VALUE,
    sheet_name: str | None = None,
) -> SheetContent:
    """Append entries (amount >= min_value) whose names are not in the existing sheet.

    `existing` is the uploaded sheet as a matrix, header row first.

    Returns:
        SheetContent holding the existing rows followed by the new entries.

    Raises:
        PaymentSheetError: no rows, no recognizable name column, or nothing new to add.
    """
    if not existing:
        raise PaymentSheetError("uploaded payment sheet has no rows")
    header = [str(c) for c in existing[0]]
    name_idx = _find_header(header, _NAME_HEADERS)
    if name_idx is None:
        raise PaymentSheetError("uploaded payment sheet has no 'Nome' column")
    identifier_idx = _find_header(header, _IDENTIFIER_HEADERS)
    value_idx = _find_header(header, _VALUE_HEADERS)

    present = {
        _name_key(row[name_idx])
        for row in existing[1:]
        if name_idx < len(row) and row[name_idx].strip()
    }

    rows: list[tuple[CellValue, ...]] = [tuple(r) for r in existing]
    formats: dict[tuple[int, int], str] = {}
    appended = 0
    for entry in entries:
        if entry.amount < min_value or _name_key(entry.name) in present:
            continue
        cells: list[CellValue] = [""] * len(header)
        cells[name_idx] = entry.name
        if identifier_idx is not None:
            cells[identifier_idx] = entry.identifier
        if value_idx is not None:
            cells[value_idx] = entry.amount
            formats[(len(rows), value_idx)] = CURRENCY_FORMAT
        rows.append(tuple(cells))
        present.add(_name_key(entry.name))
        appended += 1

    if appended == 0:
        raise PaymentSheetError("no new payment entries to add; the uploaded sheet is already up to date")
    logger.info("payment sheet update: %d new row(s) appended", appended)
    return SheetContent(name=sheet_name or "Pagamento", rows=tuple(rows), number_formats=formats)
