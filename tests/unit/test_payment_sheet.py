from __future__ import annotations

from datetime import date

import pytest

from sheetsifter.models.selection import DataType, Role, Selection, WorksheetRef
from sheetsifter.services.correction_writer import CURRENCY_FORMAT
from sheetsifter.services.errors import ConfigurationError
from sheetsifter.services.payment_sheet import (
    PAYMENT_HEADER,
    PaymentEntry,
    PaymentSheetError,
    collect_payment_entries,
    generate_payment_sheet,
    payment_sheet_name,
    update_payment_sheet,
)
from sheetsifter.services.selection_index import build_selection_index

PRIMARY = WorksheetRef("folha.xlsx", "Principal")


def _index(with_identifier: bool = True):
    sels = [
        Selection("folha.xlsx", "Principal", "Nome", DataType.TEXT, Role.KEY, ("Ana", "", "Bruno", "Carla")),
        Selection("folha.xlsx", "Principal", "Valor", DataType.CURRENCY, Role.VALUE, ("100,00", "5", "x", "0")),
    ]
    if with_identifier:
        sels.append(
            Selection("folha.xlsx", "Principal", "CPF", DataType.TEXT, Role.IDENTIFIER, ("1", "2", "3", "4"))
        )
    return build_selection_index(sels)


def test_payment_sheet_name_uses_portuguese_month():
    assert payment_sheet_name(date(2026, 10, 19)) == "Pagamento Outubro 2026"
    assert payment_sheet_name(date(2024, 3, 1)) == "Pagamento Março 2024"


def test_collect_entries_skips_blank_names_and_non_numeric_amounts():
    entries = collect_payment_entries(_index(), PRIMARY)
    assert entries == [PaymentEntry("Ana", "1", 100.0), PaymentEntry("Carla", "4", 0.0)]


def test_collect_entries_without_identifier_column():
    entries = collect_payment_entries(_index(with_identifier=False), PRIMARY)
    assert [e.identifier for e in entries] == ["", ""]


def test_collect_entries_requires_key_and_value():
    index = build_selection_index([Selection("folha.xlsx", "Principal", "Nome", DataType.TEXT, Role.KEY, ("A",))])
    with pytest.raises(ConfigurationError):
        collect_payment_entries(index, PRIMARY)


def test_generate_payment_sheet_excludes_negatives():
    entries = [PaymentEntry("Ana", "1", 100.0), PaymentEntry("Bia", "2", -3.0), PaymentEntry("Caio", "3", 0.0)]
    sheet = generate_payment_sheet(entries, today=date(2026, 10, 19))
    assert sheet.name == "Pagamento Outubro 2026"
    assert sheet.rows == (PAYMENT_HEADER, ("Ana", "1", 100.0), ("Caio", "3", 0.0))
    assert sheet.number_formats == {(1, 2): CURRENCY_FORMAT, (2, 2): CURRENCY_FORMAT}


def test_generate_payment_sheet_can_exclude_zero():
    sheet = generate_payment_sheet([PaymentEntry("Caio", "3", 0.0)], include_zero=False, today=date(2026, 1, 1))
    assert sheet.rows == (PAYMENT_HEADER,)


def test_update_appends_new_names_above_minimum():
    existing = [["Nome", "CPF", "Valor"], ["Ana", "1", "100"]]
    entries = [
        PaymentEntry("ANA", "1", 100.0),
        PaymentEntry("Bruno", "2", 50.0),
        PaymentEntry("Carla", "3", 9.99),
    ]
    sheet = update_payment_sheet(existing, entries, min_value=10, sheet_name="Pagamento")
    assert sheet.rows[-1] == ("Bruno", "2", 50.0)
    assert len(sheet.rows) == 3
    assert sheet.number_formats == {(2, 2): CURRENCY_FORMAT}


def test_update_with_only_name_column():
    sheet = update_payment_sheet([["name"]], [PaymentEntry("Bruno", "2", 50.0)])
    assert sheet.rows == (("name",), ("Bruno",))


def test_update_rejects_empty_sheet():
    with pytest.raises(PaymentSheetError, match="no rows"):
        update_payment_sheet([], [PaymentEntry("Bruno", "2", 50.0)])


def test_update_rejects_sheet_without_name_column():
    with pytest.raises(PaymentSheetError, match="'Nome'"):
        update_payment_sheet([["CPF", "Valor"]], [PaymentEntry("Bruno", "2", 50.0)])


def test_update_with_nothing_new_is_an_error():
    with pytest.raises(PaymentSheetError, match="no new payment entries"):
        update_payment_sheet([["Nome"], ["Ana"]], [PaymentEntry("Ana", "1", 100.0)])
