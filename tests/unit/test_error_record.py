from __future__ import annotations

import json

from sheetsifter.models.error_record import ErrorRecord


def test_create_sets_utc_timestamp_with_z_suffix():
    record = ErrorRecord.create("folha.xlsx", "Principal", -1, "WORKBOOK_READ_ERROR", "could not read")
    assert record.timestamp.endswith("Z")
    assert "+00:00" not in record.timestamp
    assert record.row == -1


def test_to_json_line_has_fixed_keys_and_keeps_accents():
    """No extra keys; non-ASCII text is written as-is."""
    record = ErrorRecord("2026-10-19T12:00:00Z", "folha.xlsx", "Março", 3, "MISSING_COLUMN", "coluna ausente")
    line = record.to_json_line()
    assert "Março" in line
    assert set(json.loads(line)) == {"timestamp", "file", "sheet", "row", "error_type", "message"}
