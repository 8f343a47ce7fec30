from __future__ import annotations

import json

from sheetsifter.logging.error_log import ErrorLogBuffer
from sheetsifter.models.error_record import ErrorRecord

"""Error log contract: one JSON object per line, fixed keys, row=-1 for worksheet-level records."""

EXPECTED_KEYS = ["timestamp", "file", "sheet", "row", "error_type", "message"]


def test_error_log_line_keys_and_order(tmp_path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("lancamentos.xlsx", "Janeiro", -1, "MISALIGNED_COLUMNS", "misaligned"))
    path = buf.flush()

    record = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
    assert list(record) == EXPECTED_KEYS
    assert record["row"] == -1
    assert record["error_type"].isupper()
