from __future__ import annotations

import re
from datetime import UTC, datetime

from sheetsifter.models.processing_result import RunResult
from sheetsifter.services.summary import render_summary_line

"""SUMMARY line contract."""

SUMMARY_RE = re.compile(
    r"^SUMMARY mode=(report|correct|payment|payment-update) worksheets=\d+ reports=\d+ rows=\d+ "
    r"valid=\d+ invalid=\d+ duplicates=\d+ corrected=\d+ skipped=\d+ elapsed_sec=\d+(\.\d+)?$"
)


def test_summary_line_matches_contract():
    t = datetime(2026, 10, 19, tzinfo=UTC)
    for mode in ("report", "correct", "payment", "payment-update"):
        r = RunResult(
            mode=mode, worksheets=1, reports=1, total_rows=3, valid_rows=1, invalid_rows=2,
            duplicate_keys=1, corrected_cells=0, skipped_worksheets=0,
            start_time=t, end_time=t, elapsed_seconds=0.0421,
        )
        assert SUMMARY_RE.match(render_summary_line(r))
