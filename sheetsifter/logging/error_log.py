from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Per-run JSON Lines error log.

Worksheet-level problems are buffered during the run and written in one go to
`logs/errors-YYYYMMDD-HHMMSS.log`, stamped with the run's UTC start time. A run
without problems leaves no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | None = None, started_at: datetime | None = None) -> None:
        self.logs_dir = logs_dir or LOGS_DIR
        self.started_at = started_at or datetime.now(UTC)
        self._pending: list[ErrorRecord] = []

    @property
    def file_path(self) -> Path:
        return self.logs_dir / f"errors-{self.started_at.strftime(TIMESTAMP_FMT)}.log"

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the run's file. Returns None if there was nothing to write."""
        if not self._pending:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = "".join(f"{r.to_json_line()}\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
