from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

"""Workbook loading progress (tqdm, TTY only).

Off a TTY (CI, pipes, redirected output) no bar is drawn and every method is a
no-op, so the labeled log lines stay greppable.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One bar step per configured workbook, with loaded/failed counters as postfix."""

    def __init__(self, total_files: int, *, description: str = "Loading workbooks") -> None:
        self.total_files = total_files
        self.description = description
        self.loaded = 0
        self.failed = 0
        self.pbar: Any = None
        if is_tty_enabled():
            self.pbar = tqdm(total=total_files, desc=description, unit="workbook", leave=False, ncols=80, ascii=True)

    @property
    def enabled(self) -> bool:
        return self.pbar is not None

    def start_file(self, file_path: Path) -> None:
        if self.pbar is not None:
            self.pbar.set_description_str(f"{self.description} ({file_path.name})")

    def finish_file(self, success: bool = True, **postfix: Any) -> None:
        if success:
            self.loaded += 1
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.set_description_str(self.description)
            self.pbar.set_postfix(loaded=self.loaded, failed=self.failed, **postfix)
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
