from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

from sheetsifter.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


def test_no_bar_off_tty():
    """Without a TTY the tracker only counts."""
    with patch("sheetsifter.services.progress.is_tty_enabled", return_value=False), \
         patch("sheetsifter.services.progress.tqdm") as mock_tqdm:
        with ProgressTracker(2) as tracker:
            tracker.start_file(Path("folha.xlsx"))
            tracker.finish_file(success=True)
            tracker.finish_file(success=False)
        mock_tqdm.assert_not_called()
        assert tracker.enabled is False
        assert (tracker.loaded, tracker.failed) == (1, 1)


def test_bar_created_on_tty():
    with patch("sheetsifter.services.progress.is_tty_enabled", return_value=True), \
         patch("sheetsifter.services.progress.tqdm") as mock_tqdm:
        tracker = ProgressTracker(3)
        mock_tqdm.assert_called_once_with(
            total=3, desc="Loading workbooks", unit="workbook", leave=False, ncols=80, ascii=True
        )
        assert tracker.enabled is True


def test_file_lifecycle_updates_bar():
    mock_pbar = Mock()
    with patch("sheetsifter.services.progress.is_tty_enabled", return_value=True), \
         patch("sheetsifter.services.progress.tqdm", return_value=mock_pbar):
        with ProgressTracker(2) as tracker:
            tracker.start_file(Path("data/folha.xlsx"))
            mock_pbar.set_description_str.assert_called_with("Loading workbooks (folha.xlsx)")
            tracker.finish_file(success=True, worksheets=1)
            mock_pbar.set_postfix.assert_called_once_with(loaded=1, failed=0, worksheets=1)
            mock_pbar.update.assert_called_once_with(1)
        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
