"""sheetsifter: reconcile values across spreadsheets against a primary worksheet."""

__version__ = "0.1.0"
