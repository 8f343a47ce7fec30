"""Spreadsheet container I/O (pandas / openpyxl)."""
