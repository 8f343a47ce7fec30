"""Reconciliation engine services."""

from .comparator import ComparisonResult, compare_selections, compare_worksheets
from .correction_writer import CorrectionResult, build_corrected_files
from .errors import AlignmentError, ConfigurationError
from .normalizer import detect_type, parse_number, validate_sample

__all__ = [
    "AlignmentError",
    "ComparisonResult",
    "ConfigurationError",
    "CorrectionResult",
    "build_corrected_files",
    "compare_selections",
    "compare_worksheets",
    "detect_type",
    "parse_number",
    "validate_sample",
]
