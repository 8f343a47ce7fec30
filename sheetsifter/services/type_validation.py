from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ..models.selection import Selection
from .normalizer import validate_sample

"""Advisory check of a selection's declared type against its sample cells.

Batch validation fans out one task per request and fans back in, keeping request
order. A failing task yields an is_valid=False response for its own key only.
"""

__all__ = [
    "ValidationResult",
    "ValidationRequest",
    "ValidationResponse",
    "validate_selection",
    "validate_selections",
]

logger = logging.getLogger(__name__)

MAX_WORKERS = 8


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    reason: str


@dataclass(frozen=True)
class ValidationRequest:
    key: str
    selection: Selection


@dataclass(frozen=True)
class ValidationResponse:
    key: str
    is_valid: bool
    reason: str


def validate_selection(selection: Selection) -> ValidationResult:
    samples = selection.sample_data
    data_type = selection.data_type.value
    if not samples:
        return ValidationResult(True, "No sample data to validate.")

    invalid = [s for s in samples if not validate_sample(s, selection.data_type)]
    if not invalid:
        return ValidationResult(
            True, f"Data type '{data_type}' is a good fit for column '{selection.column_name}'."
        )
    return ValidationResult(
        False,
        f"Data type '{data_type}' is not appropriate: value '{invalid[0]}' does not match.",
    )


def _validate_one(request: ValidationRequest) -> ValidationResponse:
    try:
        result = validate_selection(request.selection)
    except Exception as e:  # reported per item
        logger.error("validation of %s failed: %s", request.key, e)
        return ValidationResponse(request.key, False, "An error occurred during validation.")
    return ValidationResponse(request.key, result.is_valid, result.reason)


def validate_selections(requests: Sequence[ValidationRequest]) -> list[ValidationResponse]:
    if not requests:
        return []
    with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(requests))) as pool:
        return list(pool.map(_validate_one, requests))
