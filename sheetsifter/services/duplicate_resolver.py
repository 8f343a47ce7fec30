from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.corrected_file import CellValue
from .normalizer import parse_number, passes_filter
from .source_map import SourceMap, normalize_key

"""Duplicate resolver: one canonical, corrected row per key.

Rows are grouped by key (empty keys dropped). A group whose key is missing from
the source map, or whose correct value fails the numeric filter, is dropped. A
single-row group gets its value overwritten. For a duplicate group, a row already
holding the correct amount is kept as is; otherwise the group is sorted by its
current amount (NaN first, stable) and the last row is corrected, the rest dropped.
"""

__all__ = [
    "ResolvedRow",
    "group_rows_by_key",
    "pick_canonical_row",
    "resolve_rows",
]


@dataclass(frozen=True)
class ResolvedRow:
    key: str
    cells: tuple[CellValue, ...]
    corrected: bool  # value cell overwritten with the source amount
    changed: bool  # overwritten amount differs numerically from the old one
    group_size: int


def group_rows_by_key(
    rows: Sequence[Sequence[str]], key_idx: int
) -> dict[str, list[tuple[int, Sequence[str]]]]:
    groups: dict[str, list[tuple[int, Sequence[str]]]] = {}
    for i, row in enumerate(rows):
        key = normalize_key(row[key_idx] if key_idx < len(row) else "")
        if not key:
            continue
        groups.setdefault(key, []).append((i, row))
    return groups


def _amount(row: Sequence[str], value_idx: int) -> float:
    return parse_number(row[value_idx] if value_idx < len(row) else "")


def _sort_key(amount: float) -> tuple[int, float]:
    return (0, 0.0) if math.isnan(amount) else (1, amount)


def pick_canonical_row(
    group: Sequence[tuple[int, Sequence[str]]], value_idx: int, correct_amount: float
) -> tuple[tuple[int, Sequence[str]], bool]:
    """Choose the row that represents a key.

    Args:
        group: (row position, row) pairs sharing one key, in sheet order
        value_idx: 0-based position of the amount cell
        correct_amount: Parsed source amount for the key

    Returns:
        (entry, needs_correction). A row already holding the correct amount is
        returned untouched; otherwise the largest current amount (NaN lowest,
        stable) is returned for overwriting.
    """
    if len(group) == 1:
        return group[0], True
    for entry in group:
        if _amount(entry[1], value_idx) == correct_amount:
            return entry, False
    ordered = sorted(group, key=lambda entry: _sort_key(_amount(entry[1], value_idx)))
    return ordered[-1], True


def _with_value(row: Sequence[str], value_idx: int, amount: float) -> tuple[CellValue, ...]:
    cells: list[CellValue] = list(row)
    if value_idx >= len(cells):
        cells.extend([""] * (value_idx + 1 - len(cells)))
    cells[value_idx] = amount
    return tuple(cells)


def resolve_rows(
    rows: Sequence[Sequence[str]],
    key_idx: int,
    value_idx: int,
    source_map: SourceMap,
    threshold: float | None = None,
) -> list[ResolvedRow]:
    """Resolve data rows (header excluded) into one row per surviving key, first-seen order.

    Args:
        rows: Data rows below the header
        key_idx: 0-based position of the key cell
        value_idx: 0-based position of the amount cell
        source_map: Primary key -> value lookup
        threshold: Numeric filter, see passes_filter

    Returns:
        ResolvedRow list. Empty keys, keys missing from the source map and keys
        whose source value fails the filter produce no row.
    """
    resolved: list[ResolvedRow] = []
    for key, group in group_rows_by_key(rows, key_idx).items():
        source_value = source_map.get(key)
        if source_value is None or not passes_filter(source_value, threshold):
            continue
        correct_amount = parse_number(source_value)
        (_, row), needs_correction = pick_canonical_row(group, value_idx, correct_amount)
        if needs_correction:
            resolved.append(
                ResolvedRow(
                    key=key,
                    cells=_with_value(row, value_idx, correct_amount),
                    corrected=True,
                    changed=_amount(row, value_idx) != correct_amount,
                    group_size=len(group),
                )
            )
        else:
            resolved.append(
                ResolvedRow(key=key, cells=tuple(row), corrected=False, changed=False, group_size=len(group))
            )
    return resolved
