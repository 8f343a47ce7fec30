from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..models.selection import DataType, Selection, WorksheetRef
from .errors import ConfigurationError
from .selection_index import SelectionIndex

"""Source map builder: key -> value lookup taken from the primary worksheet.

Repeated primary keys follow last-write-wins; the overwritten keys are recorded
on the map so callers can warn about them.
"""

__all__ = [
    "SourceMap",
    "normalize_key",
    "build_source_map",
    "build_source_map_from_index",
]

logger = logging.getLogger(__name__)


def normalize_key(raw: str | None) -> str:
    """Strip surrounding whitespace; None becomes "". Case is preserved."""
    return "" if raw is None else str(raw).strip()


@dataclass(frozen=True)
class SourceMap:
    ref: WorksheetRef
    key_column_name: str
    value_column_name: str
    value_data_type: DataType
    entries: Mapping[str, str]  # normalized key -> raw value
    duplicate_keys: tuple[str, ...] = ()  # primary keys overwritten (first-seen order)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def build_source_map(key_selection: Selection, value_selection: Selection) -> SourceMap:
    """Fold the primary key/value columns into an immutable lookup.

    Args:
        key_selection: Primary key column
        value_selection: Primary value column

    Returns:
        SourceMap; a repeated key keeps its last value and is listed in duplicate_keys.

    Raises:
        ConfigurationError: the two columns have different row counts.
    """
    if len(key_selection.full_data) != len(value_selection.full_data):
        raise ConfigurationError(
            f"primary key column '{key_selection.column_name}' and value column "
            f"'{value_selection.column_name}' have different row counts "
            f"({len(key_selection.full_data)} != {len(value_selection.full_data)})"
        )

    entries: dict[str, str] = {}
    repeated: dict[str, None] = {}
    for raw_key, value in zip(key_selection.full_data, value_selection.full_data):
        key = normalize_key(raw_key)
        if not key:
            continue
        if key in entries:
            repeated.setdefault(key)
        entries[key] = value

    if repeated:
        logger.warning(
            "primary worksheet %s repeats %d key(s); last occurrence wins: %s",
            key_selection.ref,
            len(repeated),
            ", ".join(list(repeated)[:10]),
        )

    return SourceMap(
        ref=key_selection.ref,
        key_column_name=key_selection.column_name,
        value_column_name=value_selection.column_name,
        value_data_type=value_selection.data_type,
        entries=MappingProxyType(entries),
        duplicate_keys=tuple(repeated),
    )


def build_source_map_from_index(index: SelectionIndex, primary: WorksheetRef) -> SourceMap:
    """Locate the primary worksheet's single key and value selections and build its map."""
    ws = index.get(primary)
    if ws is None:
        raise ConfigurationError(f"primary worksheet '{primary}' has no selected columns")
    if len(ws.keys) != 1:
        raise ConfigurationError(
            f"primary worksheet '{primary}' needs exactly one key column (found {len(ws.keys)})"
        )
    if len(ws.values) != 1:
        raise ConfigurationError(
            f"primary worksheet '{primary}' needs exactly one value column (found {len(ws.values)})"
        )
    return build_source_map(ws.keys[0], ws.values[0])
