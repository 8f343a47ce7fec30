from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models.selection import Role, Selection, WorksheetRef
from .errors import AlignmentError

"""Selection index: groups tagged columns by (file, worksheet) and by role."""

__all__ = [
    "WorksheetSelections",
    "SelectionIndex",
    "build_selection_index",
]


@dataclass(frozen=True)
class WorksheetSelections:
    """Selections of a single worksheet, split by role (selection order kept)."""
    ref: WorksheetRef
    keys: tuple[Selection, ...] = ()
    values: tuple[Selection, ...] = ()
    identifiers: tuple[Selection, ...] = ()

    @property
    def is_comparison_eligible(self) -> bool:
        return bool(self.keys) and bool(self.values)

    @property
    def key(self) -> Selection | None:
        return self.keys[0] if self.keys else None

    @property
    def value(self) -> Selection | None:
        return self.values[0] if self.values else None

    @property
    def identifier(self) -> Selection | None:
        return self.identifiers[0] if self.identifiers else None

    def check_alignment(self) -> None:
        """Raise AlignmentError unless every tagged column has the same row count."""
        tagged = self.keys + self.values + self.identifiers
        lengths = {len(s.full_data) for s in tagged}
        if len(lengths) > 1:
            detail = ", ".join(f"{s.column_name}={len(s.full_data)}" for s in tagged)
            raise AlignmentError(f"worksheet '{self.ref}' has misaligned columns ({detail})")


@dataclass(frozen=True)
class SelectionIndex:
    """Read-only view of selections grouped per worksheet, in first-seen order."""
    worksheets: tuple[WorksheetSelections, ...]

    def get(self, ref: WorksheetRef) -> WorksheetSelections | None:
        for ws in self.worksheets:
            if ws.ref == ref:
                return ws
        return None

    def eligible_targets(self, primary: WorksheetRef) -> list[WorksheetSelections]:
        return [ws for ws in self.worksheets if ws.ref != primary and ws.is_comparison_eligible]


def build_selection_index(selections: Iterable[Selection]) -> SelectionIndex:
    grouped: dict[WorksheetRef, dict[Role, list[Selection]]] = {}
    for sel in selections:
        by_role = grouped.setdefault(sel.ref, {role: [] for role in Role})
        by_role[sel.role].append(sel)

    worksheets = tuple(
        WorksheetSelections(
            ref=ref,
            keys=tuple(by_role[Role.KEY]),
            values=tuple(by_role[Role.VALUE]),
            identifiers=tuple(by_role[Role.IDENTIFIER]),
        )
        for ref, by_role in grouped.items()
    )
    return SelectionIndex(worksheets=worksheets)
