from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Pending row change models for the table edit session.

A PendingRowChange is one entry of the change ledger: an uncommitted insert,
update or delete against the browsed table. Entries are immutable; the ledger
replaces an entry whenever its edits change.
"""

__all__ = [
    "CellEdit",
    "ChangeType",
    "PendingRowChange",
    "Row",
]

# Column name -> scalar (None, bool, int, float, Decimal, str, bytes, date/time, dict/list)
Row = dict[str, Any]


class ChangeType(Enum):
    """Kind of pending change held by the ledger."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class CellEdit:
    """A single cell modification on an existing row.

    original_value is the value captured the first time the cell was touched;
    new_value is the latest value entered by the user.
    """
    column_name: str
    original_value: Any
    new_value: Any


@dataclass(frozen=True)
class PendingRowChange:
    """One uncommitted row change.

    - UPDATE: edits is non-empty
    - DELETE: original_row holds the row snapshot (undo)
    - INSERT: new_row holds every column (unset = None), primary_key_values is empty
    """
    id: str
    type: ChangeType
    row_index: int  # 表示用ヒントのみ (insert は -1)
    primary_key_values: dict[str, Any] = field(default_factory=dict)
    edits: tuple[CellEdit, ...] = ()
    original_row: Row | None = None
    new_row: Row | None = None

    @property
    def is_insert(self) -> bool:
        return self.type is ChangeType.INSERT

    @property
    def is_update(self) -> bool:
        return self.type is ChangeType.UPDATE

    @property
    def is_delete(self) -> bool:
        return self.type is ChangeType.DELETE

    def edit_for(self, column_name: str) -> CellEdit | None:
        for edit in self.edits:
            if edit.column_name == column_name:
                return edit
        return None
