from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Callable, Iterator, Mapping
from dataclasses import replace
from typing import Any

from ..models.row_change import CellEdit, ChangeType, PendingRowChange, Row
from .identity import primary_key_hash, same_value

"""Change ledger: the ordered set of uncommitted row changes of one table.

Merge rules:
- cell edits on the same row (same identity hash) collapse into one UPDATE
  entry holding one CellEdit per column; the CellEdit keeps the value seen on
  first touch as original_value, and is dropped when the cell is set back to it
- an UPDATE entry left without edits is removed
- deleting a row replaces its pending UPDATE (deletion wins); deleting twice
  is a no-op
- inserts never merge; each add_new_row() is a distinct pending row

For every identity hash the ledger holds at most one UPDATE or one DELETE.
"""

__all__ = [
    "ChangeLedger",
    "LedgerInvariantError",
]

logger = logging.getLogger(__name__)


class LedgerInvariantError(Exception):
    """Raised by check_invariants() when the ledger is in an impossible state."""
    pass


def _new_change_id() -> str:
    return str(uuid.uuid4())


class ChangeLedger:
    """Ordered collection of PendingRowChange entries, unique by id."""

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._changes: list[PendingRowChange] = []
        self._id_factory = id_factory or _new_change_id

    # -- queries -----------------------------------------------------------

    @property
    def changes(self) -> list[PendingRowChange]:
        """Snapshot of the entries in ledger order."""
        return list(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __iter__(self) -> Iterator[PendingRowChange]:
        return iter(list(self._changes))

    def has_changes(self) -> bool:
        return bool(self._changes)

    def get(self, change_id: str) -> PendingRowChange | None:
        for change in self._changes:
            if change.id == change_id:
                return change
        return None

    def _index_of(self, change_type: ChangeType, identity: str) -> int:
        for i, change in enumerate(self._changes):
            if change.type is change_type and primary_key_hash(change.primary_key_values) == identity:
                return i
        return -1

    def find_update(self, primary_key_values: Mapping[str, Any]) -> PendingRowChange | None:
        i = self._index_of(ChangeType.UPDATE, primary_key_hash(primary_key_values))
        return self._changes[i] if i >= 0 else None

    def find_delete(self, primary_key_values: Mapping[str, Any]) -> PendingRowChange | None:
        i = self._index_of(ChangeType.DELETE, primary_key_hash(primary_key_values))
        return self._changes[i] if i >= 0 else None

    def deletion_map(self) -> dict[str, str]:
        """identity hash -> id of the DELETE entry."""
        return {
            primary_key_hash(c.primary_key_values): c.id for c in self._changes if c.is_delete
        }

    def modification_map(self) -> dict[str, set[str]]:
        """identity hash -> names of the modified columns."""
        return {
            primary_key_hash(c.primary_key_values): {e.column_name for e in c.edits}
            for c in self._changes
            if c.is_update
        }

    def is_cell_modified(self, primary_key_values: Mapping[str, Any], column_name: str) -> bool:
        update = self.find_update(primary_key_values)
        return update is not None and update.edit_for(column_name) is not None

    def counts(self) -> dict[str, int]:
        """Number of pending entries per change type ("insert"/"update"/"delete")."""
        counter = Counter(c.type.value for c in self._changes)
        return {t.value: counter.get(t.value, 0) for t in ChangeType}

    def check_invariants(self) -> None:
        """Raise LedgerInvariantError if an identity has more than one entry,
        an UPDATE has no edits, or two entries share an id."""
        ids: set[str] = set()
        identities: set[str] = set()
        for change in self._changes:
            if change.id in ids:
                raise LedgerInvariantError(f"duplicate change id: {change.id}")
            ids.add(change.id)
            if change.is_insert:
                continue
            if change.is_update and not change.edits:
                raise LedgerInvariantError(f"update without edits: {change.id}")
            identity = primary_key_hash(change.primary_key_values)
            if identity in identities:
                raise LedgerInvariantError(f"more than one pending change for row {identity}")
            identities.add(identity)

    # -- mutations ---------------------------------------------------------

    def record_cell_edit(
        self,
        row_index: int,
        primary_key_values: Mapping[str, Any],
        column_name: str,
        original_value: Any,
        new_value: Any,
        original_row: Row | None = None,
    ) -> PendingRowChange | None:
        """Merge a cell edit into the ledger.

        Returns the resulting UPDATE entry, or None when the row no longer has
        a pending update (all edits reverted, or the row is marked for deletion).
        """
        identity = primary_key_hash(primary_key_values)

        if self._index_of(ChangeType.DELETE, identity) >= 0:
            logger.debug(f"ignoring edit on row marked for deletion: {identity} {column_name}")
            return None

        idx = self._index_of(ChangeType.UPDATE, identity)
        if idx < 0:
            if same_value(new_value, original_value):
                return None
            change = PendingRowChange(
                id=self._id_factory(),
                type=ChangeType.UPDATE,
                row_index=row_index,
                primary_key_values=dict(primary_key_values),
                edits=(CellEdit(column_name, original_value, new_value),),
                original_row=dict(original_row) if original_row is not None else None,
            )
            self._changes.append(change)
            return change

        existing = self._changes[idx]
        edits = list(existing.edits)
        for i, edit in enumerate(edits):
            if edit.column_name != column_name:
                continue
            if same_value(new_value, edit.original_value):
                # 元の値に戻した -> 編集自体を取り消す
                del edits[i]
            else:
                edits[i] = replace(edit, new_value=new_value)
            break
        else:
            if not same_value(new_value, original_value):
                edits.append(CellEdit(column_name, original_value, new_value))

        if not edits:
            del self._changes[idx]
            return None

        updated = replace(existing, edits=tuple(edits))
        self._changes[idx] = updated
        return updated

    def add_new_row(self, template_row: Mapping[str, Any]) -> PendingRowChange:
        """Append a pending INSERT; every call is a distinct row."""
        change = PendingRowChange(
            id=self._id_factory(),
            type=ChangeType.INSERT,
            row_index=-1,
            primary_key_values={},
            new_row=dict(template_row),
        )
        self._changes.append(change)
        return change

    def mark_row_for_deletion(
        self,
        row_index: int,
        primary_key_values: Mapping[str, Any],
        original_row: Row | None = None,
    ) -> PendingRowChange:
        """Mark an existing row for deletion (idempotent, replaces a pending update)."""
        identity = primary_key_hash(primary_key_values)
        existing_delete = self._index_of(ChangeType.DELETE, identity)
        if existing_delete >= 0:
            return self._changes[existing_delete]

        change = PendingRowChange(
            id=self._id_factory(),
            type=ChangeType.DELETE,
            row_index=row_index,
            primary_key_values=dict(primary_key_values),
            original_row=dict(original_row) if original_row is not None else None,
        )
        idx = self._index_of(ChangeType.UPDATE, identity)
        if idx >= 0:
            self._changes[idx] = change
        else:
            self._changes.append(change)
        return change

    def remove_change(self, change_id: str) -> bool:
        """Remove an entry by id (cancel an insert, undo a delete)."""
        before = len(self._changes)
        self._changes = [c for c in self._changes if c.id != change_id]
        return len(self._changes) != before

    def update_new_row_cell(self, change_id: str, column_name: str, new_value: Any) -> PendingRowChange | None:
        """Set a column of a pending INSERT row; no-op if change_id is not an insert."""
        for i, change in enumerate(self._changes):
            if change.id == change_id and change.is_insert and change.new_row is not None:
                new_row = dict(change.new_row)
                new_row[column_name] = new_value
                updated = replace(change, new_row=new_row)
                self._changes[i] = updated
                return updated
        return None

    def discard_all(self) -> int:
        """Drop every pending change; returns how many were dropped."""
        count = len(self._changes)
        self._changes = []
        return count
