from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..db.sql_generator import build_primary_key_where
from ..models.row_change import Row
from .table_view import PagedTableView

"""YAML change files for the command line.

A change file lists edits to replay through an edit session:

    changes:
      - op: update
        where: {id: 5}          # every primary key column, nothing else
        set: {name: Bobby}
      - op: delete
        where: {id: 7}
      - op: insert
        values: {name: Carol}   # omitted columns stay NULL

Rows addressed by `where` are looked up on the loaded page first, then
fetched by primary key, so the ledger captures their current values as
originals exactly like edits made in the grid.
"""

__all__ = [
    "ChangeFileError",
    "ChangeOp",
    "apply_changes",
    "load_change_file",
]

logger = logging.getLogger(__name__)

OPS = ("update", "delete", "insert")


class ChangeFileError(Exception):
    pass


@dataclass(frozen=True)
class ChangeOp:
    op: str
    where: dict[str, Any] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)  # set (update) / values (insert)


def _parse_entry(index: int, entry: Any) -> ChangeOp:
    if not isinstance(entry, dict):
        raise ChangeFileError(f"change #{index + 1}: expected a mapping, got {type(entry).__name__}")
    op = str(entry.get("op", "")).lower()
    if op not in OPS:
        raise ChangeFileError(f"change #{index + 1}: unknown op {entry.get('op')!r}")
    where = entry.get("where") or {}
    values = entry.get("set") if op == "update" else entry.get("values")
    values = values or {}
    if not isinstance(where, dict) or not isinstance(values, dict):
        raise ChangeFileError(f"change #{index + 1}: 'where' and 'set'/'values' must be mappings")
    if op in ("update", "delete") and not where:
        raise ChangeFileError(f"change #{index + 1}: {op} requires 'where'")
    if op == "update" and not values:
        raise ChangeFileError(f"change #{index + 1}: update requires 'set'")
    return ChangeOp(op=op, where=dict(where), values=dict(values))


def load_change_file(path: Path) -> list[ChangeOp]:
    if not path.exists():
        raise ChangeFileError(f"change file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ChangeFileError(f"invalid yaml: {e}") from e
    entries = data.get("changes") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ChangeFileError("change file must contain a 'changes' list")
    return [_parse_entry(i, e) for i, e in enumerate(entries)]


def _find_row(view: PagedTableView, where: Mapping[str, Any]) -> tuple[int, Row]:
    for i, row in enumerate(view.rows()):
        if all(row.get(k) == v for k, v in where.items()):
            return i, row
    predicate = build_primary_key_where(where, view.dialect)
    query = f"SELECT * FROM {view.table.quoted(view.dialect)} WHERE {predicate} LIMIT 1"
    result = view.executor.execute(query, view.table.execution_database, view.table.execution_context)
    rows = result.as_dicts()
    if not rows:
        raise ChangeFileError(f"row not found: {dict(where)}")
    return -1, rows[0]


def _check_where(where: Mapping[str, Any], primary_key_columns: Sequence[str]) -> None:
    if set(where) != set(primary_key_columns):
        raise ChangeFileError(
            f"'where' must name exactly the primary key columns {list(primary_key_columns)}, got {list(where)}"
        )


def apply_changes(view: PagedTableView, ops: Sequence[ChangeOp]) -> int:
    """Replay change ops into the view's edit session (must be in edit mode)."""
    session = view.require_session()
    for op in ops:
        if op.op == "insert":
            unknown = set(op.values) - set(view.column_names)
            if unknown:
                raise ChangeFileError(f"insert: unknown column(s) {sorted(unknown)}")
            change = view.add_new_row()
            for column, value in op.values.items():
                session.update_new_row_cell(change.id, column, value)
            continue

        _check_where(op.where, session.primary_key_columns)
        row_index, row = _find_row(view, op.where)
        if op.op == "delete":
            session.delete_row(row_index, row)
        else:
            for column, value in op.values.items():
                if column not in row:
                    raise ChangeFileError(f"update: unknown column {column!r}")
                session.edit_cell(row_index, row, column, value)
    logger.debug(f"applied {len(ops)} change op(s); ledger={session.ledger.counts()}")
    return len(session.pending_changes)
