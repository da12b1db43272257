from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.row_change import CellEdit, ChangeType, PendingRowChange
from .dialect import Dialect, TableRef

"""Commit statement generation.

generate_commit_statements() turns the pending changes of a ledger into the
ordered list of statements a commit executes:

    1. every DELETE (ledger order)   - frees unique / primary key slots
    2. every UPDATE (ledger order)   - applied to rows that still exist
    3. every INSERT (ledger order)   - cannot collide with rows being deleted

All functions here are pure string templating; nothing is executed.
"""

__all__ = [
    "build_primary_key_where",
    "generate_commit_statements",
    "generate_delete_sql",
    "generate_insert_sql",
    "generate_update_sql",
]


def build_primary_key_where(primary_key_values: Mapping[str, Any], dialect: Dialect) -> str:
    """`col = value AND ...`, using IS NULL for null key values."""
    conditions = []
    for column, value in primary_key_values.items():
        quoted = dialect.quote_identifier(column)
        if value is None:
            conditions.append(f"{quoted} IS NULL")
        else:
            conditions.append(f"{quoted} = {dialect.escape_value(value)}")
    return " AND ".join(conditions)


def generate_insert_sql(table: TableRef, dialect: Dialect, row: Mapping[str, Any]) -> str:
    columns = ", ".join(dialect.quote_identifier(c) for c in row)
    values = ", ".join(dialect.escape_value(v) for v in row.values())
    return f"INSERT INTO {table.quoted(dialect)} ({columns}) VALUES ({values})"


def generate_update_sql(
    table: TableRef,
    dialect: Dialect,
    primary_key_values: Mapping[str, Any],
    edits: Sequence[CellEdit],
) -> str:
    set_clauses = ", ".join(
        f"{dialect.quote_identifier(e.column_name)} = {dialect.escape_value(e.new_value)}" for e in edits
    )
    where = build_primary_key_where(primary_key_values, dialect)
    return f"UPDATE {table.quoted(dialect)} SET {set_clauses} WHERE {where}"


def generate_delete_sql(table: TableRef, dialect: Dialect, primary_key_values: Mapping[str, Any]) -> str:
    where = build_primary_key_where(primary_key_values, dialect)
    return f"DELETE FROM {table.quoted(dialect)} WHERE {where}"


def generate_commit_statements(
    table: TableRef,
    dialect: Dialect,
    changes: Iterable[PendingRowChange],
) -> list[str]:
    """Generate the ordered commit statements for a set of pending changes.

    Updates without edits and inserts without a row are skipped rather than
    rendered as malformed statements.
    """
    changes = list(changes)
    statements: list[str] = []

    for change in changes:
        if change.type is ChangeType.DELETE:
            statements.append(generate_delete_sql(table, dialect, change.primary_key_values))

    for change in changes:
        if change.type is ChangeType.UPDATE and change.edits:
            statements.append(generate_update_sql(table, dialect, change.primary_key_values, change.edits))

    for change in changes:
        if change.type is ChangeType.INSERT and change.new_row:
            statements.append(generate_insert_sql(table, dialect, change.new_row))

    return statements
