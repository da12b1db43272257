from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Query boundary result models.

QueryResult mirrors what the execution boundary hands back for every
statement; ColumnDetail is one entry of the column metadata listing used to
discover primary key columns.
"""

__all__ = [
    "ColumnDetail",
    "ColumnInfo",
    "QueryResult",
]

PRIMARY_KEY = "PRI"


@dataclass(frozen=True)
class ColumnInfo:
    """Result-set column description."""
    name: str
    data_type: str = ""
    nullable: bool = True


@dataclass(frozen=True)
class QueryResult:
    """Result of one executed statement.

    rows are positional (same order as columns). affected_rows is the driver
    rowcount for DML statements, 0 when the driver cannot tell.
    """
    columns: list[ColumnInfo] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    affected_rows: int = 0
    execution_time_ms: int = 0

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def as_dicts(self) -> list[dict[str, Any]]:
        """Return rows as column name -> value mappings (column order kept)."""
        names = self.column_names
        return [dict(zip(names, row)) for row in self.rows]


@dataclass(frozen=True)
class ColumnDetail:
    """Column metadata from information_schema.

    key is "PRI" for primary key members, "UNI" for unique columns, otherwise
    None (MySQL may also report "MUL").
    """
    name: str
    data_type: str
    nullable: bool
    key: str | None = None
    default_value: str | None = None
    extra: str | None = None

    @property
    def is_primary_key(self) -> bool:
        return self.key == PRIMARY_KEY
