from __future__ import annotations

import datetime as dt
import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

"""SQL dialect strategies (identifier quoting and literal rendering).

Two families are supported:
- MySQL / MariaDB: `identifier`, table reference `database`.`table`
- PostgreSQL:      "identifier", table reference "schema"."table"

Literal rules (identical for both families unless noted):
- None            -> NULL
- bool            -> TRUE / FALSE (WHERE, SET and VALUES alike)
- int / Decimal / finite float -> decimal text, unquoted
- non-finite float -> 'NaN' / 'Infinity' / '-Infinity'
- str             -> '...' with ' doubled; no backslash handling
- bytes           -> MySQL X'hex', PostgreSQL '\\xhex'::bytea
- date / time     -> quoted ISO 8601 text
- dict / list     -> quoted JSON text
"""

__all__ = [
    "Dialect",
    "Driver",
    "MySQLDialect",
    "PostgresDialect",
    "TableRef",
    "get_dialect",
]


class Driver(Enum):
    MYSQL = "mysql"
    MARIADB = "mariadb"
    POSTGRESQL = "postgresql"

    @classmethod
    def parse(cls, value: str | Driver) -> Driver:
        if isinstance(value, Driver):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ValueError(f"unsupported driver: {value}") from e


def _quote_string(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


class Dialect(ABC):
    """Quoting / escaping strategy of one SQL family."""

    quote_char = '"'
    name = "generic"

    def quote_identifier(self, name: str) -> str:
        q = self.quote_char
        return f"{q}{name.replace(q, q + q)}{q}"

    @abstractmethod
    def escape_bytes(self, value: bytes) -> str:
        """Literal for a binary value."""

    def escape_value(self, value: Any) -> str:
        if value is None:
            return "NULL"
        # bool は int のサブクラスなので先に判定
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if math.isnan(value):
                return "'NaN'"
            if math.isinf(value):
                return "'Infinity'" if value > 0 else "'-Infinity'"
            return repr(value)
        if isinstance(value, Decimal):
            if not value.is_finite():
                return _quote_string(str(value))
            return str(value)
        if isinstance(value, str):
            return _quote_string(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return self.escape_bytes(bytes(value))
        if isinstance(value, (dt.datetime, dt.date, dt.time)):
            return _quote_string(value.isoformat())
        if isinstance(value, (dict, list, tuple)):
            return _quote_string(json.dumps(value, ensure_ascii=False, default=str))
        return _quote_string(str(value))

    def qualify(self, table: TableRef) -> str:
        """schema.table when a schema is set, otherwise database.table."""
        container = table.schema or table.database
        return f"{self.quote_identifier(container)}.{self.quote_identifier(table.name)}"


class MySQLDialect(Dialect):
    quote_char = "`"
    name = "mysql"

    def escape_bytes(self, value: bytes) -> str:
        return f"X'{value.hex()}'"


class PostgresDialect(Dialect):
    quote_char = '"'
    name = "postgresql"

    def escape_bytes(self, value: bytes) -> str:
        return f"'\\x{value.hex()}'::bytea"


_DIALECTS: dict[Driver, Dialect] = {
    Driver.MYSQL: MySQLDialect(),
    Driver.MARIADB: MySQLDialect(),
    Driver.POSTGRESQL: PostgresDialect(),
}


def get_dialect(driver: str | Driver) -> Dialect:
    return _DIALECTS[Driver.parse(driver)]


@dataclass(frozen=True)
class TableRef:
    """The browsed table.

    database is the connection database (MySQL: the table's database);
    schema is the PostgreSQL schema. The query boundary receives
    database only when a schema is set, and context = schema or database.
    """
    name: str
    database: str
    schema: str | None = None

    def quoted(self, dialect: Dialect) -> str:
        return dialect.qualify(self)

    @property
    def execution_database(self) -> str | None:
        return self.database if self.schema else None

    @property
    def execution_context(self) -> str:
        return self.schema or self.database
