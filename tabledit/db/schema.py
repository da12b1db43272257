from __future__ import annotations

import logging
from collections.abc import Sequence

from ..models.query_result import ColumnDetail
from .dialect import Driver, get_dialect
from .executor import QueryExecutor

"""Column metadata discovery through information_schema.

Only the primary key columns matter to the edit session; the remaining
fields are carried for display. PostgreSQL keys are reported with the MySQL
COLUMN_KEY vocabulary ("PRI" / "UNI") so both drivers look the same.
"""

__all__ = [
    "get_columns",
    "primary_key_columns",
]

logger = logging.getLogger(__name__)

_MYSQL_COLUMNS_SQL = """
SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_KEY, COLUMN_DEFAULT, EXTRA
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = {schema} AND TABLE_NAME = {table}
ORDER BY ORDINAL_POSITION
"""

_POSTGRES_COLUMNS_SQL = """
SELECT
    c.column_name,
    CASE WHEN c.data_type = 'ARRAY' THEN c.udt_name ELSE c.data_type END AS data_type,
    c.is_nullable,
    CASE
        WHEN pk.column_name IS NOT NULL THEN 'PRI'
        WHEN u.column_name IS NOT NULL THEN 'UNI'
        ELSE NULL
    END AS column_key,
    c.column_default,
    CASE WHEN c.column_default LIKE 'nextval%' THEN 'auto_increment' ELSE NULL END AS extra
FROM information_schema.columns c
LEFT JOIN (
    SELECT ku.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage ku
      ON tc.constraint_name = ku.constraint_name AND tc.table_schema = ku.table_schema
    WHERE tc.table_schema = {schema} AND tc.table_name = {table} AND tc.constraint_type = 'PRIMARY KEY'
) pk ON c.column_name = pk.column_name
LEFT JOIN (
    SELECT DISTINCT ku.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage ku
      ON tc.constraint_name = ku.constraint_name AND tc.table_schema = ku.table_schema
    WHERE tc.table_schema = {schema} AND tc.table_name = {table} AND tc.constraint_type = 'UNIQUE'
) u ON c.column_name = u.column_name
WHERE c.table_schema = {schema} AND c.table_name = {table}
ORDER BY c.ordinal_position
"""


def _text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    text = str(value)
    return text or None


def get_columns(
    executor: QueryExecutor,
    driver: str | Driver,
    database: str,
    schema: str | None,
    table: str,
) -> list[ColumnDetail]:
    """List the columns of a table in ordinal order.

    MySQL ignores schema (the database is the schema); PostgreSQL uses
    schema, defaulting to "public".
    """
    driver = Driver.parse(driver)
    dialect = get_dialect(driver)
    if driver is Driver.POSTGRESQL:
        template = _POSTGRES_COLUMNS_SQL
        container = schema or "public"
    else:
        template = _MYSQL_COLUMNS_SQL
        container = database
    query = template.format(schema=dialect.escape_value(container), table=dialect.escape_value(table))
    result = executor.execute(query)

    columns = []
    for row in result.rows:
        name, data_type, nullable, key, default, extra = (list(row) + [None] * 6)[:6]
        columns.append(
            ColumnDetail(
                name=_text(name) or "",
                data_type=_text(data_type) or "",
                nullable=_text(nullable) == "YES",
                key=_text(key),
                default_value=_text(default),
                extra=_text(extra),
            )
        )
    logger.debug(f"get_columns {container}.{table}: {len(columns)} columns")
    return columns


def primary_key_columns(columns: Sequence[ColumnDetail]) -> list[str]:
    return [c.name for c in columns if c.is_primary_key]
