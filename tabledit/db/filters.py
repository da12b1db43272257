from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ..models.filter_condition import FilterCondition, FilterOperator
from .dialect import Dialect, TableRef

"""Filter predicates and page / count queries for the paged table view.

Filter column names are user input. They are validated against
IDENTIFIER_PATTERN before being quoted into a query; a filter whose column
fails validation is dropped (and logged), never interpolated.
"""

__all__ = [
    "IDENTIFIER_PATTERN",
    "build_count_sql",
    "build_select_page_sql",
    "build_where_clause",
    "is_valid_identifier",
]

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_COMPARISONS: dict[FilterOperator, str] = {
    FilterOperator.EQUALS: "=",
    FilterOperator.NOT_EQUALS: "!=",
    FilterOperator.GT: ">",
    FilterOperator.GTE: ">=",
    FilterOperator.LT: "<",
    FilterOperator.LTE: "<=",
}


def is_valid_identifier(name: str) -> bool:
    return bool(IDENTIFIER_PATTERN.match(name or ""))


def _condition(f: FilterCondition, dialect: Dialect) -> str | None:
    if not is_valid_identifier(f.column):
        logger.warning(f"invalid column name rejected in filter: {f.column!r}")
        return None
    column = dialect.quote_identifier(f.column)
    value = f.value.replace("'", "''")
    op = f.operator
    if op in _COMPARISONS:
        return f"{column} {_COMPARISONS[op]} '{value}'"
    if op is FilterOperator.LIKE:
        return f"{column} LIKE '%{value}%'"
    if op is FilterOperator.NOT_LIKE:
        return f"{column} NOT LIKE '%{value}%'"
    if op is FilterOperator.IS_NULL:
        return f"{column} IS NULL"
    if op is FilterOperator.IS_NOT_NULL:
        return f"{column} IS NOT NULL"
    return None


def build_where_clause(filters: Sequence[FilterCondition], dialect: Dialect) -> str:
    """`WHERE c1 AND c2 ...` for the valid filters, "" when none survive."""
    conditions = [c for c in (_condition(f, dialect) for f in filters) if c is not None]
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


def _with_where(head: str, where: str) -> str:
    return f"{head} {where}" if where else head


def build_select_page_sql(
    table: TableRef,
    dialect: Dialect,
    filters: Sequence[FilterCondition],
    page: int,
    page_size: int,
) -> str:
    where = build_where_clause(filters, dialect)
    offset = page * page_size
    base = _with_where(f"SELECT * FROM {table.quoted(dialect)}", where)
    return f"{base} LIMIT {page_size} OFFSET {offset}"


def build_count_sql(table: TableRef, dialect: Dialect, filters: Sequence[FilterCondition]) -> str:
    where = build_where_clause(filters, dialect)
    return _with_where(f"SELECT COUNT(*) as count FROM {table.quoted(dialect)}", where)
