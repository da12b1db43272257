from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..db.dialect import Dialect, TableRef
from ..db.sql_generator import generate_insert_sql
from ..models.query_result import QueryResult

"""Export of a loaded page (CSV / JSON via pandas, SQL via the generator).

CSV: header row + one line per row, NULL written as an empty field.
JSON: array of {column: value} objects, NULL written as null.
SQL: one `INSERT INTO <table> (<cols>) VALUES (<vals>);` line per row,
rendered with the table's dialect (needs table and dialect).
"""

__all__ = [
    "ExportError",
    "SUPPORTED_FORMATS",
    "export_result",
    "to_dataframe",
    "to_insert_statements",
]

SUPPORTED_FORMATS = ("csv", "json", "sql")


class ExportError(Exception):
    pass


def to_dataframe(result: QueryResult) -> pd.DataFrame:
    """Column-ordered DataFrame of a query result (object dtype, values untouched)."""
    return pd.DataFrame(result.rows, columns=result.column_names, dtype=object)


def to_insert_statements(result: QueryResult, table: TableRef, dialect: Dialect) -> list[str]:
    columns = result.column_names
    return [f"{generate_insert_sql(table, dialect, dict(zip(columns, row)))};" for row in result.rows]


def export_result(
    result: QueryResult | None,
    path: Path | str,
    fmt: str | None = None,
    *,
    table: TableRef | None = None,
    dialect: Dialect | None = None,
) -> Path:
    """Write a query result to path; fmt defaults to the file suffix."""
    if result is None or not result.columns or not result.rows:
        raise ExportError("No data to export")
    path = Path(path)
    fmt = (fmt or path.suffix.lstrip(".")).lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ExportError(f"unsupported export format: {fmt or '(none)'}")

    if fmt == "sql":
        if table is None or dialect is None:
            raise ExportError("sql export needs the table and its dialect")
        lines = to_insert_statements(result, table, dialect)
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    df = to_dataframe(result)
    if fmt == "csv":
        df.to_csv(path, index=False)
    else:
        df.to_json(path, orient="records", force_ascii=False, date_format="iso", indent=2)
    return path
