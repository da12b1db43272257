from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from tabledit.models.query_result import QueryResult
from tabledit.services.export import ExportError, export_result, to_dataframe


def test_to_dataframe_keeps_column_order_and_values(users_page):
    df = to_dataframe(users_page)
    assert list(df.columns) == ["id", "name", "email"]
    assert df.iloc[2]["name"] == "O'Brien"
    assert df.iloc[2]["email"] is None


def test_export_csv(users_page, tmp_path: Path):
    path = export_result(users_page, tmp_path / "users.csv")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,name,email"
    assert lines[1] == "1,Alice,alice@example.com"
    assert lines[3] == "3,O'Brien,"


def test_export_json(users_page, tmp_path: Path):
    path = export_result(users_page, tmp_path / "page.out", fmt="JSON")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[0] == {"id": 1, "name": "Alice", "email": "alice@example.com"}
    assert data[2]["email"] is None


def test_export_json_non_ascii(query_result, tmp_path: Path):
    result = query_result(["id", "name"], [[1, "山田"]])
    path = export_result(result, tmp_path / "u.json")
    assert "山田" in path.read_text(encoding="utf-8")


def test_export_decimal_as_text_in_csv(query_result, tmp_path: Path):
    result = query_result(["price"], [[Decimal("9.90")]])
    path = export_result(result, tmp_path / "p.csv")
    assert path.read_text(encoding="utf-8").splitlines() == ["price", "9.90"]


@pytest.mark.parametrize("result", [None, QueryResult()])
def test_nothing_to_export(result, tmp_path: Path):
    with pytest.raises(ExportError, match="No data to export"):
        export_result(result, tmp_path / "x.csv")


def test_unsupported_format(users_page, tmp_path: Path):
    with pytest.raises(ExportError, match="unsupported export format: xlsx"):
        export_result(users_page, tmp_path / "x.xlsx")
    with pytest.raises(ExportError, match=r"\(none\)"):
        export_result(users_page, tmp_path / "noext")


def test_export_sql_postgres(users_page, pg_table, pg_dialect, tmp_path: Path):
    path = export_result(users_page, tmp_path / "users.sql", table=pg_table, dialect=pg_dialect)
    assert path.read_text(encoding="utf-8").splitlines() == [
        'INSERT INTO "public"."users" ("id", "name", "email") VALUES (1, \'Alice\', \'alice@example.com\');',
        'INSERT INTO "public"."users" ("id", "name", "email") VALUES (2, \'Bob\', \'bob@example.com\');',
        'INSERT INTO "public"."users" ("id", "name", "email") VALUES (3, \'O\'\'Brien\', NULL);',
    ]


def test_export_sql_mysql_uses_backticks(query_result, mysql_table, mysql_dialect, tmp_path: Path):
    result = query_result(["id", "active", "data"], [[7, True, b"\x01\xff"]])
    path = export_result(result, tmp_path / "dump.out", fmt="sql", table=mysql_table, dialect=mysql_dialect)
    assert path.read_text(encoding="utf-8") == (
        "INSERT INTO `shop`.`users` (`id`, `active`, `data`) VALUES (7, TRUE, X'01ff');\n"
    )


def test_export_sql_needs_table_and_dialect(users_page, tmp_path: Path):
    with pytest.raises(ExportError, match="needs the table"):
        export_result(users_page, tmp_path / "users.sql")
    assert not (tmp_path / "users.sql").exists()
