from __future__ import annotations

from tabledit.db.schema import get_columns, primary_key_columns
from tabledit.models.query_result import ColumnDetail


def test_mysql_columns(fake_executor, query_result):
    fake_executor.responses = [
        (
            "",
            query_result(
                ["COLUMN_NAME", "DATA_TYPE", "IS_NULLABLE", "COLUMN_KEY", "COLUMN_DEFAULT", "EXTRA"],
                [
                    ["id", "int", "NO", "PRI", None, "auto_increment"],
                    ["email", "varchar", "YES", "UNI", None, ""],
                    ["name", b"varchar", "YES", "", "anon", ""],
                ],
            ),
        )
    ]

    columns = get_columns(fake_executor, "mysql", "shop", None, "users")

    sql, database, context = fake_executor.calls[0]
    assert "information_schema.COLUMNS" in sql
    assert "TABLE_SCHEMA = 'shop' AND TABLE_NAME = 'users'" in sql
    assert database is None and context is None
    assert columns == [
        ColumnDetail(name="id", data_type="int", nullable=False, key="PRI", extra="auto_increment"),
        ColumnDetail(name="email", data_type="varchar", nullable=True, key="UNI"),
        ColumnDetail(name="name", data_type="varchar", nullable=True, default_value="anon"),
    ]
    assert primary_key_columns(columns) == ["id"]


def test_postgres_defaults_to_public_schema(fake_executor, query_result):
    fake_executor.responses = [
        ("", query_result(["column_name"], [["id", "integer", "NO", "PRI", "nextval('users_id_seq'::regclass)", "auto_increment"]]))
    ]

    columns = get_columns(fake_executor, "postgresql", "appdb", None, "users")

    sql = fake_executor.statements[0]
    assert "c.table_schema = 'public' AND c.table_name = 'users'" in sql
    assert "'PRIMARY KEY'" in sql
    assert columns[0].is_primary_key
    assert columns[0].extra == "auto_increment"


def test_table_name_literal_is_escaped(fake_executor):
    get_columns(fake_executor, "postgresql", "appdb", "sales", "o'rders")
    sql = fake_executor.statements[0]
    assert "c.table_name = 'o''rders'" in sql
    assert "c.table_schema = 'sales'" in sql


def test_composite_primary_key_order_kept():
    columns = [
        ColumnDetail(name="tenant", data_type="int", nullable=False, key="PRI"),
        ColumnDetail(name="note", data_type="text", nullable=True),
        ColumnDetail(name="id", data_type="int", nullable=False, key="PRI"),
    ]
    assert primary_key_columns(columns) == ["tenant", "id"]


def test_no_rows(fake_executor):
    assert get_columns(fake_executor, "mysql", "shop", None, "missing") == []
