from __future__ import annotations

import logging

import pytest

from tabledit.db.filters import (
    build_count_sql,
    build_select_page_sql,
    build_where_clause,
    is_valid_identifier,
)
from tabledit.models.filter_condition import FilterCondition, FilterOperator


@pytest.mark.parametrize("name", ["id", "_private", "$col", "Col_2", "a$b"])
def test_valid_identifiers(name):
    assert is_valid_identifier(name)


@pytest.mark.parametrize("name", ["", "1col", "name; DROP TABLE users", "a-b", 'a"b', "a b"])
def test_invalid_identifiers(name):
    assert not is_valid_identifier(name)


class TestWhereClause:
    @pytest.mark.parametrize(
        "operator, expected",
        [
            (FilterOperator.EQUALS, "\"name\" = 'Bob'"),
            (FilterOperator.NOT_EQUALS, "\"name\" != 'Bob'"),
            (FilterOperator.LIKE, "\"name\" LIKE '%Bob%'"),
            (FilterOperator.NOT_LIKE, "\"name\" NOT LIKE '%Bob%'"),
            (FilterOperator.GT, "\"name\" > 'Bob'"),
            (FilterOperator.GTE, "\"name\" >= 'Bob'"),
            (FilterOperator.LT, "\"name\" < 'Bob'"),
            (FilterOperator.LTE, "\"name\" <= 'Bob'"),
            (FilterOperator.IS_NULL, '"name" IS NULL'),
            (FilterOperator.IS_NOT_NULL, '"name" IS NOT NULL'),
        ],
    )
    def test_operators(self, pg_dialect, operator, expected):
        where = build_where_clause([FilterCondition("name", operator, "Bob")], pg_dialect)
        assert where == f"WHERE {expected}"

    def test_value_quotes_are_doubled(self, mysql_dialect):
        where = build_where_clause([FilterCondition("name", FilterOperator.EQUALS, "O'Brien")], mysql_dialect)
        assert where == "WHERE `name` = 'O''Brien'"

    def test_conditions_joined_with_and(self, mysql_dialect):
        filters = [
            FilterCondition("name", FilterOperator.LIKE, "a"),
            FilterCondition("email", FilterOperator.IS_NOT_NULL),
        ]
        assert build_where_clause(filters, mysql_dialect) == "WHERE `name` LIKE '%a%' AND `email` IS NOT NULL"

    def test_invalid_column_dropped_and_logged(self, pg_dialect, caplog):
        filters = [
            FilterCondition("name; DROP TABLE users", FilterOperator.EQUALS, "x"),
            FilterCondition("id", FilterOperator.GT, "5"),
        ]
        with caplog.at_level(logging.WARNING, logger="tabledit"):
            where = build_where_clause(filters, pg_dialect)
        assert where == "WHERE \"id\" > '5'"
        assert "DROP TABLE" not in where
        assert any("invalid column name" in r.getMessage() for r in caplog.records)

    def test_no_surviving_filters(self, pg_dialect):
        assert build_where_clause([], pg_dialect) == ""
        assert build_where_clause([FilterCondition("1bad", FilterOperator.EQUALS, "x")], pg_dialect) == ""


class TestPageQueries:
    def test_page_without_filters(self, pg_table, pg_dialect):
        sql = build_select_page_sql(pg_table, pg_dialect, [], 0, 100)
        assert sql == 'SELECT * FROM "public"."users" LIMIT 100 OFFSET 0'

    def test_page_offset_and_filter(self, mysql_table, mysql_dialect):
        filters = [FilterCondition("name", FilterOperator.EQUALS, "Bob")]
        sql = build_select_page_sql(mysql_table, mysql_dialect, filters, 2, 100)
        assert sql == "SELECT * FROM `shop`.`users` WHERE `name` = 'Bob' LIMIT 100 OFFSET 200"

    def test_count(self, pg_table, pg_dialect):
        assert build_count_sql(pg_table, pg_dialect, []) == 'SELECT COUNT(*) as count FROM "public"."users"'
        filters = [FilterCondition("email", FilterOperator.IS_NULL)]
        assert (
            build_count_sql(pg_table, pg_dialect, filters)
            == 'SELECT COUNT(*) as count FROM "public"."users" WHERE "email" IS NULL'
        )


def test_takes_value():
    assert FilterOperator.EQUALS.takes_value
    assert not FilterOperator.IS_NULL.takes_value
    assert not FilterOperator.IS_NOT_NULL.takes_value
