# Shared pytest fixtures
from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from tabledit.db.dialect import Driver, TableRef, get_dialect
from tabledit.db.executor import QueryExecutionError, QueryExecutor
from tabledit.logging.init import LOGGER_NAME, reset_logging
from tabledit.models.query_result import ColumnDetail, ColumnInfo, QueryResult


class FakeExecutor(QueryExecutor):
    """In-memory query boundary.

    - calls: (sql, database, context) for every execute()
    - failures: sql substring -> error message (raises QueryExecutionError)
    - responses: (sql prefix, QueryResult) pairs, first match wins
    - on_execute: hook called with the sql before anything else
    """

    driver = Driver.POSTGRESQL

    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None, str | None]] = []
        self.failures: dict[str, str] = {}
        self.responses: list[tuple[str, QueryResult]] = []
        self.on_execute: Callable[[str], None] | None = None
        self.closed = False

    @property
    def statements(self) -> list[str]:
        return [c[0] for c in self.calls]

    def execute(self, sql: str, database: str | None = None, context: str | None = None) -> QueryResult:
        self.calls.append((sql, database, context))
        if self.on_execute is not None:
            self.on_execute(sql)
        for fragment, message in self.failures.items():
            if fragment in sql:
                raise QueryExecutionError(message)
        for prefix, result in self.responses:
            if sql.startswith(prefix):
                return result
        return QueryResult(affected_rows=1)

    def close(self) -> None:
        self.closed = True


def make_result(columns: list[str], rows: list[list]) -> QueryResult:
    return QueryResult(columns=[ColumnInfo(name=c) for c in columns], rows=rows)


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Let caplog see tabledit.* records; drop handlers left by setup_logging()."""

    def _reset() -> None:
        reset_logging()
        app_logger = logging.getLogger(LOGGER_NAME)
        for handler in app_logger.handlers[:]:
            app_logger.removeHandler(handler)
        app_logger.propagate = True
        app_logger.setLevel(logging.NOTSET)

    _reset()
    yield
    _reset()


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def pg_table() -> TableRef:
    return TableRef(name="users", database="appdb", schema="public")


@pytest.fixture()
def mysql_table() -> TableRef:
    return TableRef(name="users", database="shop")


@pytest.fixture()
def pg_dialect():
    return get_dialect(Driver.POSTGRESQL)


@pytest.fixture()
def mysql_dialect():
    return get_dialect(Driver.MYSQL)


@pytest.fixture()
def users_columns() -> list[ColumnDetail]:
    return [
        ColumnDetail(name="id", data_type="integer", nullable=False, key="PRI", extra="auto_increment"),
        ColumnDetail(name="name", data_type="text", nullable=True),
        ColumnDetail(name="email", data_type="text", nullable=True, key="UNI"),
    ]


@pytest.fixture()
def users_page() -> QueryResult:
    return make_result(
        ["id", "name", "email"],
        [
            [1, "Alice", "alice@example.com"],
            [2, "Bob", "bob@example.com"],
            [3, "O'Brien", None],
        ],
    )


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """connection:
  driver: postgresql
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
table:
  name: users
  database: appdb
  schema: public
page_size: 2
log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "session.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def query_result() -> Callable[[list[str], list[list]], QueryResult]:
    """Factory: query_result(["id", "name"], [[1, "a"]])."""
    return make_result
