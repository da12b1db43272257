from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import mysql.connector
import psycopg2
from psycopg2 import sql as pgsql

from ..models.config_models import ConnectionConfig
from ..models.query_result import ColumnInfo, QueryResult
from .dialect import Driver

"""Query execution boundary.

The edit session only needs one capability from the database side:

    execute(sql, database=None, context=None) -> QueryResult
    raises QueryExecutionError(message) on any backend error

database / context select where the statement runs and are passed through
unchanged for every statement of a batch:
- PostgreSQL: context is the schema, applied with SET search_path
- MySQL:      context (or database) is the USE target

Each statement runs in autocommit mode; no transaction spans a batch.
"""

__all__ = [
    "MySQLExecutor",
    "PostgresExecutor",
    "QueryExecutionError",
    "QueryExecutor",
    "connect_executor",
    "format_error_message",
    "resolve_mysql_params",
    "resolve_postgres_dsn",
]

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class QueryExecutionError(Exception):
    """Backend rejected or failed to run a statement."""

    def __init__(self, message: str, error_type: str = "QUERY_FAILED") -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type


def format_error_message(error: BaseException | str | None) -> str:
    """Readable message for any error raised around the query boundary."""
    if isinstance(error, QueryExecutionError):
        return error.message
    if isinstance(error, str):
        return error
    if isinstance(error, BaseException):
        text = str(error).strip()
        return text or UNEXPECTED_ERROR_MESSAGE
    return UNEXPECTED_ERROR_MESSAGE


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class QueryExecutor(ABC):
    """Base class of the execution boundary; subclasses implement execute()."""

    driver: Driver

    @abstractmethod
    def execute(self, sql: str, database: str | None = None, context: str | None = None) -> QueryResult:
        """Run one statement; backend errors surface as QueryExecutionError."""

    def close(self) -> None:
        pass

    def __enter__(self) -> QueryExecutor:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class PostgresExecutor(QueryExecutor):
    """psycopg2 backed executor (autocommit per statement)."""

    driver = Driver.POSTGRESQL

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.connection.autocommit = True

    @classmethod
    def connect(cls, dsn: str) -> PostgresExecutor:
        try:
            return cls(psycopg2.connect(dsn))
        except psycopg2.Error as e:
            raise QueryExecutionError(format_error_message(e), "CONNECTION_FAILED") from e

    def execute(self, sql: str, database: str | None = None, context: str | None = None) -> QueryResult:
        start = time.perf_counter()
        try:
            with self.connection.cursor() as cur:
                if context:
                    cur.execute(pgsql.SQL("SET search_path TO {}").format(pgsql.Identifier(context)))
                cur.execute(sql)
                if cur.description:
                    columns = [ColumnInfo(name=d.name, data_type=str(d.type_code)) for d in cur.description]
                    rows = [list(r) for r in cur.fetchall()]
                    affected = 0
                else:
                    columns, rows = [], []
                    affected = cur.rowcount if cur.rowcount and cur.rowcount > 0 else 0
        except psycopg2.Error as e:
            raise QueryExecutionError(format_error_message(e)) from e
        return QueryResult(columns=columns, rows=rows, affected_rows=affected, execution_time_ms=_elapsed_ms(start))

    def close(self) -> None:
        if not self.connection.closed:
            self.connection.close()


class MySQLExecutor(QueryExecutor):
    """mysql-connector-python backed executor (MySQL and MariaDB)."""

    driver = Driver.MYSQL

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.connection.autocommit = True

    @classmethod
    def connect(cls, params: Mapping[str, Any]) -> MySQLExecutor:
        try:
            return cls(mysql.connector.connect(**params))
        except mysql.connector.Error as e:
            raise QueryExecutionError(format_error_message(e), "CONNECTION_FAILED") from e

    def execute(self, sql: str, database: str | None = None, context: str | None = None) -> QueryResult:
        start = time.perf_counter()
        target = context or database
        cur = None
        failed = True
        try:
            # 切断済みの接続では cursor() 自体が OperationalError を送出する
            cur = self.connection.cursor()
            if target:
                cur.execute(f"USE `{target.replace('`', '``')}`")
            cur.execute(sql)
            if cur.with_rows:
                columns = [
                    ColumnInfo(name=d[0], data_type=mysql.connector.FieldType.get_info(d[1]) or "")
                    for d in cur.description
                ]
                rows = [list(r) for r in cur.fetchall()]
                affected = 0
            else:
                columns, rows = [], []
                affected = cur.rowcount if cur.rowcount and cur.rowcount > 0 else 0
            failed = False
        except mysql.connector.Error as e:
            raise QueryExecutionError(format_error_message(e)) from e
        finally:
            if cur is not None:
                self._close_cursor(cur, failed)
        return QueryResult(columns=columns, rows=rows, affected_rows=affected, execution_time_ms=_elapsed_ms(start))

    @staticmethod
    def _close_cursor(cur: Any, failed: bool) -> None:
        """Close cur; a close error is reported only when the statement itself succeeded."""
        try:
            cur.close()
        except mysql.connector.Error as e:
            if not failed:
                raise QueryExecutionError(format_error_message(e)) from e
            logger.debug(f"cursor close failed after statement error: {e}")

    def close(self) -> None:
        if self.connection.is_connected():
            self.connection.close()


def resolve_postgres_dsn(cfg: ConnectionConfig, env: Mapping[str, str] | None = None) -> str:
    """Resolve the PostgreSQL DSN.

    Priority: DATABASE_URL / PGDSN, config dsn, then PGHOST / PGPORT / PGUSER /
    PGPASSWORD / PGDATABASE with config values as fallback.
    """
    env = os.environ if env is None else env
    dsn = env.get("DATABASE_URL") or env.get("PGDSN") or cfg.dsn
    if dsn:
        return dsn
    host = env.get("PGHOST", cfg.host or "localhost")
    port = env.get("PGPORT", str(cfg.port) if cfg.port else "5432")
    user = env.get("PGUSER", cfg.user or "postgres")
    password = env.get("PGPASSWORD", cfg.password or "")
    database = env.get("PGDATABASE", cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def resolve_mysql_params(cfg: ConnectionConfig, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Resolve mysql.connector.connect() keyword arguments (MYSQL_* env first)."""
    env = os.environ if env is None else env
    params: dict[str, Any] = {
        "host": env.get("MYSQL_HOST", cfg.host or "localhost"),
        "port": int(env.get("MYSQL_PORT", cfg.port or 3306)),
        "user": env.get("MYSQL_USER", cfg.user or "root"),
        "password": env.get("MYSQL_PASSWORD", cfg.password or ""),
    }
    database = env.get("MYSQL_DB", cfg.database)
    if database:
        params["database"] = database
    return params


def connect_executor(cfg: ConnectionConfig, env: Mapping[str, str] | None = None) -> QueryExecutor:
    """Open a connection for the configured driver."""
    driver = Driver.parse(cfg.driver)
    if driver is Driver.POSTGRESQL:
        logger.debug("connecting to PostgreSQL")
        return PostgresExecutor.connect(resolve_postgres_dsn(cfg, env))
    logger.debug(f"connecting to {driver.value}")
    executor = MySQLExecutor.connect(resolve_mysql_params(cfg, env))
    executor.driver = driver
    return executor
