from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the table edit session.

These are the typed form of config/session.yml after validation by
tabledit.config.loader.
"""

__all__ = [
    "ConnectionConfig",
    "DEFAULT_LOG_DIR",
    "DEFAULT_PAGE_SIZE",
    "SessionConfig",
    "TableConfig",
]

DEFAULT_PAGE_SIZE = 100
DEFAULT_LOG_DIR = "./logs"


@dataclass(frozen=True)
class ConnectionConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    driver: str  # mysql | mariadb | postgresql
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class TableConfig:
    """The table browsed by the session.

    PostgreSQL tables are addressed as schema.table (schema defaults to
    "public" when omitted); MySQL tables as database.table.
    """
    name: str
    database: str
    schema: str | None = None


@dataclass(frozen=True)
class SessionConfig:
    """Root configuration object for one browsing session."""
    connection: ConnectionConfig
    table: TableConfig
    page_size: int = DEFAULT_PAGE_SIZE
    log_dir: str = DEFAULT_LOG_DIR
