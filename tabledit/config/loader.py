from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_LOG_DIR,
    DEFAULT_PAGE_SIZE,
    ConnectionConfig,
    SessionConfig,
    TableConfig,
)

"""Session config loader.

Responsibilities:
- Load YAML config (config/session.yml by default)
- Validate against session_schema.json (shipped next to this module)
- Apply defaults (page_size=100, log_dir=./logs, schema=None)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "session_schema.json"
DEFAULT_CONFIG_PATH = Path("config/session.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing keys, wrong types, unknown
            keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> SessionConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    conn_raw = data["connection"]
    table_raw = data["table"]
    connection = ConnectionConfig(
        driver=conn_raw["driver"],
        host=conn_raw.get("host"),
        port=conn_raw.get("port"),
        user=conn_raw.get("user"),
        password=conn_raw.get("password"),
        database=conn_raw.get("database"),
        dsn=conn_raw.get("dsn"),
    )
    table = TableConfig(
        name=table_raw["name"],
        database=table_raw["database"],
        schema=table_raw.get("schema"),
    )
    return SessionConfig(
        connection=connection,
        table=table,
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        log_dir=data.get("log_dir", DEFAULT_LOG_DIR),
    )
