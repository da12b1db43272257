from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

"""Row identity derived from primary key values.

The identity hash is a plain equality surrogate (not cryptographic) used to
merge edits that target the same logical row:

    primary_key_hash({"id": 5})             -> 'id:5'
    primary_key_hash({"b": 2, "a": 1})      -> 'a:1|b:2'
    primary_key_hash({"code": None})        -> 'code:null'
    primary_key_hash({"code": "null"})      -> 'code:"null"'

Values carry their type in the textual form, so a NULL key never collides
with the string "null" and the integer 1 never collides with the string "1".
"""

__all__ = [
    "extract_primary_key_values",
    "primary_key_hash",
    "same_value",
]

PAIR_SEPARATOR = "|"


def _key_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"x'{bytes(value).hex()}'"
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)


def primary_key_hash(primary_key_values: Mapping[str, Any]) -> str:
    """Deterministic identity string for a set of primary key values.

    Keys are sorted so the result does not depend on mapping insertion order.
    An empty mapping (pending inserts) hashes to "".
    """
    return PAIR_SEPARATOR.join(
        f"{key}:{_key_text(primary_key_values[key])}" for key in sorted(primary_key_values)
    )


def extract_primary_key_values(row: Mapping[str, Any], primary_key_columns: Sequence[str]) -> dict[str, Any]:
    """Capture the primary key values of a loaded row (missing column -> None)."""
    return {col: row.get(col) for col in primary_key_columns}


def same_value(a: Any, b: Any) -> bool:
    """Cell value equality used for revert detection.

    Booleans are never equal to numbers here (True != 1), everything else
    follows ==.
    """
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if a is None or b is None:
        return a is b
    return bool(a == b)
