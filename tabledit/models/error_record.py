from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for commit error logging.

This module defines the ErrorRecord dataclass written to the JSON Lines commit
error log whenever a statement of a commit batch is rejected by the database.
statement_index=-1 is used for failures that happen before any statement runs
(e.g. statement generation).

The record shape is fixed by tabledit/logging/error_log_schema.json
(additionalProperties: false).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        table: Quoted table reference the commit targeted
        statement_index: 0-based index of the failing statement, -1 if unknown
        statement: SQL text of the failing statement ("" if unknown)
        error_type: Error classification in UPPER_SNAKE_CASE format
        db_message: Database error message or description
    """
    timestamp: str  # ISO8601 UTC
    table: str
    statement_index: int  # 不明な場合 -1 許容
    statement: str
    error_type: str  # UPPER_SNAKE
    db_message: str

    @staticmethod
    def create(
        table: str,
        statement_index: int,
        statement: str,
        error_type: str,
        db_message: str,
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            table=table,
            statement_index=statement_index,
            statement=statement,
            error_type=error_type,
            db_message=db_message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
