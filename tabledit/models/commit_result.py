from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

"""Commit result model.

A CommitResult records what one commit attempt did: the generated statements,
how many of them the database accepted, and the failure (if any). Because the
statements run one at a time without a wrapping transaction, executed > 0 on a
failed commit means the remote table was partially modified.
"""

__all__ = [
    "CommitResult",
]


@dataclass(frozen=True)
class CommitResult:
    table: str  # quoted table reference
    statements: list[str] = field(default_factory=list)
    executed: int = 0  # 成功した文の数
    error: str | None = None
    failed_index: int | None = None  # 0-based index of the failing statement
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def partially_applied(self) -> bool:
        """True when a failed commit already changed the remote table."""
        return not self.success and self.executed > 0

    @property
    def failed_statement(self) -> str | None:
        if self.failed_index is None:
            return None
        return self.statements[self.failed_index]
