from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Commit error log.

Rejected commit statements are recorded as JSON Lines, one ErrorRecord per
line, in `<log_dir>/commit-errors-YYYYMMDD-HHMMSS.log`. The stamp (UTC) is
taken when the first record is written, so a session that never fails
creates no file; later failures of the same session append to that file.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

DEFAULT_LOG_DIR = Path("./logs")
FILE_PREFIX = "commit-errors"
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords until flush() appends them to the log file."""

    def __init__(self, log_dir: Path | str | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Log file of this buffer (log_dir is created on first access)."""
        if self._path is None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._path = self.log_dir / f"{FILE_PREFIX}-{stamp}.log"
        return self._path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[ErrorRecord]:
        return iter(list(self._pending))

    def flush(self) -> Path | None:
        """Write pending records; returns the file, or None when there was nothing to write."""
        if not self._pending:
            return None
        path = self.file_path
        lines = "".join(f"{record.to_json_line()}\n" for record in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
