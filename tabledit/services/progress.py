from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Commit progress bar (tqdm, TTY only).

While a commit runs its statements the bar shows `Committing (UPDATE) 3/7`.
A rejected statement leaves the count where it is and marks the bar with
the failing statement number. Off a terminal (CI, pipes) no bar is created,
keeping ANSI control sequences out of captured output.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One bar per commit; a commit with no statements never shows one."""

    def __init__(self, total_statements: int, *, description: str = "Committing") -> None:
        self.total_statements = total_statements
        self.description = description
        self.current_statement = 0
        self.enabled = total_statements > 0 and is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        if self.enabled:
            self.pbar = tqdm(
                total=total_statements,
                desc=description,
                unit="stmt",
                disable=False,
                leave=False,  # 終了後は SUMMARY 行だけ残す
                position=0,
                ncols=80,
                ascii=True,
            )

    def start_statement(self, kind: str) -> None:
        """kind is the statement's leading keyword (DELETE / UPDATE / INSERT)."""
        self.current_statement += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({kind})")

    def finish_statement(self, success: bool = True) -> None:
        if self.pbar is None:
            return
        if success:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
        else:
            self.pbar.set_postfix(failed=self.current_statement)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
