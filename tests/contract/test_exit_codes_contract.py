from __future__ import annotations

from tabledit.cli.__main__ import EXIT_COMMIT_FAILED, EXIT_FATAL, EXIT_SUCCESS

"""Exit code contract (0 success / 1 fatal / 2 commit failed)."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_COMMIT_FAILED) == (0, 1, 2)
