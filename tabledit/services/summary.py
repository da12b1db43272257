from __future__ import annotations

from ..models.commit_result import CommitResult

"""SUMMARY line rendering for commits.

Format:
SUMMARY table={table} statements={n} executed={k} status={success|failed} elapsed_sec={s}
"""

__all__ = [
    "render_commit_summary",
]


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_commit_summary(result: CommitResult) -> str:
    """Render the SUMMARY line of a commit attempt.

    Examples:
        >>> r = CommitResult(table='"public"."users"', statements=["a", "b"], executed=2, elapsed_seconds=0.5)
        >>> render_commit_summary(r)
        'SUMMARY table="public"."users" statements=2 executed=2 status=success elapsed_sec=0.5'
    """
    status = "success" if result.success else "failed"
    return (
        f"SUMMARY table={result.table} statements={len(result.statements)} "
        f"executed={result.executed} status={status} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
