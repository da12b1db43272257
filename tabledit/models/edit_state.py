from __future__ import annotations

from enum import Enum

"""Edit session lifecycle states.

State transitions:
    VIEWING <-> EDITING -> COMMITTING -> EDITING (failure: ledger kept, error set)
                                      -> EDITING (success: ledger cleared)
"""

__all__ = [
    "SessionState",
]


class SessionState(Enum):
    """Lifecycle of an edit session.

    - VIEWING: read-only browsing, edits rejected
    - EDITING: edit mode, ledger may hold pending changes
    - COMMITTING: statements in flight, edits and a second commit rejected
    """
    VIEWING = "viewing"
    EDITING = "editing"
    COMMITTING = "committing"
