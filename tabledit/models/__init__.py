"""Domain models for the table edit session.

This package contains the dataclasses shared by the ledger, the SQL generator,
the edit session controller and the paged table view.
"""

from .commit_result import CommitResult
from .config_models import ConnectionConfig, SessionConfig, TableConfig
from .edit_state import SessionState
from .error_record import ErrorRecord
from .filter_condition import FilterCondition, FilterOperator
from .query_result import ColumnDetail, ColumnInfo, QueryResult
from .row_change import CellEdit, ChangeType, PendingRowChange, Row

__all__ = [
    # Configuration models
    "ConnectionConfig",
    "SessionConfig",
    "TableConfig",
    # Ledger models
    "CellEdit",
    "ChangeType",
    "PendingRowChange",
    "Row",
    # Session / commit models
    "CommitResult",
    "ErrorRecord",
    "SessionState",
    # Query boundary models
    "ColumnDetail",
    "ColumnInfo",
    "FilterCondition",
    "FilterOperator",
    "QueryResult",
]
