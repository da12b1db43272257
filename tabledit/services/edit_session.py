from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from ..db.dialect import Dialect, TableRef
from ..db.executor import QueryExecutionError, QueryExecutor
from ..db.schema import primary_key_columns as _primary_key_columns
from ..db.sql_generator import generate_commit_statements
from ..logging.error_log import ErrorLogBuffer
from ..models.commit_result import CommitResult
from ..models.edit_state import SessionState
from ..models.error_record import ErrorRecord
from ..models.query_result import ColumnDetail
from ..models.row_change import PendingRowChange, Row
from .identity import extract_primary_key_values
from .ledger import ChangeLedger
from .progress import ProgressTracker

"""Edit session controller.

One controller per browsed table, owned by the view that opened the table.
It wraps the change ledger with the edit-mode state machine and drives the
commit:

    1. is_committing = True, commit_error cleared
    2. statements generated (DELETE*, UPDATE*, INSERT*)
    3. executed one by one through the query executor, stopping at the
       first QueryExecutionError
    4. success: ledger cleared, is_committing = False, on_success() (reload)
    5. failure: commit_error set, is_committing = False, ledger untouched

There is no wrapping transaction: statements that ran before a failure stay
applied on the server. Re-running the commit replays them, so callers should
refresh and inspect the table first.

QueryExecutionError never propagates out of commit(). Misuse (edits outside
edit mode, edits or a second commit while committing) raises EditSessionError.
"""

__all__ = [
    "EditSessionController",
    "EditSessionError",
]

logger = logging.getLogger(__name__)


class EditSessionError(Exception):
    """Operation not allowed in the current session state."""
    pass


def _leading_keyword(statement: str) -> str:
    return statement.split(" ", 1)[0].upper()


class EditSessionController:
    def __init__(
        self,
        executor: QueryExecutor,
        table: TableRef,
        dialect: Dialect,
        primary_key_columns: Sequence[str],
        *,
        error_log: ErrorLogBuffer | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.executor = executor
        self.table = table
        self.dialect = dialect
        self.primary_key_columns: list[str] = list(primary_key_columns)
        self.ledger = ChangeLedger(id_factory=id_factory)
        self.error_log = error_log
        self.is_edit_mode = False
        self.is_committing = False
        self.commit_error: str | None = None
        self.last_result: CommitResult | None = None

    @classmethod
    def from_columns(
        cls,
        executor: QueryExecutor,
        table: TableRef,
        dialect: Dialect,
        columns: Iterable[ColumnDetail],
        **kwargs: Any,
    ) -> EditSessionController:
        """Create the session from column metadata (key == "PRI" columns)."""
        return cls(executor, table, dialect, _primary_key_columns(list(columns)), **kwargs)

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self.is_committing:
            return SessionState.COMMITTING
        if self.is_edit_mode:
            return SessionState.EDITING
        return SessionState.VIEWING

    @property
    def can_edit(self) -> bool:
        """Tables without a discoverable primary key are read-only."""
        return bool(self.primary_key_columns)

    @property
    def pending_changes(self) -> list[PendingRowChange]:
        return self.ledger.changes

    def has_pending_changes(self) -> bool:
        return self.ledger.has_changes()

    def _require_not_committing(self, action: str) -> None:
        if self.is_committing:
            raise EditSessionError(f"cannot {action} while a commit is in progress")

    def _require_editable(self, action: str) -> None:
        self._require_not_committing(action)
        if not self.is_edit_mode:
            raise EditSessionError(f"cannot {action}: edit mode is off")

    def enter_edit_mode(self) -> None:
        self._require_not_committing("enter edit mode")
        if not self.can_edit:
            raise EditSessionError(f"table {self.table.quoted(self.dialect)} has no primary key; editing disabled")
        logger.debug(f"edit mode on: {self.table.quoted(self.dialect)}")
        self.is_edit_mode = True

    def exit_edit_mode(self) -> None:
        """Leave edit mode. Pending changes are kept; warning the user is the caller's job."""
        self._require_not_committing("exit edit mode")
        if self.has_pending_changes():
            logger.debug(f"edit mode off with {len(self.ledger)} pending change(s)")
        self.is_edit_mode = False

    # -- ledger operations -------------------------------------------------

    def record_cell_edit(
        self,
        row_index: int,
        primary_key_values: Mapping[str, Any],
        column_name: str,
        original_value: Any,
        new_value: Any,
        original_row: Row | None = None,
    ) -> PendingRowChange | None:
        self._require_editable("edit a cell")
        if column_name in self.primary_key_columns:
            raise EditSessionError(f"primary key column {column_name!r} cannot be edited on an existing row")
        logger.debug(f"cell edit row={row_index} column={column_name} {original_value!r} -> {new_value!r}")
        return self.ledger.record_cell_edit(
            row_index, primary_key_values, column_name, original_value, new_value, original_row
        )

    def edit_cell(self, row_index: int, row: Row, column_name: str, new_value: Any) -> PendingRowChange | None:
        """record_cell_edit() for a loaded row (primary key values taken from the row)."""
        pk_values = extract_primary_key_values(row, self.primary_key_columns)
        return self.record_cell_edit(row_index, pk_values, column_name, row.get(column_name), new_value, row)

    def add_new_row(self, columns: Iterable[str]) -> PendingRowChange:
        """Add a pending insert with every column set to None."""
        self._require_editable("add a row")
        template = {name: None for name in columns}
        if not template:
            raise EditSessionError("cannot add row: no column information available")
        change = self.ledger.add_new_row(template)
        logger.debug(f"new row added: {change.id} ({len(template)} columns)")
        return change

    def update_new_row_cell(self, change_id: str, column_name: str, new_value: Any) -> PendingRowChange | None:
        self._require_editable("edit a new row")
        return self.ledger.update_new_row_cell(change_id, column_name, new_value)

    def mark_row_for_deletion(
        self,
        row_index: int,
        primary_key_values: Mapping[str, Any],
        original_row: Row | None = None,
    ) -> PendingRowChange:
        self._require_editable("delete a row")
        logger.debug(f"row marked for deletion row={row_index} pk={dict(primary_key_values)}")
        return self.ledger.mark_row_for_deletion(row_index, primary_key_values, original_row)

    def delete_row(self, row_index: int, row: Row) -> PendingRowChange:
        pk_values = extract_primary_key_values(row, self.primary_key_columns)
        return self.mark_row_for_deletion(row_index, pk_values, row)

    def _remove(self, change_id: str, kind: str) -> bool:
        self._require_editable(f"remove a pending {kind}")
        change = self.ledger.get(change_id)
        if change is None or change.type.value != kind:
            return False
        return self.ledger.remove_change(change_id)

    def undo_delete(self, change_id: str) -> bool:
        return self._remove(change_id, "delete")

    def remove_new_row(self, change_id: str) -> bool:
        return self._remove(change_id, "insert")

    def discard_all_changes(self) -> int:
        """Drop every pending change and the last commit error."""
        self._require_not_committing("discard changes")
        count = self.ledger.discard_all()
        self.commit_error = None
        if count:
            logger.info(f"discarded {count} pending change(s)")
        return count

    # -- commit ------------------------------------------------------------

    def preview_statements(self) -> list[str]:
        """The statements commit() would execute right now."""
        return generate_commit_statements(self.table, self.dialect, self.ledger.changes)

    def _record_failure(self, index: int, statement: str, error: QueryExecutionError) -> None:
        if self.error_log is None:
            return
        self.error_log.append(
            ErrorRecord.create(
                table=self.table.quoted(self.dialect),
                statement_index=index,
                statement=statement,
                error_type=error.error_type,
                db_message=error.message,
            )
        )
        try:
            self.error_log.flush()
        except OSError as e:
            logger.warning(f"failed to write commit error log: {e}")

    def commit(self, on_success: Callable[[], Any] | None = None) -> CommitResult:
        """Execute the pending changes.

        on_success runs after the ledger is cleared and is_committing is reset;
        the paged view passes its reload here so the grid shows server state.
        """
        if self.is_committing:
            raise EditSessionError("commit already in progress")

        table_ref = self.table.quoted(self.dialect)
        self.is_committing = True
        self.commit_error = None
        start = datetime.now(UTC)
        statements: list[str] = []
        executed = 0
        failure: QueryExecutionError | None = None
        failed_index: int | None = None

        try:
            statements = generate_commit_statements(self.table, self.dialect, self.ledger.changes)
            logger.debug(f"committing {len(statements)} statement(s) to {table_ref}")
            with ProgressTracker(len(statements)) as progress:
                for i, statement in enumerate(statements):
                    progress.start_statement(_leading_keyword(statement))
                    logger.debug(f"execute [{i + 1}/{len(statements)}] {statement}")
                    try:
                        self.executor.execute(
                            statement,
                            self.table.execution_database,
                            self.table.execution_context,
                        )
                    except QueryExecutionError as e:
                        progress.finish_statement(success=False)
                        failure = e
                        failed_index = i
                        break
                    progress.finish_statement()
                    executed += 1
        finally:
            self.is_committing = False

        end = datetime.now(UTC)
        elapsed = (end - start).total_seconds()

        if failure is not None and failed_index is not None:
            self.commit_error = failure.message
            logger.error(f"commit failed at statement {failed_index + 1}/{len(statements)}: {failure.message}")
            if executed:
                logger.warning(f"{executed} statement(s) were already applied to {table_ref}; refresh before retrying")
            self._record_failure(failed_index, statements[failed_index], failure)
            result = CommitResult(
                table=table_ref,
                statements=statements,
                executed=executed,
                error=failure.message,
                failed_index=failed_index,
                start_time=start,
                end_time=end,
                elapsed_seconds=elapsed,
            )
            self.last_result = result
            return result

        self.ledger.discard_all()
        self.commit_error = None
        logger.info(f"committed {executed} change(s) to {table_ref}")
        result = CommitResult(
            table=table_ref,
            statements=statements,
            executed=executed,
            start_time=start,
            end_time=end,
            elapsed_seconds=elapsed,
        )
        self.last_result = result
        if on_success is not None:
            on_success()
        return result
