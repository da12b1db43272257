from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any

from ..db.dialect import Driver, TableRef, get_dialect
from ..db.executor import QueryExecutionError, QueryExecutor, format_error_message
from ..db.filters import build_count_sql, build_select_page_sql
from ..db.schema import get_columns
from ..logging.error_log import ErrorLogBuffer
from ..models.commit_result import CommitResult
from ..models.filter_condition import FilterCondition
from ..models.query_result import ColumnDetail, QueryResult
from ..models.row_change import PendingRowChange
from .edit_session import EditSessionController, EditSessionError
from .export import export_result

"""Paged table view.

Loads one page of a table (optionally filtered) plus the filtered row count,
and owns the edit session of that table. Navigation that would reload the
grid (page change, filter change, refresh) asks the confirm callback first
when the session has pending changes; confirming discards the ledger.
"""

__all__ = [
    "PAGE_SIZE",
    "PagedTableView",
]

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class PagedTableView:
    def __init__(
        self,
        executor: QueryExecutor,
        table: TableRef,
        driver: str | Driver,
        *,
        page_size: int = PAGE_SIZE,
        confirm: Callable[[], bool] | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive: {page_size}")
        self.executor = executor
        self.table = table
        self.driver = Driver.parse(driver)
        self.dialect = get_dialect(self.driver)
        self.page_size = page_size
        self.confirm = confirm
        self.error_log = error_log

        self.page = 0
        self.total_rows = 0
        self.filters: list[FilterCondition] = []
        self.result: QueryResult | None = None
        self.error: str | None = None
        self.columns: list[ColumnDetail] = []
        self.session: EditSessionController | None = None

    # -- session lifecycle ---------------------------------------------------

    def open_session(self, columns: Sequence[ColumnDetail] | None = None) -> EditSessionController:
        """Create the edit session from column metadata (fetched if not given)."""
        if columns is None:
            columns = get_columns(
                self.executor, self.driver, self.table.database, self.table.schema, self.table.name
            )
        self.columns = list(columns)
        self.session = EditSessionController.from_columns(
            self.executor, self.table, self.dialect, self.columns, error_log=self.error_log
        )
        if not self.session.can_edit:
            logger.info(f"{self.table.quoted(self.dialect)} has no primary key; table is read-only")
        return self.session

    def close(self) -> None:
        """Drop the session (and any pending changes) together with the loaded page."""
        self.session = None
        self.result = None

    def has_pending_changes(self) -> bool:
        return self.session is not None and self.session.has_pending_changes()

    # -- loading -----------------------------------------------------------

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_rows / self.page_size)

    def load_page(self, page: int | None = None) -> bool:
        """Load a page; errors are kept on self.error instead of raised."""
        page = self.page if page is None else page
        query = build_select_page_sql(self.table, self.dialect, self.filters, page, self.page_size)
        logger.debug(f"loading page {page} of {self.table.name} ({len(self.filters)} filter(s))")
        try:
            result = self.executor.execute(query, self.table.execution_database, self.table.execution_context)
        except QueryExecutionError as e:
            self.error = format_error_message(e)
            self.result = None
            logger.error(f"load page failed: {self.error}")
            return False
        self.result = result
        self.error = None
        self.page = page
        return True

    def load_total_rows(self) -> int | None:
        query = build_count_sql(self.table, self.dialect, self.filters)
        try:
            result = self.executor.execute(query, self.table.execution_database, self.table.execution_context)
        except QueryExecutionError as e:
            logger.warning(f"load total rows failed: {format_error_message(e)}")
            return None
        if result.rows:
            self.total_rows = int(result.rows[0][0])
        return self.total_rows

    def reload(self) -> bool:
        """Re-fetch the current page and the row count."""
        loaded = self.load_page(self.page)
        self.load_total_rows()
        return loaded

    def rows(self) -> list[dict[str, Any]]:
        return self.result.as_dicts() if self.result is not None else []

    @property
    def column_names(self) -> list[str]:
        if self.result is not None and self.result.columns:
            return self.result.column_names
        return [c.name for c in self.columns]

    # -- guarded navigation ------------------------------------------------

    def guarded_navigate(self, action: Callable[[], Any]) -> bool:
        """Run action, asking for confirmation first when changes are pending.

        Returns False when the user declined (nothing happens), True otherwise.
        """
        if self.has_pending_changes():
            if self.confirm is None or not self.confirm():
                logger.debug("navigation cancelled: pending changes kept")
                return False
            self.require_session().discard_all_changes()
        action()
        return True

    def go_to_page(self, page: int) -> bool:
        last = max(self.page_count - 1, 0)
        target = min(max(page, 0), last)
        return self.guarded_navigate(lambda: self.load_page(target))

    def next_page(self) -> bool:
        return self.go_to_page(self.page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.page - 1)

    def first_page(self) -> bool:
        return self.go_to_page(0)

    def last_page(self) -> bool:
        return self.go_to_page(self.page_count - 1)

    def set_filters(self, filters: Iterable[FilterCondition]) -> bool:
        new_filters = list(filters)

        def apply() -> None:
            self.filters = new_filters
            self.load_page(0)
            self.load_total_rows()

        return self.guarded_navigate(apply)

    def refresh(self) -> bool:
        return self.guarded_navigate(self.reload)

    # -- editing -----------------------------------------------------------

    def require_session(self) -> EditSessionController:
        if self.session is None:
            raise EditSessionError("no edit session open for this table")
        return self.session

    def add_new_row(self) -> PendingRowChange:
        """Pending insert with every column of the loaded page set to None."""
        return self.require_session().add_new_row(self.column_names)

    def commit(self) -> CommitResult:
        """Commit the session and reload page + count on success."""
        return self.require_session().commit(on_success=self.reload)

    def export_page(self, path: Path | str, fmt: str | None = None) -> Path:
        """Write the loaded page as CSV, JSON or SQL INSERT statements."""
        return export_result(self.result, path, fmt, table=self.table, dialect=self.dialect)
