from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from tabledit.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from tabledit.db.dialect import Driver, TableRef
from tabledit.db.executor import QueryExecutionError, connect_executor
from tabledit.logging.error_log import ErrorLogBuffer
from tabledit.logging.init import log_summary, set_debug, setup_logging
from tabledit.services.change_file import ChangeFileError, apply_changes, load_change_file
from tabledit.services.edit_session import EditSessionError
from tabledit.services.export import ExportError, to_dataframe
from tabledit.services.summary import render_commit_summary
from tabledit.services.table_view import PagedTableView

"""CLI entrypoint.

Flow:
- Load .env (connection values take precedence over the config file)
- Load config/session.yml
- Connect, read column metadata, load the requested page + row count
- Optionally export the page, or replay a change file through the edit
  session and commit it (--dry-run prints the statements instead)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_COMMIT_FAILED = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values override the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="tabledit", description="Browse and edit a MySQL / PostgreSQL table")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Session config (YAML)")
    p.add_argument("--page", type=int, default=0, help="0-based page to load")
    p.add_argument("--changes", type=Path, help="YAML change file to apply and commit")
    p.add_argument("--dry-run", action="store_true", help="Print the commit statements without executing them")
    p.add_argument("--export", type=Path, help="Write the loaded page to a .csv, .json or .sql file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _print_page(view: PagedTableView) -> None:
    if view.result is None or not view.result.rows:
        print("(no rows)")
        return
    print(to_dataframe(view.result).to_string(index=False))


def _run_changes(
    view: PagedTableView, changes_path: Path, dry_run: bool, logger: logging.Logger
) -> int:
    ops = load_change_file(changes_path)
    session = view.require_session()
    session.enter_edit_mode()
    pending = apply_changes(view, ops)
    logger.info(f"pending changes: {pending} {session.ledger.counts()}")

    if dry_run:
        for statement in session.preview_statements():
            print(statement)
        return EXIT_SUCCESS

    result = view.commit()
    # log_summary が "SUMMARY " を付与する
    log_summary(render_commit_summary(result)[len("SUMMARY "):])
    if not result.success:
        logger.error(f"commit: {result.error}")
        return EXIT_COMMIT_FAILED
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    schema = cfg.table.schema
    if schema is None and Driver.parse(cfg.connection.driver) is Driver.POSTGRESQL:
        schema = "public"
    table = TableRef(name=cfg.table.name, database=cfg.table.database, schema=schema)

    try:
        executor = connect_executor(cfg.connection, os.environ)
    except QueryExecutionError as e:
        logger.error(f"connection: {e.message}")
        return EXIT_FATAL

    with executor:
        view = PagedTableView(
            executor,
            table,
            cfg.connection.driver,
            page_size=cfg.page_size,
            error_log=ErrorLogBuffer(cfg.log_dir),
        )
        try:
            view.open_session()
        except QueryExecutionError as e:
            logger.error(f"columns: {e.message}")
            return EXIT_FATAL

        view.load_page(max(args.page, 0))
        view.load_total_rows()
        if view.error:
            logger.error(f"load: {view.error}")
            return EXIT_FATAL
        logger.info(
            f"{table.quoted(view.dialect)} page {view.page + 1}/{max(view.page_count, 1)} "
            f"rows={len(view.rows())} total={view.total_rows}"
        )

        if args.export:
            try:
                written = view.export_page(args.export)
            except ExportError as e:
                logger.error(f"export: {e}")
                return EXIT_FATAL
            logger.info(f"exported page to {written}")

        if args.changes:
            try:
                return _run_changes(view, args.changes, args.dry_run, logger)
            except (ChangeFileError, EditSessionError, QueryExecutionError) as e:
                logger.error(f"changes: {e}")
                return EXIT_FATAL

        if not args.export:
            _print_page(view)
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
