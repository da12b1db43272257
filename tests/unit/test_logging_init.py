from __future__ import annotations

import logging
from io import StringIO

from tabledit.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    set_debug,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    """setup_logging configures one stdout handler with the labeled formatter."""
    logger = setup_logging()

    assert logger.name == LOGGER_NAME == "tabledit"
    assert logger.level == logging.INFO
    assert logger.propagate is False
    assert len(logger.handlers) == 1
    handler = logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert isinstance(handler.formatter, LabeledFormatter)


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1
    assert get_logger() is first


def test_labeled_prefixes():
    """Each level is printed with its INFO|WARN|ERROR|SUMMARY label."""
    captured = StringIO()
    logger = logging.getLogger("test_tabledit_labels")
    logger.setLevel(logging.INFO)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("loaded page")
    logger.warning("count failed")
    logger.error("commit failed")
    logger.log(SUMMARY_LEVEL, "table=x")

    assert captured.getvalue().strip().split("\n") == [
        "INFO loaded page",
        "WARN count failed",
        "ERROR commit failed",
        "SUMMARY table=x",
    ]


def test_module_loggers_propagate_into_app_logger(capsys):
    setup_logging()
    logging.getLogger("tabledit.services.edit_session").info("committed 1 change(s)")
    assert capsys.readouterr().out.strip() == "INFO committed 1 change(s)"


def test_log_summary_and_debug_toggle(capsys):
    logger = setup_logging()
    log_summary("table=users statements=0")
    logger.debug("hidden")
    set_debug(True)
    logger.debug("shown")
    set_debug(False)
    logger.debug("hidden again")

    out = capsys.readouterr().out.strip().splitlines()
    assert out == ["SUMMARY table=users statements=0", "DEBUG shown"]


def test_setup_logging_custom_stream_and_debug():
    stream = StringIO()
    logger = setup_logging(debug=True, stream=stream)
    logging.getLogger("tabledit.db.executor").debug("connecting to mysql")
    assert logger.level == logging.DEBUG
    assert stream.getvalue() == "DEBUG connecting to mysql\n"


def test_traceback_follows_message():
    stream = StringIO()
    logger = setup_logging(stream=stream)
    try:
        raise ValueError("bad row")
    except ValueError:
        logger.exception("export failed")
    lines = stream.getvalue().splitlines()
    assert lines[0] == "ERROR export failed"
    assert lines[-1] == "ValueError: bad row"
