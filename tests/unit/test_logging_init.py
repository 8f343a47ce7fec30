from __future__ import annotations

import logging
from io import StringIO

import pytest

from sheetsifter.logging.init import (
    LOGGER_NAME,
    enable_debug,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logger():
    reset_logging()
    yield
    reset_logging()
    logging.getLogger(LOGGER_NAME).setLevel(logging.INFO)


def test_setup_logging_creates_single_handler():
    """setup_logging configures the app logger once, without propagation."""
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_setup_logging_idempotent():
    logger1 = setup_logging()
    logger2 = setup_logging()
    assert logger1 is logger2
    assert len(logger1.handlers) == 1
    assert get_logger() is logger1


def test_labeled_prefixes():
    """Every line starts with INFO|WARN|ERROR|SUMMARY."""
    buf = StringIO()
    logger = setup_logging(stream=buf)

    logger.info("reading folha.xlsx")
    logger.warning("skipping worksheet")
    logger.error("config: missing file")
    logger.debug("hidden at INFO")
    log_summary("mode=report worksheets=1")

    assert buf.getvalue().splitlines() == [
        "INFO reading folha.xlsx",
        "WARN skipping worksheet",
        "ERROR config: missing file",
        "SUMMARY mode=report worksheets=1",
    ]
    assert logging.getLevelName(25) == "SUMMARY"


def test_engine_loggers_reach_app_handler():
    buf = StringIO()
    setup_logging(stream=buf)
    logging.getLogger("sheetsifter.services.comparator").warning("misaligned")
    assert buf.getvalue() == "WARN misaligned\n"


def test_enable_debug():
    buf = StringIO()
    setup_logging(stream=buf)
    enable_debug()
    logging.getLogger("sheetsifter.services.correction_writer").debug("rows_in=4")
    assert buf.getvalue() == "DEBUG rows_in=4\n"
