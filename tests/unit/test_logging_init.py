from __future__ import annotations

import logging

from bulk_import.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def test_labeled_output(capsys):
    reset_logging()
    logger = setup_logging()
    logger.info("uploaded file=staff.csv")
    logger.warning("careful")
    logging.getLogger("bulk_import.services.wizard").error("child logger")
    logger.debug("hidden")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO uploaded file=staff.csv", "WARN careful", "ERROR child logger"]


def test_summary_level(capsys):
    reset_logging()
    setup_logging()
    log_summary("file=a.csv rows=1")
    assert capsys.readouterr().out == "SUMMARY file=a.csv rows=1\n"
    assert SUMMARY_LEVEL == 25


def test_setup_is_idempotent_and_debug_lowers_level(capsys):
    reset_logging()
    first = setup_logging()
    assert setup_logging() is first
    assert len(first.handlers) == 1
    setup_logging(debug=True)
    first.debug("now visible")
    assert "DEBUG now visible" in capsys.readouterr().out
    assert get_logger() is first
    assert first.name == APP_LOGGER_NAME
    reset_logging()
