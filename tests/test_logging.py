"""Tests for structlog output routing."""

import json
import logging

import pytest

from cadence.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    cadence_level = logging.getLogger("cadence").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("cadence").setLevel(cadence_level)


def test_default_level_is_info():
    configure_logging()
    assert logging.getLogger("cadence").level == logging.INFO
    assert logging.getLogger("sqlalchemy").level == logging.WARNING


def test_verbose_enables_debug():
    configure_logging(verbose=True)
    assert logging.getLogger("cadence").isEnabledFor(logging.DEBUG)


def test_single_handler_installed():
    configure_logging()
    configure_logging()
    assert len(logging.getLogger().handlers) == 1


def test_json_lines(capsys):
    configure_logging(log_json=True)
    logging.getLogger("cadence.timer.engine").info("Started %r", "Focus")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "Started 'Focus'"
    assert record["level"] == "info"
    assert record["logger"] == "cadence.timer.engine"
    assert "timestamp" in record


def test_console_output(capsys):
    configure_logging()
    logging.getLogger("cadence.database.store").warning("disk is full")
    assert "disk is full" in capsys.readouterr().err
