"""Shared pytest fixtures for Cadence tests."""

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from PyQt6.QtWidgets import QApplication

from cadence.database.db import configure_engine, init_db
from cadence.timer.engine import SequencePlaybackEngine
from cadence.timer.sequence import TimerSequence, TimerStep

from helpers import FakeKeepAlive, FakeNotifier


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db(seed_sample=False)
    yield


@pytest.fixture
def calls():
    """Ordered log of every port call, shared by the fakes."""
    return []


@pytest.fixture
def notifier(calls):
    return FakeNotifier(calls)


@pytest.fixture
def keepalive(calls):
    return FakeKeepAlive(calls)


@pytest.fixture
def engine(qapp, notifier, keepalive):
    """Fresh engine wired to recording fakes."""
    eng = SequencePlaybackEngine(notifier, keepalive)
    yield eng
    eng.stop()


@pytest.fixture
def work_break():
    """Scenario sequence: Work 25:00 then Break 5:00, played once."""
    return TimerSequence(
        name="Focus",
        steps=[
            TimerStep(title="Work", duration_seconds=1500),
            TimerStep(title="Break", duration_seconds=300),
        ],
    )


@pytest.fixture
def work_break_repeating(work_break):
    work_break.repeats = True
    return work_break
