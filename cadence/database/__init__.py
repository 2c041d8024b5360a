"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import SequenceRecord, StepRecord, RecurrenceRecord
from .store import SequenceStore

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "SequenceRecord",
    "StepRecord",
    "RecurrenceRecord",
    "SequenceStore",
]
