"""Saving and loading :class:`TimerSequence` values.

The playback engine never touches the database.  The app loads
sequences here, hands them to the engine, and writes edits back.

Order
-----
Sequences are listed most-recently-updated first.  :meth:`SequenceStore.move`
keeps a manual ordering by rewriting ``updated_at`` one second apart.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

from ..errors import SequenceNotFoundError
from ..recurrence import RecurrenceFrequency, RecurrenceRule
from ..timer.sequence import TimerSequence, TimerStep
from .db import SAMPLE_SEQUENCE_NAME, SAMPLE_STEPS, get_session
from .models import RecurrenceRecord, SequenceRecord, StepRecord

logger = logging.getLogger(__name__)

class SequenceStore:
    """SQLAlchemy-backed persistence for timer sequences."""

    def list_sequences(self) -> list[TimerSequence]:
        with get_session() as db:
            records = (
                db.query(SequenceRecord)
                .order_by(SequenceRecord.updated_at.desc())
                .all()
            )
            return [_to_model(r) for r in records]

    def get(self, sequence_id: uuid.UUID) -> TimerSequence:
        with get_session() as db:
            record = db.get(SequenceRecord, str(sequence_id))
            if record is None:
                raise SequenceNotFoundError(sequence_id)
            return _to_model(record)

    def find_by_name(self, name: str) -> TimerSequence | None:
        """First sequence called *name* (case-insensitive), if any."""
        wanted = name.casefold()
        for sequence in self.list_sequences():
            if sequence.name.casefold() == wanted:
                return sequence
        return None

    def count(self) -> int:
        with get_session() as db:
            return db.query(SequenceRecord).count()

    def save(self, sequence: TimerSequence) -> None:
        """Insert *sequence* or overwrite the stored copy with the same id."""
        with get_session() as db:
            record = db.get(SequenceRecord, str(sequence.id))
            if record is None:
                record = SequenceRecord(id=str(sequence.id))
                db.add(record)
            record.name = sequence.name
            record.repeats = sequence.repeats
            record.created_at = sequence.created_at
            record.updated_at = sequence.updated_at
            _sync_steps(record, sequence.steps)
            _sync_recurrence(record, sequence.recurrence_rule)
        logger.debug("Saved sequence %s (%r)", sequence.id, sequence.name)

    def delete(self, sequence_id: uuid.UUID) -> None:
        with get_session() as db:
            record = db.get(SequenceRecord, str(sequence_id))
            if record is None:
                raise SequenceNotFoundError(sequence_id)
            db.delete(record)
        logger.debug("Deleted sequence %s", sequence_id)

    def move(self, from_index: int, to_index: int) -> list[TimerSequence]:
        """Move one sequence within the listing; returns the new order.

        Invalid or equal indices leave the order untouched.
        """
        with get_session() as db:
            records = (
                db.query(SequenceRecord)
                .order_by(SequenceRecord.updated_at.desc())
                .all()
            )
            count = len(records)
            if (
                from_index != to_index
                and 0 <= from_index < count
                and 0 <= to_index < count
            ):
                moved = records.pop(from_index)
                records.insert(to_index, moved)
                now = datetime.now()
                for index, record in enumerate(records):
                    record.updated_at = now - timedelta(seconds=index)
            return [_to_model(r) for r in records]

    def create_sample(self) -> TimerSequence:
        """Store and return a repeating Work 25:00 / Break 5:00 sequence."""
        sequence = TimerSequence(
            name=SAMPLE_SEQUENCE_NAME,
            steps=[
                TimerStep(title=title, duration_seconds=seconds)
                for title, seconds in SAMPLE_STEPS
            ],
            repeats=True,
        )
        self.save(sequence)
        return sequence


# ── record ↔ model ───────────────────────────────────────────────────────


def _sync_steps(record: SequenceRecord, steps: list[TimerStep]) -> None:
    existing = {s.id: s for s in record.steps}
    ordered: list[StepRecord] = []
    for position, step in enumerate(steps):
        step_record = existing.pop(str(step.id), None)
        if step_record is None:
            step_record = StepRecord(id=str(step.id))
        step_record.position = position
        step_record.title = step.title
        step_record.duration_seconds = step.duration_seconds
        ordered.append(step_record)
    record.steps = ordered  # leftovers are delete-orphans


def _sync_recurrence(record: SequenceRecord, rule: RecurrenceRule | None) -> None:
    if rule is None:
        record.recurrence = None
        return
    rec = record.recurrence
    if rec is None:
        rec = RecurrenceRecord()
        record.recurrence = rec
    rec.frequency = rule.frequency.value
    rec.interval = rule.interval
    rec.start_date = rule.start_date
    rec.end_date = rule.end_date
    rec.weekdays = (
        ",".join(str(d) for d in sorted(rule.weekdays))
        if rule.weekdays is not None
        else None
    )


def _to_model(record: SequenceRecord) -> TimerSequence:
    rule = None
    if record.recurrence is not None:
        rec = record.recurrence
        weekdays = None
        if rec.weekdays is not None:
            weekdays = frozenset(int(d) for d in rec.weekdays.split(",") if d)
        rule = RecurrenceRule(
            frequency=RecurrenceFrequency(rec.frequency),
            interval=rec.interval,
            start_date=rec.start_date,
            end_date=rec.end_date,
            weekdays=weekdays,
        )
    return TimerSequence(
        id=uuid.UUID(record.id),
        name=record.name,
        steps=[
            TimerStep(
                id=uuid.UUID(s.id),
                title=s.title,
                duration_seconds=s.duration_seconds,
            )
            for s in record.steps
        ],
        repeats=record.repeats,
        recurrence_rule=rule,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
