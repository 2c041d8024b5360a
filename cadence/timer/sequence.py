"""In-memory sequence model handed to the playback engine.

A ``TimerSequence`` is an ordered list of ``TimerStep`` countdowns.  The
engine only ever reads these; editing happens in the surrounding app and
is persisted through :class:`cadence.database.store.SequenceStore`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ..recurrence import RecurrenceRule


def _fmt_clock(seconds: int) -> str:
    """``125`` → ``"02:05"``; ``5445`` → ``"1:30:45"``."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TimerStep:
    """A single named countdown inside a sequence."""

    title: str
    duration_seconds: int
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.duration_seconds < 0:
            raise ValueError(
                f"duration_seconds must be >= 0, got {self.duration_seconds}"
            )

    @property
    def formatted_duration(self) -> str:
        minutes, secs = divmod(self.duration_seconds, 60)
        return f"{minutes:02d}:{secs:02d}"

    def copy(self) -> TimerStep:
        """Same title and duration, fresh id."""
        return TimerStep(title=self.title, duration_seconds=self.duration_seconds)


@dataclass
class TimerSequence:
    """Ordered timers played back-to-back, optionally on repeat."""

    name: str
    steps: list[TimerStep] = field(default_factory=list)
    repeats: bool = False
    recurrence_rule: RecurrenceRule | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        ids = [s.id for s in self.steps]
        if len(ids) != len(set(ids)):
            raise ValueError("step ids must be unique within a sequence")

    # ── derived values ────────────────────────────────────────────────

    @property
    def total_duration(self) -> int:
        return sum(s.duration_seconds for s in self.steps)

    @property
    def formatted_total_duration(self) -> str:
        return _fmt_clock(self.total_duration)

    @property
    def is_empty(self) -> bool:
        return not self.steps

    # ── editing ───────────────────────────────────────────────────────

    def add_step(self, step: TimerStep) -> None:
        if any(s.id == step.id for s in self.steps):
            raise ValueError(f"step {step.id} is already in this sequence")
        self.steps.append(step)
        self._touch()

    def remove_step(self, step_id: uuid.UUID) -> None:
        """Drop the step with *step_id*; unknown ids are ignored."""
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                del self.steps[index]
                self._touch()
                return

    def move_step(self, from_index: int, to_index: int) -> None:
        """Reorder one step.  Invalid or equal indices do nothing."""
        count = len(self.steps)
        if (
            from_index == to_index
            or not 0 <= from_index < count
            or not 0 <= to_index < count
        ):
            return
        step = self.steps.pop(from_index)
        self.steps.insert(to_index, step)
        self._touch()

    def copy(self) -> TimerSequence:
        """Deep copy with fresh ids for the sequence and every step."""
        return TimerSequence(
            name=self.name,
            steps=[s.copy() for s in self.steps],
            repeats=self.repeats,
            recurrence_rule=(
                self.recurrence_rule.copy() if self.recurrence_rule else None
            ),
        )

    def _touch(self) -> None:
        self.updated_at = datetime.now()
