"""Sequence playback state machine for Cadence.

Phases
------
IDLE        Nothing loaded.
RUNNING     Current step counting down, one tick per second.
PAUSED      Frozen mid-step; remaining and elapsed time preserved.
COMPLETED   Transient.  Emitted once when a non-repeating sequence
            finishes, then folded straight back into IDLE.

Transitions
-----------
IDLE | RUNNING | PAUSED → RUNNING     (start; an active sequence is stopped first)
RUNNING → PAUSED                      (pause)
PAUSED → RUNNING                      (resume)
RUNNING | PAUSED → next step          (skip, or remaining hits 0 on a tick)
last step → step 0                    (sequence repeats)
last step → COMPLETED → IDLE          (sequence does not repeat)
Any → IDLE                            (stop)

Side effects
------------
While RUNNING the engine holds the keep-alive and owns exactly one
pending notification, keyed by the sequence id, due when the current
step runs out.  Per transition the order is always: cancel the old
notification, mutate state, schedule the new one, acquire/release the
keep-alive.

The step list and repeat flag are captured by ``start()``.  Edits made to
the sequence during playback take effect the next time it is started.

Everything runs on the engine's thread.  Other threads go through
:meth:`SequencePlaybackEngine.request`, which queues the command onto
the engine's event loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal

from ..errors import CadenceError, EmptySequenceError
from ..services.keepalive import BackgroundKeepAlivePort
from ..services.notifications import NotificationPort, notification_key
from .sequence import TimerSequence, TimerStep

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class Phase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class PlaybackCommand(Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    SKIP = "skip"
    STOP = "stop"


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 1000
COMPLETED_LABEL = "Completed"


# ── snapshot ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Read-only view of the engine, carried by ``state_changed``."""

    phase: Phase
    sequence_id: object | None
    current_step_index: int
    time_remaining: int
    elapsed: int
    progress: float

    @property
    def is_idle(self) -> bool:
        return self.phase == Phase.IDLE


IDLE_SNAPSHOT = PlaybackSnapshot(
    phase=Phase.IDLE,
    sequence_id=None,
    current_step_index=0,
    time_remaining=0,
    elapsed=0,
    progress=0.0,
)


# ── engine ────────────────────────────────────────────────────────────────


class SequencePlaybackEngine(QObject):
    """Plays one :class:`TimerSequence` at a time.

    Signals
    -------
    state_changed(snapshot: PlaybackSnapshot)
        Emitted after every command and every tick that changed state.
    ticked(time_remaining: int)
        Emitted once per tick while RUNNING.
    step_changed(index: int)
        Emitted whenever the current step changes (start, skip, natural
        transition, wrap-around).
    sequence_started(sequence_id)
    sequence_completed(sequence_id)
        Natural or skipped-through end of a non-repeating sequence.
        Not emitted for ``stop()``.
    command_failed(error: CadenceError)
        A command posted through :meth:`request` was rejected.
    """

    state_changed = pyqtSignal(object)
    ticked = pyqtSignal(int)
    step_changed = pyqtSignal(int)
    sequence_started = pyqtSignal(object)
    sequence_completed = pyqtSignal(object)
    command_failed = pyqtSignal(object)

    _command_posted = pyqtSignal(object, object)

    def __init__(
        self,
        notifier: NotificationPort,
        keepalive: BackgroundKeepAlivePort,
        parent: QObject | None = None,
        *,
        tick_interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)

        # ── collaborators ─────────────────────────────────────────────
        self._notifier = notifier
        self._keepalive = keepalive

        # ── playback state ────────────────────────────────────────────
        self._phase: Phase = Phase.IDLE
        self._sequence: TimerSequence | None = None
        self._steps: tuple[TimerStep, ...] = ()
        self._repeats: bool = False
        self._index: int = 0
        self._remaining: int = 0
        self._elapsed: int = 0

        # ── Qt timer ──────────────────────────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(tick_interval_ms)
        self._qt_timer.timeout.connect(self.tick)

        # ── cross-thread command queue ────────────────────────────────
        self._command_posted.connect(
            self._dispatch, Qt.ConnectionType.QueuedConnection
        )

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def active_sequence(self) -> TimerSequence | None:
        return self._sequence

    @property
    def current_step_index(self) -> int:
        return self._index

    @property
    def current_step(self) -> TimerStep | None:
        if self._sequence is None:
            return None
        return self._steps[self._index]

    @property
    def time_remaining(self) -> int:
        """Seconds left on the current step."""
        return self._remaining

    @property
    def elapsed(self) -> int:
        """Seconds played in the current pass through the sequence."""
        return self._elapsed

    @property
    def progress(self) -> float:
        """0.0 → 1.0 through the current pass of the whole sequence."""
        if self._sequence is None:
            return 0.0
        total = sum(s.duration_seconds for s in self._steps)
        if total <= 0:
            return 0.0
        return max(0.0, min(1.0, self._elapsed / total))

    @property
    def tick_interval_ms(self) -> int:
        return self._qt_timer.interval()

    @property
    def ticking(self) -> bool:
        """True while the underlying QTimer is armed."""
        return self._qt_timer.isActive()

    def snapshot(self) -> PlaybackSnapshot:
        if self._sequence is None:
            return IDLE_SNAPSHOT
        return PlaybackSnapshot(
            phase=self._phase,
            sequence_id=self._sequence.id,
            current_step_index=self._index,
            time_remaining=self._remaining,
            elapsed=self._elapsed,
            progress=self.progress,
        )

    # ══════════════════════════════════════════════════════════════════
    #  QUERIES
    # ══════════════════════════════════════════════════════════════════

    def is_running(self, sequence_id: object) -> bool:
        return (
            self._sequence is not None
            and self._sequence.id == sequence_id
            and self._phase == Phase.RUNNING
        )

    def progress_for(self, sequence_id: object) -> float:
        return self.progress if self.is_running(sequence_id) else 0.0

    # ══════════════════════════════════════════════════════════════════
    #  COMMANDS
    # ══════════════════════════════════════════════════════════════════

    def start(self, sequence: TimerSequence) -> None:
        """Play *sequence* from its first step.

        Raises :class:`EmptySequenceError` (without touching anything)
        when the sequence has no steps.
        """
        if sequence.is_empty:
            raise EmptySequenceError()

        if self._sequence is not None:
            self.stop()

        self._sequence = sequence
        self._steps = tuple(sequence.steps)
        self._repeats = sequence.repeats
        self._index = 0
        self._elapsed = 0
        self._remaining = self._steps[0].duration_seconds
        self._phase = Phase.RUNNING

        self._schedule_notification()
        self._acquire_keepalive()
        self._qt_timer.start()

        logger.info(
            "Started %r (%d steps, repeats=%s)",
            sequence.name, len(self._steps), self._repeats,
        )
        self.sequence_started.emit(sequence.id)
        self.step_changed.emit(self._index)
        self._emit_state()

    def pause(self) -> None:
        """Freeze the countdown.  No-op unless RUNNING."""
        if self._phase != Phase.RUNNING:
            return
        self._qt_timer.stop()
        self._cancel_notification()
        self._phase = Phase.PAUSED
        self._release_keepalive()
        logger.info("Paused with %ds left on step %d", self._remaining, self._index)
        self._emit_state()

    def resume(self) -> None:
        """Continue a paused sequence.  No-op unless PAUSED."""
        if self._phase != Phase.PAUSED:
            return
        self._phase = Phase.RUNNING
        self._schedule_notification()
        self._acquire_keepalive()
        self._qt_timer.start()
        logger.info("Resumed with %ds left on step %d", self._remaining, self._index)
        self._emit_state()

    def skip(self) -> None:
        """Jump to the next step as if the current one had run out.

        The skipped seconds count as elapsed so progress stays aligned
        with step boundaries.  Skipping while PAUSED stays PAUSED.
        """
        if self._phase not in (Phase.RUNNING, Phase.PAUSED):
            return
        logger.info("Skipping step %d", self._index)
        self._elapsed += self._remaining
        self._remaining = 0
        self._advance()
        if self._sequence is not None:
            self._emit_state()

    def stop(self) -> None:
        """Abandon playback and return to IDLE.  Safe from any phase."""
        self._qt_timer.stop()
        was_active = self._sequence is not None
        if was_active:
            self._cancel_notification()

        self._sequence = None
        self._steps = ()
        self._repeats = False
        self._index = 0
        self._remaining = 0
        self._elapsed = 0
        self._phase = Phase.IDLE

        self._release_keepalive()
        if was_active:
            logger.info("Stopped")
            self._emit_state()

    def tick(self) -> None:
        """Advance one second.  Driven by the QTimer; ignored unless RUNNING."""
        if self._phase != Phase.RUNNING:
            return

        if self._remaining > 0:
            self._remaining -= 1
            self._elapsed += 1

        if self._remaining == 0:
            self._advance()

        if self._phase == Phase.RUNNING:
            self.ticked.emit(self._remaining)
            self._emit_state()

    def request(
        self,
        command: PlaybackCommand,
        sequence: TimerSequence | None = None,
    ) -> None:
        """Queue *command* onto the engine's thread.

        Safe to call from any thread; the command runs on the next pass
        of the engine's event loop.  Rejections are reported through
        ``command_failed`` instead of raising.
        """
        self._command_posted.emit(command, sequence)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: transitions
    # ══════════════════════════════════════════════════════════════════

    def _advance(self) -> None:
        """Leave the current step: next step, wrap-around, or completion.

        Zero-length steps that close out a pass are passed over, so the
        engine never rests on a step with the whole pass already elapsed.
        """
        sequence = self._sequence
        assert sequence is not None

        self._cancel_notification()
        self._index += 1

        if self._index >= len(self._steps) or self._pass_is_spent():
            if not self._repeats:
                self._complete()
                return
            self._index = 0
            self._elapsed = 0  # new pass through the sequence
            logger.info("Repeating %r", sequence.name)

        assert 0 <= self._index < len(self._steps)
        self._remaining = self._steps[self._index].duration_seconds
        if self._phase == Phase.RUNNING:
            self._schedule_notification()
        self.step_changed.emit(self._index)

    def _pass_is_spent(self) -> bool:
        """True when every step from the current one on lasts zero seconds.

        Index 0 never counts: an all-zero sequence restarts its pass there.
        """
        return self._index > 0 and all(
            s.duration_seconds == 0 for s in self._steps[self._index:]
        )

    def _complete(self) -> None:
        sequence = self._sequence
        assert sequence is not None
        self._qt_timer.stop()
        self._index = len(self._steps) - 1
        self._phase = Phase.COMPLETED
        logger.info("Completed %r", sequence.name)
        self.state_changed.emit(self.snapshot())
        self.sequence_completed.emit(sequence.id)
        self.stop()

    def _dispatch(self, command: PlaybackCommand, sequence: TimerSequence | None) -> None:
        handlers: dict[PlaybackCommand, Callable[[], None]] = {
            PlaybackCommand.PAUSE: self.pause,
            PlaybackCommand.RESUME: self.resume,
            PlaybackCommand.SKIP: self.skip,
            PlaybackCommand.STOP: self.stop,
        }
        if command == PlaybackCommand.START and sequence is None:
            logger.error("Ignoring START request without a sequence")
            return
        try:
            if command == PlaybackCommand.START:
                self.start(sequence)
            else:
                handlers[command]()
        except CadenceError as exc:
            logger.warning("Rejected %s: %s", command.value, exc)
            self.command_failed.emit(exc)

    def _emit_state(self) -> None:
        self.state_changed.emit(self.snapshot())

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: ports
    # ══════════════════════════════════════════════════════════════════

    def _next_step_title(self) -> str:
        sequence = self._sequence
        assert sequence is not None
        following = self._index + 1
        if following < len(self._steps):
            return self._steps[following].title
        if self._repeats:
            return self._steps[0].title
        return COMPLETED_LABEL

    def _schedule_notification(self) -> None:
        sequence = self._sequence
        assert sequence is not None
        step = self._steps[self._index]
        self._call_port(
            "schedule notification",
            self._notifier.schedule,
            notification_key(sequence.id),
            self._remaining,
            f"{step.title} Timer Completed",
            f"Up next: {self._next_step_title()}",
        )

    def _cancel_notification(self) -> None:
        sequence = self._sequence
        assert sequence is not None
        self._call_port(
            "cancel notification",
            self._notifier.cancel,
            notification_key(sequence.id),
        )

    def _acquire_keepalive(self) -> None:
        self._call_port("acquire keep-alive", self._keepalive.acquire)

    def _release_keepalive(self) -> None:
        self._call_port("release keep-alive", self._keepalive.release)

    @staticmethod
    def _call_port(what: str, fn: Callable[..., None], *args: object) -> None:
        try:
            fn(*args)
        except Exception:
            # port failures are logged, never raised into playback
            logger.exception("Failed to %s; playback continues", what)
