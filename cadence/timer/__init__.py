"""Timer package."""

from .engine import (
    SequencePlaybackEngine,
    Phase,
    PlaybackCommand,
    PlaybackSnapshot,
    COMPLETED_LABEL,
    TICK_INTERVAL_MS,
)
from .sequence import TimerSequence, TimerStep

__all__ = [
    "SequencePlaybackEngine",
    "Phase",
    "PlaybackCommand",
    "PlaybackSnapshot",
    "COMPLETED_LABEL",
    "TICK_INTERVAL_MS",
    "TimerSequence",
    "TimerStep",
]
