"""Shared test helpers for Cadence."""

from cadence.timer.engine import Phase, SequencePlaybackEngine


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeNotifier:
    """NotificationPort double that honours same-key replacement."""

    def __init__(self, calls: list | None = None):
        self.calls = calls if calls is not None else []
        self.pending: dict[str, tuple[int, str, str]] = {}

    def schedule(self, key, delay_seconds, title, body):
        self.calls.append(("schedule", key, delay_seconds, title, body))
        self.pending[key] = (delay_seconds, title, body)

    def cancel(self, key):
        self.calls.append(("cancel", key))
        self.pending.pop(key, None)

    @property
    def schedules(self):
        return [c for c in self.calls if c[0] == "schedule"]


class FakeKeepAlive:
    """BackgroundKeepAlivePort double tracking whether it is held."""

    def __init__(self, calls: list | None = None):
        self.calls = calls if calls is not None else []
        self.held = False
        self.handles_opened = 0

    def acquire(self):
        self.calls.append(("acquire",))
        if not self.held:
            self.handles_opened += 1
        self.held = True

    def release(self):
        self.calls.append(("release",))
        self.held = False


class ExplodingPort:
    """Every port method raises; used to prove playback shrugs it off."""

    def schedule(self, *args):
        raise RuntimeError("notification centre unavailable")

    def cancel(self, *args):
        raise RuntimeError("notification centre unavailable")

    def acquire(self):
        raise RuntimeError("background time denied")

    def release(self):
        raise RuntimeError("background time denied")


def run_ticks(engine: SequencePlaybackEngine, count: int) -> None:
    """Drive *count* ticks by hand instead of waiting on the QTimer."""
    for _ in range(count):
        engine.tick()


def kinds(calls: list) -> list[str]:
    """Just the call names from a port-call log."""
    return [c[0] for c in calls]


def assert_idle(engine: SequencePlaybackEngine) -> None:
    assert engine.phase == Phase.IDLE
    assert engine.active_sequence is None
    assert engine.current_step_index == 0
    assert engine.time_remaining == 0
    assert engine.elapsed == 0
