"""One-shot desktop notifications keyed by string.

The playback engine only sees :class:`NotificationPort`.  The desktop
implementation, :class:`QtScheduledNotifier`, arms one single-shot
``QTimer`` per key and hands the message to a ``deliver`` callable when
it expires (the tray icon's ``showMessage`` in the real app).

Scheduling under a key that is already armed replaces the old alert.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Protocol

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

logger = logging.getLogger(__name__)

DeliverFn = Callable[[str, str], None]


class NotificationPort(Protocol):
    def schedule(self, key: str, delay_seconds: int, title: str, body: str) -> None: ...

    def cancel(self, key: str) -> None: ...


def notification_key(sequence_id: object) -> str:
    """Key for the single pending alert a running sequence may own."""
    return f"sequence-{sequence_id}"


class QtScheduledNotifier(QObject):
    """Qt-timer backed :class:`NotificationPort`.

    Signals
    -------
    notification_fired(key: str, title: str, body: str)
        Emitted when an armed alert expires, before delivery.
    """

    notification_fired = pyqtSignal(str, str, str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        deliver: DeliverFn | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__(parent)
        self._deliver = deliver
        self._enabled = enabled
        self._pending: dict[str, tuple[QTimer, str, str]] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if not value:
            for key in list(self._pending):
                self.cancel(key)

    def pending_keys(self) -> list[str]:
        return list(self._pending)

    def schedule(self, key: str, delay_seconds: int, title: str, body: str) -> None:
        self.cancel(key)
        if not self._enabled:
            logger.debug("Notifications disabled; dropping %r", key)
            return

        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(0, delay_seconds) * 1000)
        timer.timeout.connect(partial(self._fire, key))
        self._pending[key] = (timer, title, body)
        timer.start()
        logger.debug("Armed %r for %ss: %s", key, delay_seconds, title)

    def cancel(self, key: str) -> None:
        entry = self._pending.pop(key, None)
        if entry is None:
            return
        timer = entry[0]
        timer.stop()
        timer.deleteLater()

    # ── internal ──────────────────────────────────────────────────────

    def _fire(self, key: str) -> None:
        entry = self._pending.pop(key, None)
        if entry is None:
            return
        timer, title, body = entry
        timer.deleteLater()
        self.notification_fired.emit(key, title, body)
        if self._deliver is None:
            return
        try:
            self._deliver(title, body)
        except Exception:
            logger.exception("Failed to deliver notification %r", key)
