"""Keep the machine awake while a sequence is counting down.

On macOS ``caffeinate -i`` blocks idle sleep for as long as it runs, so
:class:`CaffeinateKeepAlive` simply owns one ``caffeinate`` process while
held.  Everywhere else (or with the setting off) :class:`NullKeepAlive`
just remembers whether it is held.

Both are idempotent: a second ``acquire()`` never starts another
process, and ``release()`` when not held does nothing.
"""

from __future__ import annotations

import logging
import shutil
import sys
from typing import Protocol, Sequence

from PyQt6.QtCore import QObject, QProcess

logger = logging.getLogger(__name__)


class BackgroundKeepAlivePort(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...


class NullKeepAlive:
    """Bookkeeping-only keep-alive."""

    def __init__(self) -> None:
        self.held = False

    def acquire(self) -> None:
        self.held = True

    def release(self) -> None:
        self.held = False


class CaffeinateKeepAlive(QObject):
    """Holds a ``caffeinate`` child process while acquired."""

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        program: str = "caffeinate",
        arguments: Sequence[str] = ("-i",),
    ) -> None:
        super().__init__(parent)
        self._program = program
        self._arguments = list(arguments)
        self._process: QProcess | None = None

    @property
    def held(self) -> bool:
        return self._process is not None

    def acquire(self) -> None:
        if self._process is not None:
            return
        process = QProcess(self)
        process.errorOccurred.connect(self._on_error)
        self._process = process
        process.start(self._program, self._arguments)
        logger.debug("Started %s %s", self._program, " ".join(self._arguments))

    def release(self) -> None:
        process = self._process
        if process is None:
            return
        self._process = None
        if process.state() != QProcess.ProcessState.NotRunning:
            process.finished.connect(process.deleteLater)
            process.terminate()
        else:
            process.deleteLater()
        logger.debug("Stopped %s", self._program)

    def _on_error(self, error: QProcess.ProcessError) -> None:
        if error == QProcess.ProcessError.FailedToStart:
            logger.warning(
                "Could not start %s; the machine may sleep during playback",
                self._program,
            )
            self._process = None
        else:
            logger.debug("%s reported %s", self._program, error)


def keepalive_for_platform(
    enabled: bool = True,
    parent: QObject | None = None,
) -> BackgroundKeepAlivePort:
    """Real keep-alive on macOS when wanted, bookkeeping otherwise."""
    if enabled and sys.platform == "darwin" and shutil.which("caffeinate"):
        return CaffeinateKeepAlive(parent)
    return NullKeepAlive()
