"""System-tray shell for Cadence.

The tray is the only place platform events turn into engine commands:
menu clicks map onto ``start`` / ``pause`` / ``resume`` / ``skip`` /
``stop``.  The engine itself knows nothing about menus or icons.
"""

from __future__ import annotations

import logging
import uuid

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtGui import QAction, QColor, QIcon, QImage, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from .audio.cues import CueManager
from .database.store import SequenceStore
from .errors import EmptySequenceError, SequenceNotFoundError
from .settings import Settings
from .timer.engine import Phase, PlaybackSnapshot, SequencePlaybackEngine
from .timer.sequence import TimerSequence

logger = logging.getLogger(__name__)

APP_NAME = "Cadence"


# ── tray‑icon image generation ────────────────────────────────────────────


def make_tray_icon(phase: Phase) -> QIcon:
    """32×32 monochrome template icon for the macOS menu bar.

    - IDLE:     thin circle outline
    - RUNNING:  filled circle
    - PAUSED:   two vertical pause bars
    """
    size = 64  # draw at 2× for Retina
    img = QImage(size, size, QImage.Format.Format_ARGB32_Premultiplied)
    img.fill(Qt.GlobalColor.transparent)
    p = QPainter(img)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    colour = QColor(0, 0, 0, 220)  # template image: macOS tints automatically
    p.setPen(Qt.PenStyle.NoPen)
    p.setBrush(colour)

    cx, cy, r = size // 2, size // 2, size // 2 - 4

    if phase == Phase.RUNNING:
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)
    elif phase == Phase.PAUSED:
        bar_w, bar_h, gap = 8, 28, 6
        y = cy - bar_h // 2
        p.drawRoundedRect(cx - gap - bar_w, y, bar_w, bar_h, 3, 3)
        p.drawRoundedRect(cx + gap, y, bar_w, bar_h, 3, 3)
    else:
        p.setPen(QPen(colour, 4))
        p.setBrush(Qt.BrushStyle.NoBrush)
        p.drawEllipse(cx - r, cy - r, r * 2, r * 2)

    p.end()
    img.setDevicePixelRatio(2.0)
    return QIcon(QPixmap.fromImage(img))


def _fmt_time(seconds: int) -> str:
    m, s = divmod(max(0, seconds), 60)
    return f"{m}:{s:02d}"


class CadenceTray(QObject):
    """Menu-bar front end driving a :class:`SequencePlaybackEngine`."""

    def __init__(
        self,
        engine: SequencePlaybackEngine,
        store: SequenceStore,
        parent: QObject | None = None,
        *,
        settings: Settings | None = None,
        cues: CueManager | None = None,
        tray_icon: QSystemTrayIcon | None = None,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._store = store
        self._settings = settings or Settings()
        self._cues = cues
        self._just_started = False

        self._tray_icon = tray_icon or QSystemTrayIcon(self)
        self._tray_icon.setIcon(make_tray_icon(Phase.IDLE))
        self._tray_icon.setToolTip(f"{APP_NAME} \u2014 Ready")
        self._build_menu()

        engine.state_changed.connect(self._on_state_changed)
        engine.sequence_started.connect(self._on_sequence_started)
        engine.step_changed.connect(self._on_step_changed)
        engine.sequence_completed.connect(self._on_sequence_completed)
        engine.command_failed.connect(self._on_command_failed)

        self.refresh_sequences()
        self._update_actions(engine.snapshot())

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC
    # ══════════════════════════════════════════════════════════════════

    @property
    def tray_icon(self) -> QSystemTrayIcon:
        return self._tray_icon

    def show(self) -> None:
        self._tray_icon.show()

    def refresh_sequences(self) -> None:
        """Rebuild the Start submenu from the store, last-played first."""
        self._start_menu.clear()
        sequences = self._store.list_sequences()
        if not sequences:
            empty = self._start_menu.addAction("No sequences")
            empty.setEnabled(False)
            return
        last_id = self._settings.last_sequence_id
        sequences.sort(key=lambda s: str(s.id) != last_id)  # stable
        for sequence in sequences:
            action = self._start_menu.addAction(
                f"{sequence.name}  ({sequence.formatted_total_duration})"
            )
            action.triggered.connect(
                lambda _checked=False, s=sequence: self.start_sequence(s)
            )

    def last_sequence(self) -> TimerSequence | None:
        """The sequence recorded as played last, if it still exists."""
        last_id = self._settings.last_sequence_id
        if not last_id:
            return None
        try:
            return self._store.get(uuid.UUID(last_id))
        except (ValueError, SequenceNotFoundError):
            logger.info("Last played sequence %s is gone", last_id)
            self._settings.last_sequence_id = None
            return None

    def start_sequence(self, sequence: TimerSequence) -> bool:
        """Start *sequence*; an empty one surfaces as a tray message."""
        try:
            self._engine.start(sequence)
        except EmptySequenceError as exc:
            logger.info("Refused to start %r: %s", sequence.name, exc)
            self._play_cue("error")
            self.show_message(APP_NAME, str(exc))
            return False
        self._settings.last_sequence_id = str(sequence.id)
        return True

    def toggle_pause(self) -> None:
        """Pause when running, resume when paused."""
        phase = self._engine.phase
        if phase == Phase.RUNNING:
            self._engine.pause()
        elif phase == Phase.PAUSED:
            self._engine.resume()

    def show_message(self, title: str, body: str) -> None:
        if self._settings.do_not_disturb:
            return
        self._tray_icon.showMessage(title, body)

    # ══════════════════════════════════════════════════════════════════
    #  MENU
    # ══════════════════════════════════════════════════════════════════

    def _build_menu(self) -> None:
        menu = QMenu()
        self._menu = menu  # the tray icon does not take ownership

        self._start_menu = menu.addMenu("Start")

        self._toggle_action: QAction = menu.addAction("Pause")
        self._toggle_action.triggered.connect(self.toggle_pause)

        self._skip_action: QAction = menu.addAction("Skip")
        self._skip_action.triggered.connect(self._engine.skip)

        self._stop_action: QAction = menu.addAction("Stop")
        self._stop_action.triggered.connect(self._engine.stop)

        menu.addSeparator()
        refresh_action = menu.addAction("Reload Sequences")
        refresh_action.triggered.connect(self.refresh_sequences)

        menu.addSeparator()
        quit_action = menu.addAction("Quit")
        quit_action.triggered.connect(self._quit_app)

        self._tray_icon.setContextMenu(menu)

    def _update_actions(self, snapshot: PlaybackSnapshot) -> None:
        phase = snapshot.phase
        active = phase in (Phase.RUNNING, Phase.PAUSED)
        self._toggle_action.setText("Resume" if phase == Phase.PAUSED else "Pause")
        self._toggle_action.setEnabled(active)
        self._skip_action.setEnabled(active)
        self._stop_action.setEnabled(active)

    def _quit_app(self) -> None:
        self._engine.stop()
        self._tray_icon.hide()
        app = QApplication.instance()
        if app is not None:
            app.quit()

    # ══════════════════════════════════════════════════════════════════
    #  ENGINE SIGNALS
    # ══════════════════════════════════════════════════════════════════

    def _on_state_changed(self, snapshot: PlaybackSnapshot) -> None:
        if snapshot.phase == Phase.COMPLETED:
            return  # folded into IDLE right after
        self._tray_icon.setIcon(make_tray_icon(snapshot.phase))
        self._update_actions(snapshot)

        step = self._engine.current_step
        if snapshot.phase == Phase.RUNNING and step is not None:
            tip = f"{APP_NAME} \u2014 {step.title} {_fmt_time(snapshot.time_remaining)}"
        elif snapshot.phase == Phase.PAUSED and step is not None:
            tip = f"{APP_NAME} \u2014 Paused ({step.title} {_fmt_time(snapshot.time_remaining)})"
        else:
            tip = f"{APP_NAME} \u2014 Ready"
        self._tray_icon.setToolTip(tip)

    def _on_sequence_started(self, _sequence_id: object) -> None:
        self._just_started = True
        self._play_cue("sequence_start")

    def _on_step_changed(self, _index: int) -> None:
        if self._just_started:
            self._just_started = False
            return
        self._play_cue("step_complete")

    def _on_sequence_completed(self, _sequence_id: object) -> None:
        self._play_cue("sequence_complete")

    def _on_command_failed(self, error: Exception) -> None:
        self._play_cue("error")
        self.show_message(APP_NAME, str(error))

    def _play_cue(self, name: str) -> None:
        if self._cues is None or self._settings.do_not_disturb:
            return
        self._cues.play(name)
