"""Audio cues for playback transitions, synthesised with numpy.

Each cue is rendered once as a 16-bit mono WAV into the cache directory
and played through ``QSoundEffect``.

Cue names
---------
- ``sequence_start``     two rising notes
- ``step_complete``      single soft bell, the next timer is up
- ``sequence_complete``  short major arpeggio with a held top note
- ``error``              low falling pair (e.g. empty sequence)
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path
from typing import Callable

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

logger = logging.getLogger(__name__)


# ── paths ────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "Cadence"
CUES_DIR = APP_SUPPORT_DIR / "sounds"

CUE_NAMES = (
    "sequence_start",
    "step_complete",
    "sequence_complete",
    "error",
)

SAMPLE_RATE = 44100


# ═══════════════════════════════════════════════════════════════════════════
#  SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════════


def _envelope(length: int, attack: int, release: int, sustain: float = 0.6) -> np.ndarray:
    """Attack / flat sustain / release envelope (durations in samples)."""
    env = np.full(length, sustain, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, sustain, a)
    r = min(release, length - a)
    if r > 0:
        env[length - r:] = np.linspace(sustain, 0.0, r)
    return env


def _tone(freq: float, seconds: float, level: float = 0.5) -> np.ndarray:
    n = int(SAMPLE_RATE * seconds)
    t = np.arange(n) / SAMPLE_RATE
    wave_ = np.sin(2 * np.pi * freq * t) * level
    return wave_ * _envelope(n, attack=n // 10, release=n // 2)


def _silence(seconds: float) -> np.ndarray:
    return np.zeros(int(SAMPLE_RATE * seconds))


def _encode_wav(samples: np.ndarray) -> bytes:
    """float samples in -1..1 → 16-bit PCM WAV bytes."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def render_sequence_start() -> bytes:
    """G4 → D5."""
    return _encode_wav(np.concatenate([
        _tone(392.00, 0.12), _silence(0.03), _tone(587.33, 0.22),
    ]))


def render_step_complete() -> bytes:
    """A soft A5 bell with an octave overtone."""
    base = _tone(880.0, 0.6, level=0.35)
    overtone = _tone(1760.0, 0.6, level=0.06)
    return _encode_wav(base + overtone)


def render_sequence_complete() -> bytes:
    """C5 → E5 → G5, held C6."""
    notes = [_tone(f, 0.1) for f in (523.25, 659.25, 783.99)]
    gaps = [_silence(0.02)] * len(notes)
    parts = [p for pair in zip(notes, gaps) for p in pair]
    parts.append(_tone(1046.50, 0.4))
    return _encode_wav(np.concatenate(parts))


def render_error() -> bytes:
    """E4 → C4, low and short."""
    return _encode_wav(np.concatenate([
        _tone(329.63, 0.1, level=0.4), _silence(0.04), _tone(261.63, 0.16, level=0.4),
    ]))


RENDERERS: dict[str, Callable[[], bytes]] = {
    "sequence_start": render_sequence_start,
    "step_complete": render_step_complete,
    "sequence_complete": render_sequence_complete,
    "error": render_error,
}


# ═══════════════════════════════════════════════════════════════════════════
#  CUE MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class CueManager(QObject):
    """Renders, caches and plays the playback cues.

    Usage::

        cues = CueManager(parent=self)
        cues.set_volume(70)
        cues.play("step_complete")
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        cues_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._cues_dir = cues_dir or CUES_DIR
        self._effects: dict[str, QSoundEffect] = {}

        self._render_missing()
        self._load_effects()

    # ── public API ────────────────────────────────────────────────────

    @property
    def volume(self) -> int:
        """Current volume as 0-100 integer."""
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_volume(self, level: int) -> None:
        """Set volume (0-100), clamped.  Updates all loaded effects."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def play(self, name: str) -> None:
        """Play a cue by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is None:
            logger.debug("No cue named %r", name)
            return
        effect.play()

    # ── internal ──────────────────────────────────────────────────────

    def _render_missing(self) -> None:
        self._cues_dir.mkdir(parents=True, exist_ok=True)
        for name, render in RENDERERS.items():
            path = self._cues_dir / f"{name}.wav"
            if not path.exists():
                path.write_bytes(render())

    def _load_effects(self) -> None:
        for name in CUE_NAMES:
            path = self._cues_dir / f"{name}.wav"
            if not path.exists():
                continue
            effect = QSoundEffect(self)
            effect.setSource(QUrl.fromLocalFile(str(path)))
            effect.setVolume(self._volume)
            self._effects[name] = effect
