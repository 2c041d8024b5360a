"""Audio cues."""

from .cues import CueManager, CUE_NAMES

__all__ = ["CueManager", "CUE_NAMES"]
