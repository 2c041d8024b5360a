"""Cadence: play ordered timer sequences back-to-back."""

__version__ = "0.1.0"
