"""Exceptions raised by Cadence, with user-facing messages."""

from __future__ import annotations


class CadenceError(Exception):
    """Base class for every error Cadence raises on purpose."""

    message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class EmptySequenceError(CadenceError):
    """``start()`` was handed a sequence with zero steps."""

    message = "Cannot start a sequence with no timers"


class SequenceNotFoundError(CadenceError):
    """The store has no sequence with the requested id."""

    message = "That sequence no longer exists."

    def __init__(self, sequence_id: object) -> None:
        super().__init__(f"No sequence with id {sequence_id}")
        self.sequence_id = sequence_id
