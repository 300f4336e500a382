"""Cooperative cancellation shared between the orchestrator and its stages.

WHY: Extraction and recognition run on a worker thread and must stop
when the owner cancels, but neither stage can be interrupted
preemptively. A shared latch that both sides poll is the simplest
correct contract.

HOW: CancellationToken wraps a boolean behind a threading.Lock.
TranscriptionCancelled is the distinguished signal a stage raises once
it has observed the latch, so callers can tell a user-initiated stop
from a failure.

RULES:
- cancel() is idempotent; the latch never resets
- TranscriptionCancelled does not derive from any failure base class
"""

from __future__ import annotations

import threading


class TranscriptionCancelled(Exception):
    """Raised when a stage stops because its token was cancelled.

    RULES:
    - Never wraps an underlying error; it is not a failure
    """

    def __init__(self, message: str = "Transcription cancelled") -> None:
        super().__init__(message)


class CancellationToken:
    """Thread-safe, one-way boolean latch."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._flagged = False

    def cancel(self) -> None:
        with self._lock:
            self._flagged = True

    def is_cancelled(self) -> bool:
        with self._lock:
            return self._flagged

    def raise_if_cancelled(self) -> None:
        """Raise TranscriptionCancelled if the latch is set."""
        if self.is_cancelled():
            raise TranscriptionCancelled()
