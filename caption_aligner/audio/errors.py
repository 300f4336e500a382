"""Exceptions raised by the audio extraction stage.

WHY: The orchestrator reports failures by kind (no audio track, decoder
failure, unreadable WAV). Typed exceptions let it and the CLI tell
them apart without parsing messages.

RULES:
- All derive from AudioExtractionError
- Cancellation is never reported through these classes
"""

from __future__ import annotations

from typing import Optional


class AudioExtractionError(Exception):
    """Base class for extraction and waveform failures."""


class MissingAudioTrackError(AudioExtractionError):
    """Raised when the source media has no audio stream."""


class ReaderFailedError(AudioExtractionError):
    """Raised when the decoder cannot start or terminates with an error.

    RULES:
    - exit_code is the decoder's exit status, or None if it never ran
    """

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        self.exit_code = exit_code
        super().__init__(message)


class WavReadFailedError(AudioExtractionError):
    """Raised when a WAV file is too short to contain any payload."""
