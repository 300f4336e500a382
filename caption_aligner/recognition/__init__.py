"""Speech recognition via the whisper.cpp command-line tool.

WHY: The recognition model is a black box; this package only knows how
to find it, run it, and read its output.

HOW: line_buffer.py reassembles lines from pipe chunks, parser.py turns
lines into progress values and segments, backend.py owns the process.
"""

from caption_aligner.recognition.backend import (
    CliNotFoundError,
    ModelNotFoundError,
    WhisperBackendError,
    WhisperCLIBackend,
    WhisperFailedError,
)
from caption_aligner.recognition.line_buffer import LineBuffer
from caption_aligner.recognition.parser import (
    RecognizedSegment,
    parse_progress,
    parse_segment,
    tokenize_words,
)

__all__ = [
    "CliNotFoundError",
    "LineBuffer",
    "ModelNotFoundError",
    "RecognizedSegment",
    "WhisperBackendError",
    "WhisperCLIBackend",
    "WhisperFailedError",
    "parse_progress",
    "parse_segment",
    "tokenize_words",
]
