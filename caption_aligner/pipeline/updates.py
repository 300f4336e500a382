"""Events emitted by the transcription orchestrator.

WHY: The owner of a transcription run (GUI, CLI, tests) needs one
channel carrying status text, progress, partial captions, and exactly
one terminal outcome. A closed set of small dataclasses makes the
variants explicit and easy to dispatch on with isinstance().

HOW: Six frozen dataclasses share the TranscriptionUpdate base. The
class-level ``is_terminal`` flag marks the three outcomes that end a run.

RULES:
- Terminal: FinishedUpdate, CancelledUpdate, FailedUpdate
- ProgressUpdate.fraction is in [0, 1] on the global scale
- FinishedUpdate.captions is sorted by start
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, List

from caption_aligner.core.ir import Caption


class TranscriptionUpdate:
    """Base class for all orchestrator events."""

    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class StatusUpdate(TranscriptionUpdate):
    text: str


@dataclass(frozen=True)
class ProgressUpdate(TranscriptionUpdate):
    fraction: float


@dataclass(frozen=True)
class PartialUpdate(TranscriptionUpdate):
    caption: Caption


@dataclass(frozen=True)
class FinishedUpdate(TranscriptionUpdate):
    is_terminal: ClassVar[bool] = True

    captions: List[Caption] = field(default_factory=list)
    audio_path: Path = Path()


@dataclass(frozen=True)
class CancelledUpdate(TranscriptionUpdate):
    is_terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class FailedUpdate(TranscriptionUpdate):
    is_terminal: ClassVar[bool] = True

    message: str = ""
