"""Caption dataclasses shared by every stage of the pipeline.

WHY: The recognition backend, the orchestrator, the timeline model, the
snap controller, the lyrics engine, and the formatters all exchange
captions. One well-typed representation decouples parsing from editing
and from export.

HOW: Two dataclasses form a hierarchy:
  CaptionWord — one whitespace-delimited token with synthesized timing
  Caption     — a timed line of text owning an ordered list of words

synthesize_word_timing() is the single place that subdivides a span
into equal word slots; every component that creates or moves a caption
goes through it.

RULES:
- All times are float seconds
- Caption.duration is clamped to >= 0
- contains() is inclusive on both bounds
- Words are always synthesized, never edited independently
- style is opaque to this package (owned by the rendering layer)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class CaptionWord:
    """A single word with timing inside its parent caption's span."""

    text: str
    start: float
    end: float
    id: str = field(default_factory=_new_id)


@dataclass
class Caption:
    """A timed caption line.

    RULES:
    - id: unique and stable across edits (used by update/mutate)
    - end >= start + MIN_CAPTION_DURATION_S once inside a CaptionTimeline
    - words: ordered, each contained in [start, end]
    """

    text: str
    start: float
    end: float
    words: List[CaptionWord] = field(default_factory=list)
    style: Optional[Any] = None
    id: str = field(default_factory=_new_id)

    @property
    def duration(self) -> float:
        return max(0.0, self.end - self.start)

    def contains(self, time: float) -> bool:
        return self.start <= time <= self.end

    def retime_words(self, min_span: float = 0.0) -> None:
        """Re-synthesize word timing for the current text and span."""
        self.words = synthesize_word_timing(self.text, self.start, self.end, min_span)


def synthesize_word_timing(
    text: str,
    start: float,
    end: float,
    min_span: float = 0.0,
) -> List[CaptionWord]:
    """Split text on whitespace and assign equal, sequential time slots.

    HOW: slot = max(min_span, end - start) / token_count; word i starts at
    start + i * slot and ends at min(end, its start + slot).

    RULES:
    - Empty or whitespace-only text yields []
    - No word starts or ends after ``end``
    """
    tokens = text.split()
    if not tokens:
        return []
    span = max(min_span, end - start)
    unit = span / len(tokens)

    words: List[CaptionWord] = []
    for idx, token in enumerate(tokens):
        word_start = min(end, start + idx * unit)
        words.append(CaptionWord(
            text=token,
            start=word_start,
            end=min(end, word_start + unit),
        ))
    return words
