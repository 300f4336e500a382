"""Parsers for whisper.cpp's textual output.

WHY: whisper-cli reports progress ("... progress = 45%") and segments
("[00:00:01.000 --> 00:00:02.500]  Hello there") as free text on its
two output streams. The backend needs both as typed values.

HOW: Two independent regular expressions. A line may match either,
both, or neither. Segment words get evenly subdivided timing because
whisper-cli is run without token timestamps.

RULES:
- Progress: first 1-3 digit run followed by '%', as a fraction in [0, 1]
- Segment timestamps are hh:mm:ss.mmm; anything else does not match
- Segments with end <= start or empty text are rejected (None)
- Word slots are (end - start) / word_count; no word ends after the segment
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from caption_aligner.core.ir import Caption, CaptionWord, synthesize_word_timing
from caption_aligner.core.timecode import parse_timecode

_PROGRESS_RE = re.compile(r"(\d{1,3})%")
_SEGMENT_RE = re.compile(
    r"\[(\d\d:\d\d:\d\d\.\d\d\d)\s*-->\s*(\d\d:\d\d:\d\d\.\d\d\d)\]\s*(.*)$"
)

# Floor for the subdivided span when tokenizing a segment
_MIN_SEGMENT_WORD_SPAN_S = 0.01


@dataclass
class RecognizedSegment:
    """One timestamped segment parsed from recognizer output."""

    text: str
    start: float
    end: float
    words: List[CaptionWord] = field(default_factory=list)

    def to_caption(self) -> Caption:
        return Caption(
            text=self.text,
            start=self.start,
            end=self.end,
            words=list(self.words),
        )


def parse_progress(line: str) -> Optional[float]:
    match = _PROGRESS_RE.search(line)
    if match is None:
        return None
    return min(max(int(match.group(1)) / 100.0, 0.0), 1.0)


def parse_segment(line: str) -> Optional[RecognizedSegment]:
    match = _SEGMENT_RE.search(line)
    if match is None:
        return None

    start = parse_timecode(match.group(1))
    end = parse_timecode(match.group(2))
    text = match.group(3).strip()
    if start is None or end is None or end <= start or not text:
        return None

    return RecognizedSegment(
        text=text,
        start=start,
        end=end,
        words=tokenize_words(text, start, end),
    )


def tokenize_words(text: str, start: float, end: float) -> List[CaptionWord]:
    return synthesize_word_timing(text, start, end, _MIN_SEGMENT_WORD_SPAN_S)
