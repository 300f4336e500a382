"""Lyric-to-rhythm alignment.

WHY: Music videos often have lyrics available as plain text while the
recognizer struggles with sung vocals. The rhythm of whatever speech
was recognized (caption durations) is still a useful guide for how long
each lyric line should stay on screen.

HOW: Lyrics are split into non-empty lines. A rhythm pool is built from
the recognized caption durations; lines cycle through it (or use an
even share of the track when it is empty). Lines are laid out
sequentially with a small gap, clamped to the track, and each gets
evenly subdivided word timing.

RULES:
- No lines → no captions
- Rhythm pool excludes captions of 0.05 s or shorter
- Each line lasts at least LYRIC_MIN_LINE_DURATION_S before clamping
- Lines start no later than track_duration - duration, end no later
  than track_duration
- nudge() preserves a caption's width and keeps it inside [0, max]
"""

from __future__ import annotations

from typing import Iterable, List

from caption_aligner.config import (
    LYRIC_FALLBACK_MIN_DURATION_S,
    LYRIC_LINE_GAP_S,
    LYRIC_MIN_LINE_DURATION_S,
    LYRIC_MIN_WORD_SPAN_S,
    MIN_CAPTION_DURATION_S,
)
from caption_aligner.core.ir import Caption, synthesize_word_timing


class LyricsAlignmentEngine:
    """Builds a caption set from lyric text and observed speech rhythm."""

    def segment_lyrics(self, lyrics: str) -> List[str]:
        return [line.strip() for line in lyrics.splitlines() if line.strip()]

    def suggest_alignment(
        self,
        lyrics_text: str,
        speech_captions: Iterable[Caption],
        track_duration: float,
    ) -> List[Caption]:
        lines = self.segment_lyrics(lyrics_text)
        if not lines:
            return []

        rhythm_pool = [
            c.duration for c in speech_captions if c.duration > MIN_CAPTION_DURATION_S
        ]
        fallback = max(LYRIC_FALLBACK_MIN_DURATION_S, track_duration / len(lines))

        cursor = 0.0
        generated: List[Caption] = []
        for index, line in enumerate(lines):
            rhythm = rhythm_pool[index % len(rhythm_pool)] if rhythm_pool else fallback
            duration = max(LYRIC_MIN_LINE_DURATION_S, rhythm)
            start = min(cursor, max(0.0, track_duration - duration))
            end = min(track_duration, start + duration)
            generated.append(Caption(
                text=line,
                start=start,
                end=end,
                words=synthesize_word_timing(line, start, end, LYRIC_MIN_WORD_SPAN_S),
            ))
            cursor = end + LYRIC_LINE_GAP_S

        return generated

    def nudge(self, caption: Caption, delta: float, max_duration: float) -> None:
        """Shift ``caption`` by ``delta`` seconds in place, clamped to the track."""
        width = caption.duration
        new_start = max(0.0, min(max_duration - width, caption.start + delta))
        caption.start = new_start
        caption.end = new_start + width
        caption.retime_words(LYRIC_MIN_WORD_SPAN_S)
