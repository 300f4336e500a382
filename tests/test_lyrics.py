"""Unit tests for lyric-to-rhythm alignment.

WHY: Lyric captions must stay inside the track, keep a readable minimum
length, and follow the recognized speech rhythm when there is one.

HOW: suggest_alignment() is checked with no speech (even split of the
track), with a speech rhythm pool, and against the track-end clamps.
nudge() is checked for width preservation and clamping.

RULES:
- Three lines, no speech, 9 s track → starts 0, 3.03, 6.0, duration 3.0
- Rhythm pool ignores captions of MIN_CAPTION_DURATION_S or shorter
"""

import pytest

from caption_aligner.core.ir import Caption
from caption_aligner.core.lyrics import LyricsAlignmentEngine

LYRICS = """
First line of the song

second line here
third and final line
"""


@pytest.fixture
def engine():
    return LyricsAlignmentEngine()


class TestSegmentLyrics:

    def test_blank_lines_dropped_and_trimmed(self, engine):
        assert engine.segment_lyrics("  a  \n\n\t\n b\n") == ["a", "b"]

    def test_empty(self, engine):
        assert engine.segment_lyrics("\n \n") == []


class TestSuggestAlignment:

    def test_even_split_without_speech(self, engine):
        captions = engine.suggest_alignment(LYRICS, [], 9.0)
        assert [c.text for c in captions] == [
            "First line of the song",
            "second line here",
            "third and final line",
        ]
        assert [c.start for c in captions] == pytest.approx([0.0, 3.03, 6.0])
        assert [c.duration for c in captions] == pytest.approx([3.0, 3.0, 3.0])
        assert captions[-1].end == pytest.approx(9.0)

    def test_no_lines(self, engine):
        assert engine.suggest_alignment("\n\n", [], 9.0) == []

    def test_rhythm_from_speech(self, engine, speech_captions):
        # speech durations: 1.0, 1.0, 0.95, 0.5
        captions = engine.suggest_alignment("a\nb\nc\nd\ne", speech_captions, 60.0)
        assert [c.duration for c in captions] == pytest.approx([1.0, 1.0, 0.95, 0.5, 1.0])
        for prev, nxt in zip(captions, captions[1:]):
            assert nxt.start == pytest.approx(prev.end + 0.03)

    def test_short_speech_ignored_in_pool(self, engine):
        speech = [Caption("blip", 0.0, 0.05), Caption("word", 1.0, 3.0)]
        captions = engine.suggest_alignment("x\ny", speech, 60.0)
        assert [c.duration for c in captions] == pytest.approx([2.0, 2.0])

    def test_minimum_line_duration(self, engine):
        speech = [Caption("quick", 0.0, 0.2)]
        captions = engine.suggest_alignment("x", speech, 60.0)
        assert captions[0].duration == pytest.approx(0.45)

    def test_fallback_minimum(self, engine):
        lyrics = "\n".join("line {}".format(i) for i in range(10))
        captions = engine.suggest_alignment(lyrics, [], 1.0)
        assert captions[0].duration == pytest.approx(0.5)

    def test_never_past_track_end(self, engine):
        lyrics = "\n".join("line {}".format(i) for i in range(10))
        captions = engine.suggest_alignment(lyrics, [], 2.0)
        for caption in captions:
            assert caption.start >= 0.0
            assert caption.end <= 2.0 + 1e-9

    def test_words_synthesized(self, engine):
        captions = engine.suggest_alignment("one two three", [], 3.0)
        words = captions[0].words
        assert [w.text for w in words] == ["one", "two", "three"]
        assert [w.start for w in words] == pytest.approx([0.0, 1.0, 2.0])


class TestNudge:

    def test_shift_preserves_width(self, engine):
        caption = Caption("a b", 1.0, 2.0)
        engine.nudge(caption, 0.5, 10.0)
        assert caption.start == pytest.approx(1.5)
        assert caption.end == pytest.approx(2.5)
        assert caption.words[0].start == pytest.approx(1.5)

    def test_clamped_at_zero(self, engine):
        caption = Caption("a", 1.0, 2.0)
        engine.nudge(caption, -5.0, 10.0)
        assert caption.start == 0.0
        assert caption.end == pytest.approx(1.0)

    def test_clamped_at_track_end(self, engine):
        caption = Caption("a", 1.0, 2.0)
        engine.nudge(caption, 50.0, 10.0)
        assert caption.start == pytest.approx(9.0)
        assert caption.end == pytest.approx(10.0)
