"""Unit tests for the caption IR, timecodes, and CaptionTimeline.

WHY: Every consumer of the timeline assumes captions are sorted and at
least MIN_CAPTION_DURATION_S long. One mutation path that skips
normalization would let a zero-length caption reach the renderer or
an exporter.

HOW: Each public mutation is exercised, then the invariant is checked
with a shared helper. Timecode formatting/parsing is tested on the
values the editor and SRT exporter actually use.

RULES:
- _assert_invariant() after every mutation
- Words are re-synthesized whenever text or bounds change
"""

import random

import pytest

from caption_aligner.config import MIN_CAPTION_DURATION_S
from caption_aligner.core.ir import Caption, synthesize_word_timing
from caption_aligner.core.timecode import format_timecode, parse_timecode
from caption_aligner.core.timeline import (
    CaptionTimeline,
    enforce_min_duration,
    set_caption_end,
    set_caption_start,
    set_caption_text,
    set_style_override,
)


def _assert_invariant(timeline):
    captions = timeline.captions
    starts = [c.start for c in captions]
    assert starts == sorted(starts)
    for caption in captions:
        assert caption.end >= caption.start + MIN_CAPTION_DURATION_S - 1e-9


# ---------------------------------------------------------------------------
# TestTimecode
# ---------------------------------------------------------------------------


class TestTimecode:

    def test_format(self):
        assert format_timecode(3723.25) == "01:02:03.250"

    def test_format_srt_separator(self):
        assert format_timecode(1.5, separator=",") == "00:00:01,500"

    def test_format_negative_clamped(self):
        assert format_timecode(-4.0) == "00:00:00.000"

    def test_format_rounds_to_millisecond(self):
        assert format_timecode(0.0996) == "00:00:00.100"

    def test_parse(self):
        assert parse_timecode("01:02:03.250") == pytest.approx(3723.25)

    def test_parse_without_millis(self):
        assert parse_timecode("00:00:07") == pytest.approx(7.0)

    @pytest.mark.parametrize("value", ["", "12", "00:01", "aa:bb:cc", "1:2:3:4"])
    def test_parse_malformed(self, value):
        assert parse_timecode(value) is None

    def test_round_trip_of_formatted_value(self):
        assert parse_timecode(format_timecode(12.345)) == pytest.approx(12.345)


# ---------------------------------------------------------------------------
# TestCaptionIR
# ---------------------------------------------------------------------------


class TestCaptionIR:

    def test_duration_clamped(self):
        assert Caption("x", 2.0, 1.0).duration == 0.0

    def test_contains_inclusive(self):
        caption = Caption("x", 1.0, 2.0)
        assert caption.contains(1.0)
        assert caption.contains(2.0)
        assert not caption.contains(2.0001)

    def test_unique_ids(self):
        assert Caption("a", 0, 1).id != Caption("a", 0, 1).id

    def test_synthesize_min_span(self):
        words = synthesize_word_timing("a b", 1.0, 1.05, min_span=0.1)
        assert words[0].start == pytest.approx(1.0)
        assert words[0].end == pytest.approx(1.05)
        assert words[1].start == pytest.approx(1.05)
        assert words[1].end == pytest.approx(1.05)

    def test_retime_words(self):
        caption = Caption("one two", 0.0, 2.0)
        caption.retime_words()
        assert [w.text for w in caption.words] == ["one", "two"]
        assert [w.start for w in caption.words] == pytest.approx([0.0, 1.0])


# ---------------------------------------------------------------------------
# TestCaptionTimeline
# ---------------------------------------------------------------------------


class TestCaptionTimeline:

    def test_replace_sorts_and_enforces_minimum(self, make_caption):
        timeline = CaptionTimeline()
        timeline.replace([make_caption("b", 2.0, 3.0), make_caption("a", 1.0, 1.0)])
        assert [c.text for c in timeline] == ["a", "b"]
        assert timeline.captions[0].end == pytest.approx(1.0 + MIN_CAPTION_DURATION_S)
        _assert_invariant(timeline)

    def test_constructor_normalizes(self, make_caption):
        timeline = CaptionTimeline([make_caption("late", 5.0, 6.0), make_caption("early", 0.0, 0.01)])
        assert [c.text for c in timeline] == ["early", "late"]
        _assert_invariant(timeline)

    def test_append_keeps_order(self, speech_captions, make_caption):
        timeline = CaptionTimeline(speech_captions)
        timeline.append(make_caption("inserted", 1.2, 1.3))
        assert [c.text for c in timeline][1] == "inserted"
        _assert_invariant(timeline)

    def test_equal_starts_keep_insertion_order(self, make_caption):
        timeline = CaptionTimeline()
        timeline.append(make_caption("first", 1.0, 2.0))
        timeline.append(make_caption("second", 1.0, 1.5))
        assert [c.text for c in timeline] == ["first", "second"]

    def test_update_replaces_by_id(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        target = timeline.captions[2]
        replacement = Caption("replaced", 0.2, 0.2, id=target.id)
        timeline.update(replacement)
        assert len(timeline) == 4
        assert timeline.get(target.id).text == "replaced"
        assert timeline.captions[0].text == "Hello there"
        assert timeline.captions[1].text == "replaced"
        _assert_invariant(timeline)

    def test_update_unknown_id_appends(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        timeline.update(Caption("new", 10.0, 11.0))
        assert len(timeline) == 5
        assert timeline.captions[-1].text == "new"

    def test_mutate_unknown_id_is_noop(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        before = [(c.id, c.start, c.end) for c in timeline]
        timeline.mutate("missing", lambda c: setattr(c, "start", 99.0))
        assert [(c.id, c.start, c.end) for c in timeline] == before

    def test_mutate_resorts(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        first_id = timeline.captions[0].id

        def _push_late(caption):
            caption.start = 20.0
            caption.end = 20.0

        timeline.mutate(first_id, _push_late)
        assert timeline.captions[-1].id == first_id
        _assert_invariant(timeline)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_invariant_holds_across_mutate_sequence(self, speech_captions, seed):
        rng = random.Random(seed)
        timeline = CaptionTimeline(speech_captions)

        def _collapse(caption):
            caption.end = caption.start - rng.uniform(0.0, 2.0)

        def _jump_past_neighbours(caption):
            width = caption.end - caption.start
            caption.start = rng.uniform(0.0, 8.0)
            caption.end = caption.start + width

        def _zero_width(caption):
            caption.end = caption.start

        def _shift(caption):
            delta = rng.uniform(-1.5, 1.5)
            caption.start = max(0.0, caption.start + delta)
            caption.end = caption.end + delta

        edits = [_collapse, _jump_past_neighbours, _zero_width, _shift]
        for _ in range(40):
            target = rng.choice(timeline.captions)
            timeline.mutate(target.id, rng.choice(edits))
            assert len(timeline) == 4
            _assert_invariant(timeline)

    def test_active_at(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        assert timeline.active_at(0.5).text == "Hello there"
        assert timeline.active_at(1.0).text == "Hello there"
        assert timeline.active_at(1.2) is None

    def test_clear(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        timeline.clear()
        assert len(timeline) == 0
        assert timeline.active_at(0.5) is None

    def test_captions_is_a_copy(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        timeline.captions.clear()
        assert len(timeline) == 4

    def test_enforce_min_duration(self):
        caption = Caption("x", 1.0, 0.5)
        enforce_min_duration(caption)
        assert caption.end == pytest.approx(1.0 + MIN_CAPTION_DURATION_S)


# ---------------------------------------------------------------------------
# TestEditingHelpers
# ---------------------------------------------------------------------------


class TestEditingHelpers:

    def test_set_text_retimes_words(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[0].id
        set_caption_text(timeline, cid, "a b c d")
        caption = timeline.get(cid)
        assert [w.text for w in caption.words] == ["a", "b", "c", "d"]
        assert [w.start for w in caption.words] == pytest.approx([0.0, 0.25, 0.5, 0.75])

    def test_set_start(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id
        assert set_caption_start(timeline, cid, "00:00:01.750")
        assert timeline.get(cid).start == pytest.approx(1.75)
        assert timeline.get(cid).words[0].start == pytest.approx(1.75)

    def test_set_start_clamped_before_end(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id
        assert set_caption_start(timeline, cid, "00:00:09.000")
        caption = timeline.get(cid)
        assert caption.start == pytest.approx(2.5 - MIN_CAPTION_DURATION_S)
        _assert_invariant(timeline)

    def test_set_start_malformed_is_rejected(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id
        assert not set_caption_start(timeline, cid, "soon")
        assert timeline.get(cid).start == pytest.approx(1.5)

    def test_set_end_never_before_minimum(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id
        assert set_caption_end(timeline, cid, "00:00:00.000")
        assert timeline.get(cid).end == pytest.approx(1.5 + MIN_CAPTION_DURATION_S)

    def test_set_end_malformed_is_rejected(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        assert not set_caption_end(timeline, timeline.captions[0].id, "1:2")

    def test_style_override(self, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[0].id
        set_style_override(timeline, cid, {"color": "yellow"})
        assert timeline.get(cid).style == {"color": "yellow"}
        set_style_override(timeline, cid, None)
        assert timeline.get(cid).style is None
