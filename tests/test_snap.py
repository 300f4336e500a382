"""Unit tests for pause-point snapping and timeline coordinates.

WHY: Snapping that triggers outside its distance, or a drag that
collapses a caption below the minimum span, makes the editor feel
broken in ways users notice immediately.

HOW: The speech_captions fixture has one gap too short to be a pause
(0.05 s) and two real pauses (midpoints 1.25 and 4.0). Drag helpers
are applied through a CaptionTimeline and checked against both the
snap targets and the timeline invariant.
"""

import pytest

from caption_aligner.config import MIN_CAPTION_DURATION_S
from caption_aligner.core.ir import Caption
from caption_aligner.core.snap import TimelineSnapController
from caption_aligner.core.timeline import CaptionTimeline


@pytest.fixture
def controller(speech_captions):
    ctrl = TimelineSnapController()
    ctrl.derive_pause_points(speech_captions)
    return ctrl


class TestPausePoints:

    def test_midpoints_of_long_gaps(self, controller):
        assert controller.pause_points == pytest.approx([1.25, 4.0])

    def test_unsorted_input(self, speech_captions):
        ctrl = TimelineSnapController()
        assert ctrl.derive_pause_points(reversed(speech_captions)) == pytest.approx([1.25, 4.0])

    def test_gap_at_threshold_counts(self):
        ctrl = TimelineSnapController()
        points = ctrl.derive_pause_points([Caption("a", 0.0, 1.0), Caption("b", 1.125, 2.0)])
        assert points == pytest.approx([1.0625])

    def test_overlap_is_not_a_pause(self):
        ctrl = TimelineSnapController()
        assert ctrl.derive_pause_points([Caption("a", 0.0, 2.0), Caption("b", 1.0, 3.0)]) == []

    def test_rederive_replaces_points(self, controller):
        controller.derive_pause_points([])
        assert controller.pause_points == []


class TestSnap:

    def test_within_distance_snaps(self, controller):
        assert controller.snap(1.3) == pytest.approx(1.25)

    def test_outside_distance_unchanged(self, controller):
        assert controller.snap(1.5) == pytest.approx(1.5)

    def test_nearest_point_chosen(self, controller):
        assert controller.snap(3.95) == pytest.approx(4.0)

    def test_no_points_is_identity(self):
        assert TimelineSnapController().snap(7.77) == pytest.approx(7.77)


class TestCoordinates:

    def test_pixels_per_second_with_zoom(self):
        ctrl = TimelineSnapController(zoom=2.0)
        assert ctrl.pixels_per_second() == pytest.approx(280.0)

    def test_x_time_inverse(self):
        ctrl = TimelineSnapController(zoom=1.5)
        assert ctrl.time_for_x(ctrl.x_for_time(3.2)) == pytest.approx(3.2)

    def test_negative_clamped(self):
        ctrl = TimelineSnapController()
        assert ctrl.x_for_time(-1.0) == 0.0
        assert ctrl.time_for_x(-50.0) == 0.0

    def test_tiny_zoom_does_not_divide_by_zero(self):
        ctrl = TimelineSnapController(zoom=0.0)
        assert ctrl.time_for_x(10.0) == pytest.approx(10.0)


class TestDragHelpers:

    def test_move_snaps_start(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        target = timeline.captions[3]  # "back away", 4.5 → 5.0
        controller.move(target.id, -0.45, timeline)
        moved = timeline.get(target.id)
        assert moved.start == pytest.approx(4.0)
        assert moved.end == pytest.approx(4.55)
        assert moved.words[0].start == pytest.approx(4.0)

    def test_move_clamps_at_zero(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[0].id
        controller.move(cid, -10.0, timeline)
        caption = timeline.get(cid)
        assert caption.start == 0.0
        assert caption.end >= MIN_CAPTION_DURATION_S

    def test_resize_leading_keeps_minimum(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id
        controller.resize_leading(cid, 5.0, timeline)
        caption = timeline.get(cid)
        assert caption.start == pytest.approx(caption.end - MIN_CAPTION_DURATION_S)

    def test_resize_leading_snaps(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[1].id  # starts at 1.5
        controller.resize_leading(cid, -0.2, timeline)
        assert timeline.get(cid).start == pytest.approx(1.25)

    def test_resize_trailing_snaps(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[2].id  # ends at 3.5
        controller.resize_trailing(cid, 0.45, timeline)
        assert timeline.get(cid).end == pytest.approx(4.0)

    def test_resize_trailing_keeps_minimum(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        cid = timeline.captions[0].id
        controller.resize_trailing(cid, -10.0, timeline)
        caption = timeline.get(cid)
        assert caption.end == pytest.approx(caption.start + MIN_CAPTION_DURATION_S)

    def test_unknown_id_is_noop(self, controller, speech_captions):
        timeline = CaptionTimeline(speech_captions)
        before = [(c.start, c.end) for c in timeline]
        controller.move("missing", 1.0, timeline)
        assert [(c.start, c.end) for c in timeline] == before

    def test_selection_state(self):
        ctrl = TimelineSnapController()
        assert ctrl.selected_caption_id is None
        ctrl.selected_caption_id = "abc"
        assert ctrl.selected_caption_id == "abc"
