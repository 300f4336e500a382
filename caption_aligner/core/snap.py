"""Magnetic snapping to speech pauses and timeline coordinate mapping.

WHY: When a user drags or resizes a caption, boundaries feel "magnetic"
if they jump to the silence between spoken phrases. The gaps between
recognized captions are a cheap proxy for those silences. The same
controller also maps between time and pixels for the zoomable view.

HOW: derive_pause_points() records the midpoint of every gap of at
least PAUSE_GAP_THRESHOLD_S. snap() returns the nearest pause point if
it lies within SNAP_DISTANCE_S. The drag helpers compute a candidate
boundary, snap it, and apply it through CaptionTimeline.mutate(), which
re-enforces the minimum span and the sort order.

RULES:
- Pause points are derived from captions sorted by start
- snap() is the identity when there are no pause points
- Drag helpers never produce a span shorter than MIN_CAPTION_DURATION_S
- Moving or resizing a caption re-synthesizes its words
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from caption_aligner.config import (
    BASE_PIXELS_PER_SECOND,
    MIN_CAPTION_DURATION_S,
    PAUSE_GAP_THRESHOLD_S,
    SNAP_DISTANCE_S,
)
from caption_aligner.core.ir import Caption
from caption_aligner.core.timeline import CaptionTimeline


class TimelineSnapController:
    """Pause-point snapping plus pixel/time conversion for one timeline view."""

    def __init__(
        self,
        base_px_per_sec: float = BASE_PIXELS_PER_SECOND,
        zoom: float = 1.0,
        snap_distance: float = SNAP_DISTANCE_S,
    ) -> None:
        self.base_px_per_sec = base_px_per_sec
        self.zoom = zoom
        self.snap_distance = snap_distance
        self.selected_caption_id: Optional[str] = None
        self._pause_points: List[float] = []

    @property
    def pause_points(self) -> List[float]:
        return list(self._pause_points)

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------

    def pixels_per_second(self) -> float:
        return self.base_px_per_sec * self.zoom

    def x_for_time(self, time: float) -> float:
        return max(0.0, time) * self.pixels_per_second()

    def time_for_x(self, x: float) -> float:
        return max(0.0, x / max(self.pixels_per_second(), 1.0))

    # ------------------------------------------------------------------
    # Snapping
    # ------------------------------------------------------------------

    def derive_pause_points(self, captions: Iterable[Caption]) -> List[float]:
        ordered = sorted(captions, key=lambda c: c.start)
        pauses: List[float] = []
        for prev, nxt in zip(ordered, ordered[1:]):
            gap = nxt.start - prev.end
            if gap >= PAUSE_GAP_THRESHOLD_S:
                pauses.append((prev.end + nxt.start) * 0.5)
        self._pause_points = pauses
        return list(pauses)

    def snap(self, time: float) -> float:
        if not self._pause_points:
            return time
        nearest = min(self._pause_points, key=lambda p: abs(p - time))
        if abs(nearest - time) <= self.snap_distance:
            return nearest
        return time

    # ------------------------------------------------------------------
    # Drag / resize
    # ------------------------------------------------------------------

    def move(self, caption_id: str, delta: float, timeline: CaptionTimeline) -> None:
        def _edit(caption: Caption) -> None:
            new_start = max(0.0, caption.start + delta)
            new_end = max(new_start + MIN_CAPTION_DURATION_S, caption.end + delta)
            caption.start = self.snap(new_start)
            caption.end = max(caption.start + MIN_CAPTION_DURATION_S, self.snap(new_end))
            caption.retime_words()

        timeline.mutate(caption_id, _edit)

    def resize_leading(self, caption_id: str, delta: float, timeline: CaptionTimeline) -> None:
        def _edit(caption: Caption) -> None:
            candidate = min(caption.end - MIN_CAPTION_DURATION_S, caption.start + delta)
            snapped = self.snap(max(0.0, candidate))
            caption.start = max(0.0, min(snapped, caption.end - MIN_CAPTION_DURATION_S))
            caption.retime_words()

        timeline.mutate(caption_id, _edit)

    def resize_trailing(self, caption_id: str, delta: float, timeline: CaptionTimeline) -> None:
        def _edit(caption: Caption) -> None:
            candidate = max(caption.start + MIN_CAPTION_DURATION_S, caption.end + delta)
            caption.end = max(caption.start + MIN_CAPTION_DURATION_S, self.snap(candidate))
            caption.retime_words()

        timeline.mutate(caption_id, _edit)
