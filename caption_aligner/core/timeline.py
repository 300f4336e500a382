"""Authoritative in-memory caption collection.

WHY: Captions arrive from the recognizer, from lyric alignment, and from
user edits. Every consumer (snap controller, formatters, the rendering
layer) assumes the collection is sorted by start and that no caption is
shorter than the minimum duration. Funnelling every change through a
handful of operations makes those invariants hold after every call
instead of being something each caller must remember.

HOW: CaptionTimeline owns a plain list. replace/clear/append/update/
mutate are the only writers; each one normalizes minimum duration and
re-sorts by start. Module-level editing helpers (text, start/end
timecodes, style override) are thin wrappers over mutate().

RULES:
- Sorted by start ascending after every public call
- end >= start + MIN_CAPTION_DURATION_S after every public call
- mutate() on an unknown id is a no-op
- active_at() uses inclusive bounds and returns the first match
- Single writer: no internal locking
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, List, Optional

from caption_aligner.config import MIN_CAPTION_DURATION_S
from caption_aligner.core.ir import Caption
from caption_aligner.core.timecode import parse_timecode


def enforce_min_duration(caption: Caption, minimum: float = MIN_CAPTION_DURATION_S) -> None:
    """Push ``end`` forward so the caption spans at least ``minimum``."""
    if caption.end < caption.start + minimum:
        caption.end = caption.start + minimum


class CaptionTimeline:
    """Ordered, invariant-preserving caption store."""

    def __init__(self, captions: Optional[Iterable[Caption]] = None) -> None:
        self._captions: List[Caption] = []
        if captions is not None:
            self.replace(captions)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def captions(self) -> List[Caption]:
        """Snapshot of the collection (a new list, live Caption objects)."""
        return list(self._captions)

    def __len__(self) -> int:
        return len(self._captions)

    def __iter__(self) -> Iterator[Caption]:
        return iter(list(self._captions))

    def get(self, caption_id: str) -> Optional[Caption]:
        for caption in self._captions:
            if caption.id == caption_id:
                return caption
        return None

    def active_at(self, time: float) -> Optional[Caption]:
        for caption in self._captions:
            if caption.contains(time):
                return caption
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def replace(self, captions: Iterable[Caption]) -> None:
        self._captions = list(captions)
        self._normalize()

    def clear(self) -> None:
        self._captions = []

    def append(self, caption: Caption) -> None:
        self._captions.append(caption)
        self._normalize()

    def update(self, caption: Caption) -> None:
        """Replace the entry with the same id, or append if absent."""
        for idx, existing in enumerate(self._captions):
            if existing.id == caption.id:
                self._captions[idx] = caption
                self._normalize()
                return
        self.append(caption)

    def mutate(self, caption_id: str, edit: Callable[[Caption], Any]) -> None:
        """Apply ``edit`` in place to the caption with ``caption_id``."""
        caption = self.get(caption_id)
        if caption is None:
            return
        edit(caption)
        self._normalize()

    def _normalize(self) -> None:
        for caption in self._captions:
            enforce_min_duration(caption)
        # list.sort is stable: equal starts keep insertion order
        self._captions.sort(key=lambda c: c.start)


# ---------------------------------------------------------------------------
# Field editing helpers
# ---------------------------------------------------------------------------


def set_caption_text(timeline: CaptionTimeline, caption_id: str, text: str) -> None:
    """Replace a caption's text and re-synthesize its words over its span."""

    def _edit(caption: Caption) -> None:
        caption.text = text
        caption.retime_words()

    timeline.mutate(caption_id, _edit)


def set_caption_start(timeline: CaptionTimeline, caption_id: str, timecode: str) -> bool:
    """Set the start from a typed timecode; returns False if it doesn't parse.

    The start is clamped to [0, end - MIN_CAPTION_DURATION_S].
    """
    parsed = parse_timecode(timecode)
    if parsed is None:
        return False

    def _edit(caption: Caption) -> None:
        caption.start = max(0.0, min(parsed, caption.end - MIN_CAPTION_DURATION_S))
        caption.retime_words()

    timeline.mutate(caption_id, _edit)
    return True


def set_caption_end(timeline: CaptionTimeline, caption_id: str, timecode: str) -> bool:
    """Set the end from a typed timecode; returns False if it doesn't parse."""
    parsed = parse_timecode(timecode)
    if parsed is None:
        return False

    def _edit(caption: Caption) -> None:
        caption.end = max(caption.start + MIN_CAPTION_DURATION_S, parsed)
        caption.retime_words()

    timeline.mutate(caption_id, _edit)
    return True


def set_style_override(timeline: CaptionTimeline, caption_id: str, style: Optional[Any]) -> None:
    """Attach (or clear, with None) an opaque per-caption style."""

    def _edit(caption: Caption) -> None:
        caption.style = style

    timeline.mutate(caption_id, _edit)
