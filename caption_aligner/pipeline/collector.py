"""Thread-safe accumulator for captions produced during a run.

WHY: Segments arrive on the subprocess reader threads, and whisper.cpp
may re-emit a segment with refined text. The final caption set must
contain one caption per spoken phrase, not one per emission.

HOW: upsert() merges a new caption into the first collected caption
whose start lies within PARTIAL_MERGE_WINDOW_S (text and words replaced,
end extended to the later of the two) and otherwise appends a copy.
values() returns a start-sorted snapshot.

RULES:
- All access is guarded by a threading.Lock
- Merging keeps the existing caption's id
- Stored captions are copies; callers may mutate what they passed in
"""

from __future__ import annotations

import copy
import threading
from typing import List

from caption_aligner.config import PARTIAL_MERGE_WINDOW_S
from caption_aligner.core.ir import Caption


class CaptionCollector:
    """Upsert-by-proximity caption store shared by reader threads."""

    def __init__(self, merge_window: float = PARTIAL_MERGE_WINDOW_S) -> None:
        self._lock = threading.Lock()
        self._merge_window = merge_window
        self._captions: List[Caption] = []

    def upsert(self, caption: Caption) -> None:
        with self._lock:
            for existing in self._captions:
                if abs(existing.start - caption.start) < self._merge_window:
                    existing.text = caption.text
                    existing.words = copy.deepcopy(caption.words)
                    existing.end = max(existing.end, caption.end)
                    return
            self._captions.append(copy.deepcopy(caption))

    def values(self) -> List[Caption]:
        with self._lock:
            return sorted(copy.deepcopy(self._captions), key=lambda c: c.start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._captions)
