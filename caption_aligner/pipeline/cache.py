"""Per-video store of finished transcriptions.

WHY: Re-running whisper.cpp on a video that was already transcribed in
this session wastes minutes. The owner re-imports videos often (switch
away, switch back), so finished results are kept for the life of the
process and handed straight back.

HOW: A dict keyed by the resolved source path, guarded by a
threading.Lock because the orchestrator's worker thread writes it while
the owner's thread reads it. Entries hold deep copies so later edits in
a CaptionTimeline never leak into the cache.

RULES:
- Key = str(Path(video).expanduser().resolve())
- get() returns a copy of the entry, or None
- invalidate() / clear() are the only ways an entry disappears
- Nothing is persisted to disk
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from caption_aligner.core.ir import Caption

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Finished transcription for one source video.

    RULES:
    - captions: sorted by start
    - audio_path: the extracted canonical WAV file
    - waveform: peak buckets, or None if summarization failed
    """

    captions: List[Caption]
    audio_path: Path
    waveform: Optional[List[float]] = None
    created_at: float = field(default_factory=time.time)


class TranscriptionCache:
    """Thread-safe, process-lifetime cache keyed by source video."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key_for(video: Union[str, Path]) -> str:
        return str(Path(video).expanduser().resolve())

    def get(self, video: Union[str, Path]) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(self.key_for(video))
            return copy.deepcopy(entry) if entry is not None else None

    def store(
        self,
        video: Union[str, Path],
        captions: List[Caption],
        audio_path: Path,
        waveform: Optional[List[float]] = None,
    ) -> CacheEntry:
        entry = CacheEntry(
            captions=sorted(copy.deepcopy(captions), key=lambda c: c.start),
            audio_path=Path(audio_path),
            waveform=list(waveform) if waveform is not None else None,
        )
        key = self.key_for(video)
        with self._lock:
            self._entries[key] = entry
        logger.info("Cached %d caption(s) for %s", len(entry.captions), key)
        return copy.deepcopy(entry)

    def invalidate(self, video: Union[str, Path]) -> bool:
        with self._lock:
            removed = self._entries.pop(self.key_for(video), None)
        return removed is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __contains__(self, video: object) -> bool:
        if not isinstance(video, (str, Path)):
            return False
        with self._lock:
            return self.key_for(video) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
