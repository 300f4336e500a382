"""Transcription pipeline: orchestration, update events, result caching.

WHY: Extraction and recognition are independent, blocking stages. The
pipeline package sequences them on a worker thread and reports to its
owner through a single stream of TranscriptionUpdate events.

HOW: orchestrator.py runs the stages, updates.py defines the events,
collector.py merges partial captions, cache.py remembers finished
results, dispatch.py decides which thread delivers each update.
"""

from caption_aligner.pipeline.cache import CacheEntry, TranscriptionCache
from caption_aligner.pipeline.collector import CaptionCollector
from caption_aligner.pipeline.dispatch import UpdatePump, inline_dispatch
from caption_aligner.pipeline.orchestrator import (
    RunState,
    TranscriptionEngine,
    describe_failure,
)
from caption_aligner.pipeline.updates import (
    CancelledUpdate,
    FailedUpdate,
    FinishedUpdate,
    PartialUpdate,
    ProgressUpdate,
    StatusUpdate,
    TranscriptionUpdate,
)

__all__ = [
    "CacheEntry",
    "CancelledUpdate",
    "CaptionCollector",
    "FailedUpdate",
    "FinishedUpdate",
    "PartialUpdate",
    "ProgressUpdate",
    "RunState",
    "StatusUpdate",
    "TranscriptionCache",
    "TranscriptionEngine",
    "TranscriptionUpdate",
    "UpdatePump",
    "describe_failure",
    "inline_dispatch",
]
