"""Transcription orchestrator: extraction then recognition as one cancellable run.

WHY: The owner wants a single "transcribe this video" operation with one
progress bar, captions appearing as they are recognized, a cancel
button that always works, and exactly one outcome. Extraction and
recognition are separate stages with their own progress scales and
their own cancellation poll points; something has to stitch them
together.

HOW: start() supersedes any live run, creates a fresh CancellationToken
and launches a daemon worker thread. The worker runs
AudioExtractor.extract() and then WhisperCLIBackend.transcribe(),
remapping stage-local progress onto one global scale (extraction 0-0.35,
recognition 0.35-1.0). Each recognized segment is emitted as a
PartialUpdate and upserted into a CaptionCollector. Every update goes
through the run's emit(), which enforces the delivery rules below and
hands the callback to the dispatcher.

RULES:
- State per run: idle → extracting → recognizing → finished | cancelled | failed
- Exactly one terminal update per run; nothing is delivered after it
- Once the token is cancelled only the terminal update is delivered, and
  it is always CancelledUpdate; the check is repeated at delivery time
  so a FinishedUpdate still queued on an UpdatePump becomes CancelledUpdate
- Progress is non-decreasing within a run
- TranscriptionCancelled → CancelledUpdate; any other exception → FailedUpdate
- cancel() is idempotent and safe with no live run
- A cache hit finishes immediately without launching a worker
- Cancelled or failed runs delete their temporary WAV file and drop any
  cache entry they stored
"""

from __future__ import annotations

import enum
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Type, Union

from caption_aligner.audio.errors import (
    MissingAudioTrackError,
    ReaderFailedError,
    WavReadFailedError,
)
from caption_aligner.audio.extractor import AudioExtractor, summarize_waveform
from caption_aligner.audio.wav_writer import CannotCreateFileError, InvalidHeaderError
from caption_aligner.config import (
    EXTRACTION_PROGRESS_WEIGHT,
    RECOGNITION_PROGRESS_WEIGHT,
    WAVEFORM_BUCKETS,
)
from caption_aligner.core.cancellation import CancellationToken, TranscriptionCancelled
from caption_aligner.pipeline.cache import TranscriptionCache
from caption_aligner.pipeline.collector import CaptionCollector
from caption_aligner.pipeline.dispatch import Dispatcher, inline_dispatch
from caption_aligner.pipeline.updates import (
    CancelledUpdate,
    FailedUpdate,
    FinishedUpdate,
    PartialUpdate,
    ProgressUpdate,
    StatusUpdate,
    TranscriptionUpdate,
)
from caption_aligner.recognition.backend import (
    CliNotFoundError,
    ModelNotFoundError,
    WhisperCLIBackend,
    WhisperFailedError,
)
from caption_aligner.recognition.parser import RecognizedSegment

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TranscriptionUpdate], None]

_FAILURE_KINDS: Dict[Type[BaseException], str] = {
    MissingAudioTrackError: "Missing audio track",
    ReaderFailedError: "Audio decoder failed",
    WavReadFailedError: "Unreadable audio file",
    CannotCreateFileError: "Cannot create audio file",
    InvalidHeaderError: "Invalid WAV header",
    CliNotFoundError: "whisper-cli not found",
    ModelNotFoundError: "Whisper model not found",
    WhisperFailedError: "Recognition failed",
}


def describe_failure(exc: BaseException) -> str:
    """Human-readable ``"<kind>: <detail>"`` for a run failure."""
    for cls in type(exc).__mro__:
        kind = _FAILURE_KINDS.get(cls)
        if kind is not None:
            return "{}: {}".format(kind, exc)
    return "{}: {}".format(type(exc).__name__, exc)


class RunState(str, enum.Enum):
    """Lifecycle of a single orchestrator run."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    RECOGNIZING = "recognizing"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    FAILED = "failed"


class _Run:
    """One run's token, callback, and delivery bookkeeping.

    ``on_abandoned`` is called with a FinishedUpdate that was replaced by
    CancelledUpdate because the run was cancelled before delivery.
    """

    def __init__(
        self,
        video: Path,
        on_update: UpdateCallback,
        dispatch: Dispatcher,
        on_abandoned: Optional[Callable[[FinishedUpdate], None]] = None,
    ) -> None:
        self.video = video
        self.token = CancellationToken()
        self.state = RunState.IDLE
        self._on_update = on_update
        self._dispatch = dispatch
        self._on_abandoned = on_abandoned
        self._lock = threading.Lock()
        self._terminated = False
        self._progress = 0.0

    def emit(self, update: TranscriptionUpdate) -> None:
        with self._lock:
            if self._terminated:
                return
            settled = self._settle(update)
            if settled is None:
                return
            if isinstance(settled, ProgressUpdate):
                if settled.fraction < self._progress:
                    return
                self._progress = settled.fraction
            if settled.is_terminal:
                self._terminated = True
            self._dispatch(lambda: self._deliver(settled))

    def _deliver(self, update: TranscriptionUpdate) -> None:
        # Re-checked on the delivering thread: a queued update may outlive cancel().
        settled = self._settle(update)
        if settled is not None:
            self._on_update(settled)

    def _settle(self, update: TranscriptionUpdate) -> Optional[TranscriptionUpdate]:
        """What to deliver for ``update`` given the token (None = drop)."""
        if not self.token.is_cancelled():
            return update
        if not update.is_terminal:
            return None
        if isinstance(update, CancelledUpdate):
            return update
        self.state = RunState.CANCELLED
        if isinstance(update, FinishedUpdate) and self._on_abandoned is not None:
            self._on_abandoned(update)
        return CancelledUpdate()


class TranscriptionEngine:
    """Sequences extraction and recognition for one video at a time.

    Args:
        extractor: Audio extraction stage (default AudioExtractor()).
        backend: Recognition backend (default WhisperCLIBackend()).
        cache: Optional per-video result store, owned by the caller.
        dispatch: Where update callbacks run (default: inline on the
            producing thread).
        waveform_buckets: Bucket count for the cached waveform summary.
    """

    def __init__(
        self,
        extractor: Optional[AudioExtractor] = None,
        backend: Optional[WhisperCLIBackend] = None,
        cache: Optional[TranscriptionCache] = None,
        dispatch: Optional[Dispatcher] = None,
        waveform_buckets: int = WAVEFORM_BUCKETS,
    ) -> None:
        self._extractor = extractor or AudioExtractor()
        self._backend = backend or WhisperCLIBackend()
        self._cache = cache
        self._dispatch = dispatch or inline_dispatch
        self._waveform_buckets = waveform_buckets
        self._lock = threading.Lock()
        self._run: Optional[_Run] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._run.state if self._run is not None else RunState.IDLE

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the most recent worker; returns True if it has exited."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def start(
        self,
        video: Union[str, Path],
        model: Optional[Union[str, Path]],
        on_update: UpdateCallback,
        use_cache: bool = True,
    ) -> None:
        """Begin transcribing ``video``, superseding any live run."""
        video = Path(video)
        with self._lock:
            self._cancel_locked()

            cached = None
            if self._cache is not None and use_cache:
                cached = self._cache.get(video)

            if cached is not None and cached.captions:
                # Served from the cache; never touch the cached audio on cancel.
                run = _Run(video, on_update, self._dispatch)
                self._run = run
                self._thread = None
            else:
                run = _Run(
                    video,
                    on_update,
                    self._dispatch,
                    on_abandoned=lambda update: self._abandon_result(
                        video, update.audio_path
                    ),
                )
                self._run = run
                self._thread = threading.Thread(
                    target=self._execute,
                    args=(run, model),
                    name="transcription-run",
                    daemon=True,
                )
                self._thread.start()
                logger.info("Started transcription of %s", video)
                return

        logger.info("Using cached transcription for %s", video)
        run.state = RunState.FINISHED
        run.emit(StatusUpdate("Using cached transcription"))
        run.emit(ProgressUpdate(1.0))
        run.emit(FinishedUpdate(cached.captions, cached.audio_path))

    def cancel(self) -> None:
        """Flag the live run's token and abandon it."""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._run is None:
            return
        self._run.token.cancel()
        logger.info("Cancelled transcription of %s", self._run.video)
        self._run = None

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _execute(self, run: _Run, model: Optional[Union[str, Path]]) -> None:
        token = run.token
        audio_path: Optional[Path] = None
        try:
            token.raise_if_cancelled()
            run.state = RunState.EXTRACTING
            run.emit(StatusUpdate("Extracting audio"))
            audio_path = self._extractor.extract(
                run.video,
                on_progress=lambda p: run.emit(
                    ProgressUpdate(p * EXTRACTION_PROGRESS_WEIGHT)
                ),
                is_cancelled=token.is_cancelled,
            )
            token.raise_if_cancelled()

            run.state = RunState.RECOGNIZING
            run.emit(StatusUpdate("Transcribing with whisper.cpp"))
            collector = CaptionCollector()

            def _on_segment(segment: RecognizedSegment) -> None:
                caption = segment.to_caption()
                run.emit(PartialUpdate(caption))
                collector.upsert(caption)

            self._backend.transcribe(
                audio_path,
                model,
                token,
                on_progress=lambda q: run.emit(ProgressUpdate(
                    EXTRACTION_PROGRESS_WEIGHT + q * RECOGNITION_PROGRESS_WEIGHT
                )),
                on_segment=_on_segment,
            )
            token.raise_if_cancelled()

            captions = collector.values()
            self._store_result(run.video, captions, audio_path)
            token.raise_if_cancelled()
            run.state = RunState.FINISHED
            run.emit(FinishedUpdate(captions, audio_path))
            logger.info("Transcription of %s finished: %d caption(s)", run.video, len(captions))

        except TranscriptionCancelled:
            run.state = RunState.CANCELLED
            self._abandon_result(run.video, audio_path)
            run.emit(CancelledUpdate())

        except Exception as exc:  # noqa: BLE001
            run.state = RunState.FAILED
            self._abandon_result(run.video, audio_path)
            message = describe_failure(exc)
            logger.error("Transcription of %s failed: %s", run.video, message)
            run.emit(FailedUpdate(message))

    def _store_result(self, video: Path, captions, audio_path: Path) -> None:  # noqa: ANN001
        if self._cache is None:
            return
        waveform = None
        try:
            waveform = summarize_waveform(audio_path, self._waveform_buckets)
        except (WavReadFailedError, OSError) as exc:
            logger.warning("Waveform summary failed for %s: %s", audio_path, exc)
        self._cache.store(video, captions, audio_path, waveform)

    def _abandon_result(self, video: Path, audio_path: Optional[Path]) -> None:
        """Forget a run's cached result (if it is still this run's) and its audio."""
        if self._cache is not None and audio_path is not None:
            entry = self._cache.get(video)
            if entry is not None and entry.audio_path == audio_path:
                self._cache.invalidate(video)
        self._discard_audio(audio_path)

    @staticmethod
    def _discard_audio(audio_path: Optional[Path]) -> None:
        if audio_path is None:
            return
        try:
            audio_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Failed to remove temporary audio: %s", audio_path)
