"""whisper.cpp subprocess backend.

WHY: Speech recognition is delegated to the whisper-cli executable from
whisper.cpp. The backend hides where the executable and model live, how
the process is launched, how its free-text output becomes progress and
segments, and how it is stopped when the user cancels.

HOW: resolve_cli_path() / resolve_model_path() probe ordered candidate
lists (first match wins). transcribe() launches
``whisper-cli -m <model> -f <audio> -l auto -pp -nt`` with stdout and
stderr on separate pipes, each drained by its own reader thread into
its own LineBuffer. Every complete line is tested against the progress
and segment patterns. The calling thread sleeps in short ticks, polling
the cancellation token and the process's liveness.

RULES:
- Executable: first *executable file* among the candidates, else CliNotFoundError
- Model: explicit path if given, else first existing candidate, else ModelNotFoundError
- Progress delivered to on_progress is non-decreasing
- Cancellation kills the process, reaps it, then raises TranscriptionCancelled
- Nonzero exit without cancellation raises WhisperFailedError(exit_code)
- Success ends with on_progress(1.0)
- Non-matching output lines are logged at DEBUG, never raised
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Callable, List, Optional, Sequence, Union

from caption_aligner.config import (
    RECOGNITION_POLL_INTERVAL_S,
    whisper_cli_candidates,
    whisper_model_candidates,
)
from caption_aligner.core.cancellation import CancellationToken, TranscriptionCancelled
from caption_aligner.recognition.line_buffer import LineBuffer
from caption_aligner.recognition.parser import (
    RecognizedSegment,
    parse_progress,
    parse_segment,
)

logger = logging.getLogger(__name__)

_READ_SIZE = 4096

ProgressCallback = Callable[[float], None]
SegmentCallback = Callable[[RecognizedSegment], None]


class WhisperBackendError(Exception):
    """Base class for recognition backend failures."""


class CliNotFoundError(WhisperBackendError):
    """Raised when no whisper-cli executable is found on the search path.

    RULES:
    - Message lists every candidate that was probed
    """


class ModelNotFoundError(WhisperBackendError):
    """Raised when no model file is given and none is found on the search path."""


class WhisperFailedError(WhisperBackendError):
    """Raised when whisper-cli exits nonzero without a cancellation request."""

    def __init__(self, exit_code: int) -> None:
        self.exit_code = exit_code
        super().__init__("whisper-cli exited with code {}".format(exit_code))


class WhisperCLIBackend:
    """Runs whisper-cli against a WAV file and streams its results.

    Args:
        cli_candidates: Ordered executable search list (default from config).
        model_candidates: Ordered model search list (default from config).
        poll_interval: Seconds between cancellation/liveness checks.
    """

    def __init__(
        self,
        cli_candidates: Optional[Sequence[Path]] = None,
        model_candidates: Optional[Sequence[Path]] = None,
        poll_interval: float = RECOGNITION_POLL_INTERVAL_S,
    ) -> None:
        self._cli_candidates = list(cli_candidates) if cli_candidates is not None else None
        self._model_candidates = (
            list(model_candidates) if model_candidates is not None else None
        )
        self._poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_cli_path(self) -> Path:
        candidates = (
            self._cli_candidates if self._cli_candidates is not None
            else whisper_cli_candidates()
        )
        for candidate in candidates:
            path = Path(candidate)
            if path.is_file() and os.access(path, os.X_OK):
                return path
        raise CliNotFoundError(
            "whisper-cli not found. Looked in: {}".format(
                ", ".join(str(c) for c in candidates)
            )
        )

    def resolve_model_path(self, explicit: Optional[Union[str, Path]] = None) -> Path:
        if explicit is not None:
            return Path(explicit)
        candidates = (
            self._model_candidates if self._model_candidates is not None
            else whisper_model_candidates()
        )
        for candidate in candidates:
            path = Path(candidate)
            if path.is_file():
                return path
        raise ModelNotFoundError(
            "No whisper model found. Looked in: {}".format(
                ", ".join(str(c) for c in candidates)
            )
        )

    @staticmethod
    def build_command(cli_path: Path, model_path: Path, audio_path: Path) -> List[str]:
        return [
            str(cli_path),
            "-m", str(model_path),
            "-f", str(audio_path),
            "-l", "auto",
            "-pp",
            "-nt",
        ]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def transcribe(
        self,
        audio_path: Union[str, Path],
        model_path: Optional[Union[str, Path]],
        token: CancellationToken,
        on_progress: ProgressCallback,
        on_segment: SegmentCallback,
    ) -> None:
        """Run whisper-cli to completion, streaming progress and segments.

        Raises:
            CliNotFoundError, ModelNotFoundError: Resolution failed.
            WhisperFailedError: The process exited nonzero.
            TranscriptionCancelled: ``token`` was cancelled.
        """
        cli_path = self.resolve_cli_path()
        model = self.resolve_model_path(model_path)
        cmd = self.build_command(cli_path, model, Path(audio_path))
        logger.info("Running %s", " ".join(cmd))

        progress_lock = threading.Lock()
        last_progress = [0.0]
        unparsed = [0]
        segment_count = [0]
        callback_errors: List[BaseException] = []

        def _report_progress(value: float) -> None:
            with progress_lock:
                if value < last_progress[0]:
                    return
                last_progress[0] = value
                on_progress(value)

        def _handle_line(line: str, is_stdout: bool) -> None:
            if not line:
                return
            segment = parse_segment(line)
            if segment is not None:
                with progress_lock:
                    segment_count[0] += 1
                on_segment(segment)
            progress = parse_progress(line)
            if progress is not None:
                _report_progress(progress)
            if segment is None and progress is None and is_stdout:
                with progress_lock:
                    unparsed[0] += 1
                logger.debug("Unparsed whisper output: %s", line)

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise WhisperBackendError(
                "Cannot launch {}: {}".format(cli_path, exc)
            ) from exc

        readers = [
            threading.Thread(
                target=self._pump,
                args=(proc.stdout, LineBuffer(), lambda line: _handle_line(line, True), callback_errors),
                name="whisper-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=self._pump,
                args=(proc.stderr, LineBuffer(), lambda line: _handle_line(line, False), callback_errors),
                name="whisper-stderr",
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        try:
            while proc.poll() is None:
                if token.is_cancelled() or callback_errors:
                    proc.kill()
                    break
                time.sleep(self._poll_interval)
        finally:
            exit_code = proc.wait()
            for reader in readers:
                reader.join()

        if token.is_cancelled():
            logger.info("whisper-cli cancelled")
            raise TranscriptionCancelled()
        if callback_errors:
            raise callback_errors[0]
        if exit_code != 0:
            raise WhisperFailedError(exit_code)

        if segment_count[0] == 0 and unparsed[0]:
            logger.warning(
                "whisper-cli produced %d output line(s) but no recognizable segments",
                unparsed[0],
            )
        logger.info("whisper-cli finished with %d segment(s)", segment_count[0])
        _report_progress(1.0)

    @staticmethod
    def _pump(
        stream: IO[bytes],
        buffer: LineBuffer,
        on_line: Callable[[str], None],
        errors: List[BaseException],
    ) -> None:
        """Drain one pipe into its LineBuffer until EOF.

        A failing callback is recorded in ``errors``; the pipe keeps
        draining so the process never blocks on a full buffer.
        """

        def _safe(line: str) -> None:
            if errors:
                return
            try:
                on_line(line)
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        try:
            for chunk in iter(lambda: stream.read1(_READ_SIZE), b""):
                buffer.consume(chunk, _safe)
            buffer.flush(_safe)
        finally:
            stream.close()
