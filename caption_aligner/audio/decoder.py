"""ffmpeg-backed PCM decoder used by the extraction stage.

WHY: Source videos come in every container and codec. ffmpeg already
decodes and resamples all of them, and can stream raw canonical PCM to
a pipe so the extractor never holds the whole track in memory.

HOW: probe() runs ffprobe with JSON output to learn the duration and
whether an audio stream exists. start() launches ffmpeg writing mono
16 kHz s16le PCM to stdout; read_chunk() pulls fixed-size blocks from
that pipe. stderr is drained on a daemon thread so a chatty decoder can
never block on a full pipe. finish() reaps the process and raises on a
nonzero exit; cancel() kills it.

RULES:
- position is derived from bytes read (canonical format only)
- read_chunk() returns b"" at end of stream
- Missing binaries surface as ReaderFailedError, not OSError
"""

from __future__ import annotations

import json
import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from caption_aligner.audio.errors import ReaderFailedError
from caption_aligner.config import (
    BYTES_PER_SECOND,
    CHANNELS,
    DECODE_CHUNK_BYTES,
    FFMPEG_BINARY,
    FFPROBE_BINARY,
    SAMPLE_RATE,
)

logger = logging.getLogger(__name__)


@dataclass
class MediaInfo:
    """What the extractor needs to know about a source before decoding."""

    duration: float
    has_audio: bool


class FFmpegDecoder:
    """Decode one source file's first audio stream to canonical PCM."""

    def __init__(
        self,
        source: Union[str, Path],
        ffmpeg_binary: str = FFMPEG_BINARY,
        ffprobe_binary: str = FFPROBE_BINARY,
        chunk_size: int = DECODE_CHUNK_BYTES,
    ) -> None:
        self.source = Path(source)
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary
        self.chunk_size = chunk_size
        self._proc: Optional[subprocess.Popen] = None
        self._stderr_chunks: List[bytes] = []
        self._stderr_thread: Optional[threading.Thread] = None
        self._bytes_read = 0

    @property
    def position(self) -> float:
        """Seconds of audio decoded so far."""
        return self._bytes_read / BYTES_PER_SECOND

    def probe(self) -> MediaInfo:
        cmd = [
            self.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration:stream=codec_type",
            "-of", "json",
            str(self.source),
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, check=False)
        except OSError as exc:
            raise ReaderFailedError(
                "Cannot run {}: {}".format(self.ffprobe_binary, exc)
            ) from exc

        if result.returncode != 0:
            raise ReaderFailedError(
                "ffprobe failed for {}: {}".format(
                    self.source, result.stderr.decode("utf-8", "replace").strip()
                ),
                exit_code=result.returncode,
            )

        try:
            data = json.loads(result.stdout.decode("utf-8", "replace") or "{}")
        except ValueError as exc:
            raise ReaderFailedError("Unreadable ffprobe output: {}".format(exc)) from exc

        streams = data.get("streams", [])
        has_audio = any(s.get("codec_type") == "audio" for s in streams)
        try:
            duration = float(data.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0

        logger.debug("Probed %s: duration=%.3fs audio=%s", self.source, duration, has_audio)
        return MediaInfo(duration=duration, has_audio=has_audio)

    def start(self) -> None:
        cmd = [
            self.ffmpeg_binary,
            "-nostdin",
            "-v", "error",
            "-i", str(self.source),
            "-map", "0:a:0",
            "-vn",
            "-ac", str(CHANNELS),
            "-ar", str(SAMPLE_RATE),
            "-acodec", "pcm_s16le",
            "-f", "s16le",
            "pipe:1",
        ]
        try:
            self._proc = subprocess.Popen(
                cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as exc:
            raise ReaderFailedError(
                "Cannot run {}: {}".format(self.ffmpeg_binary, exc)
            ) from exc

        self._stderr_thread = threading.Thread(
            target=self._drain_stderr, name="ffmpeg-stderr", daemon=True
        )
        self._stderr_thread.start()
        logger.debug("Started decoder for %s", self.source)

    def read_chunk(self) -> bytes:
        if self._proc is None or self._proc.stdout is None:
            return b""
        chunk = self._proc.stdout.read(self.chunk_size)
        self._bytes_read += len(chunk)
        return chunk

    def cancel(self) -> None:
        if self._proc is None:
            return
        if self._proc.poll() is None:
            self._proc.kill()
        self._reap()
        logger.debug("Decoder for %s cancelled", self.source)

    def finish(self) -> None:
        """Reap the decoder; raise ReaderFailedError if it failed."""
        if self._proc is None:
            return
        code = self._reap()
        if code != 0:
            detail = b"".join(self._stderr_chunks).decode("utf-8", "replace").strip()
            raise ReaderFailedError(
                "ffmpeg exited with code {}: {}".format(code, detail or "no output"),
                exit_code=code,
            )

    def _reap(self) -> int:
        assert self._proc is not None
        if self._proc.stdout is not None:
            self._proc.stdout.close()
        code = self._proc.wait()
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=1.0)
        return code

    def _drain_stderr(self) -> None:
        assert self._proc is not None and self._proc.stderr is not None
        for chunk in iter(lambda: self._proc.stderr.read(4096), b""):
            self._stderr_chunks.append(chunk)
        self._proc.stderr.close()
