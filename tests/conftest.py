"""Shared test fixtures for the caption_aligner test suite.

WHY: Several test modules need the same stand-ins for the outside world:
an in-memory decoder instead of ffmpeg, a scripted whisper-cli
executable, and a small set of recognized captions with known gaps.
Centralizing them here keeps every module testing against the same data.

HOW: Pytest fixtures return either data (speech_captions) or factories
(fake_decoder_factory, fake_whisper_cli, write_wav) so each test can
shape its own scenario.

RULES:
- speech_captions has gaps of 0.5 s, 0.05 s and 1.0 s (two pause points)
- fake_whisper_cli writes a real executable script to tmp_path and runs
  it with the current interpreter
- No fixture touches the network or requires ffmpeg/whisper.cpp
"""

import os
import stat
import sys
import textwrap
from pathlib import Path
from typing import List, Optional

import pytest

from caption_aligner.audio.decoder import MediaInfo
from caption_aligner.audio.wav_writer import WavWriter
from caption_aligner.core.ir import Caption, synthesize_word_timing


def _caption(text: str, start: float, end: float) -> Caption:
    return Caption(text=text, start=start, end=end, words=synthesize_word_timing(text, start, end))


# ---------------------------------------------------------------------------
# Caption data
# ---------------------------------------------------------------------------


@pytest.fixture
def speech_captions() -> List[Caption]:
    """Four recognized captions.

    Gaps: 1.0→1.5 (0.5 s), 2.5→2.55 (0.05 s), 3.5→4.5 (1.0 s).
    Pause points at 1.25 and 4.0; the 0.05 s gap is too short.
    """
    return [
        _caption("Hello there", 0.0, 1.0),
        _caption("general Kenobi", 1.5, 2.5),
        _caption("you are a bold one", 2.55, 3.5),
        _caption("back away", 4.5, 5.0),
    ]


@pytest.fixture
def make_caption():
    """Factory for captions with synthesized word timing."""
    return _caption


# ---------------------------------------------------------------------------
# Audio stand-ins
# ---------------------------------------------------------------------------


class FakeDecoder:
    """In-memory decoder with the FFmpegDecoder interface.

    Serves ``chunks`` in order; position advances by canonical bytes.
    """

    def __init__(
        self,
        source: Path,
        chunks: List[bytes],
        duration: float = 1.0,
        has_audio: bool = True,
        fail_on_finish: Optional[Exception] = None,
        on_read=None,  # noqa: ANN001
    ) -> None:
        self.source = source
        self._chunks = list(chunks)
        self._duration = duration
        self._has_audio = has_audio
        self._fail_on_finish = fail_on_finish
        self._on_read = on_read
        self._bytes = 0
        self.started = False
        self.cancelled = False
        self.finished = False

    @property
    def position(self) -> float:
        return self._bytes / 32000.0

    def probe(self) -> MediaInfo:
        return MediaInfo(duration=self._duration, has_audio=self._has_audio)

    def start(self) -> None:
        self.started = True

    def read_chunk(self) -> bytes:
        if self._on_read is not None:
            self._on_read(self)
        if not self._chunks:
            return b""
        chunk = self._chunks.pop(0)
        self._bytes += len(chunk)
        return chunk

    def cancel(self) -> None:
        self.cancelled = True

    def finish(self) -> None:
        self.finished = True
        if self._fail_on_finish is not None:
            raise self._fail_on_finish


@pytest.fixture
def fake_decoder_factory():
    """Build an AudioExtractor decoder_factory around FakeDecoder.

    Usage: ``factory, decoders = fake_decoder_factory(chunks, duration=...)``;
    ``decoders`` collects every decoder the factory created.
    """

    def _build(chunks: List[bytes], **kwargs):
        created: List[FakeDecoder] = []

        def _factory(source: Path) -> FakeDecoder:
            decoder = FakeDecoder(source, chunks, **kwargs)
            created.append(decoder)
            return decoder

        return _factory, created

    return _build


@pytest.fixture
def write_wav(tmp_path):
    """Write a canonical WAV file from int16 sample values; returns its path."""

    def _write(samples: List[int], name: str = "clip.wav") -> Path:
        path = tmp_path / name
        payload = b"".join(int(s).to_bytes(2, "little", signed=True) for s in samples)
        with WavWriter(path, 16000, 1, 16) as writer:
            writer.append(payload)
        return path

    return _write


# ---------------------------------------------------------------------------
# whisper-cli stand-in
# ---------------------------------------------------------------------------


_SCRIPT_TEMPLATE = """\
#!{python}
import sys
import time

for line in {stderr_lines!r}:
    sys.stderr.write(line + "\\n")
    sys.stderr.flush()
for line in {stdout_lines!r}:
    sys.stdout.write(line + "\\n")
    sys.stdout.flush()
    time.sleep({line_delay!r})
time.sleep({linger!r})
sys.exit({exit_code!r})
"""


@pytest.fixture
def fake_whisper_cli(tmp_path):
    """Write an executable whisper-cli stand-in and a dummy model file.

    Returns (cli_path, model_path). The script ignores its arguments,
    writes ``stderr_lines`` then ``stdout_lines``, sleeps ``linger``
    seconds, and exits with ``exit_code``.
    """

    def _build(
        stdout_lines: Optional[List[str]] = None,
        stderr_lines: Optional[List[str]] = None,
        exit_code: int = 0,
        line_delay: float = 0.0,
        linger: float = 0.0,
    ):
        script = tmp_path / "whisper-cli"
        script.write_text(textwrap.dedent(_SCRIPT_TEMPLATE.format(
            python=sys.executable,
            stdout_lines=list(stdout_lines or []),
            stderr_lines=list(stderr_lines or []),
            exit_code=exit_code,
            line_delay=line_delay,
            linger=linger,
        )))
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        model = tmp_path / "ggml-test.bin"
        model.write_bytes(b"\0")
        return script, model

    return _build


@pytest.fixture
def silent_env(monkeypatch):
    """Remove whisper path overrides so only explicit candidates are probed."""
    monkeypatch.delenv("WHISPER_CLI_PATH", raising=False)
    monkeypatch.delenv("WHISPER_MODEL_PATH", raising=False)
    return os.environ
