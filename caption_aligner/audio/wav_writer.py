"""Streaming writer for canonical PCM WAV files.

WHY: The extractor receives decoded audio in small chunks and does not
know the total length up front. whisper.cpp only accepts a complete WAV
file, so the header's two length fields must be right once writing ends.

HOW: Two-pass header: a 44-byte placeholder (data length 0) is written
on open, raw PCM is appended sequentially while a byte count
accumulates, and finalize() seeks back to offset 0 and overwrites the
header with the real lengths.

RULES:
- Header is exactly 44 bytes, little-endian throughout
- RIFF chunk size = 36 + data length; data sub-chunk size = data length
- Format tag is 1 (integer PCM)
- finalize() is idempotent; append() after finalize() raises
- Requires a seekable output file
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Optional, Union

WAV_HEADER_SIZE = 44

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavWriterError(Exception):
    """Base class for container writer failures."""


class CannotCreateFileError(WavWriterError):
    """Raised when the output path cannot be opened for writing.

    RULES:
    - Message includes the path and the OS error
    """


class InvalidHeaderError(WavWriterError):
    """Raised when header serialization does not produce 44 bytes.

    RULES:
    - Also raised when a field overflows its width (data over 4 GiB)
    """


def build_wav_header(
    data_length: int,
    sample_rate: int,
    channels: int,
    bits_per_sample: int,
) -> bytes:
    """Serialize a canonical 44-byte PCM WAV header.

    Raises:
        InvalidHeaderError: If a field is out of range or the result is
            not exactly 44 bytes.
    """
    byte_rate = sample_rate * channels * bits_per_sample // 8
    block_align = channels * bits_per_sample // 8
    try:
        header = _HEADER_STRUCT.pack(
            b"RIFF",
            36 + data_length,
            b"WAVE",
            b"fmt ",
            16,
            1,
            channels,
            sample_rate,
            byte_rate,
            block_align,
            bits_per_sample,
            b"data",
            data_length,
        )
    except struct.error as exc:
        raise InvalidHeaderError("Cannot serialize WAV header: {}".format(exc)) from exc

    if len(header) != WAV_HEADER_SIZE:
        raise InvalidHeaderError(
            "WAV header is {} bytes, expected {}".format(len(header), WAV_HEADER_SIZE)
        )
    return header


class WavWriter:
    """Append-only PCM WAV writer with a patched-on-finalize header.

    Usable as a context manager: a clean exit finalizes the file, an
    exception closes it without patching.
    """

    def __init__(
        self,
        path: Union[str, Path],
        sample_rate: int,
        channels: int,
        bits_per_sample: int,
    ) -> None:
        self.path = Path(path)
        self.sample_rate = sample_rate
        self.channels = channels
        self.bits_per_sample = bits_per_sample
        self._bytes_written = 0
        self._finalized = False

        try:
            self._handle = open(self.path, "wb")
        except OSError as exc:
            raise CannotCreateFileError(
                "Cannot create audio file {}: {}".format(self.path, exc)
            ) from exc

        try:
            self._handle.write(self._header(0))
        except BaseException:
            self._handle.close()
            raise

    @property
    def bytes_written(self) -> int:
        return self._bytes_written

    def append(self, buffer: bytes) -> None:
        if self._finalized:
            raise ValueError("append() called on a finalized WavWriter")
        if not buffer:
            return
        self._handle.write(buffer)
        self._bytes_written += len(buffer)

    def finalize(self) -> None:
        if self._finalized:
            return
        try:
            header = self._header(self._bytes_written)
            self._handle.seek(0)
            self._handle.write(header)
        finally:
            self._finalized = True
            self._handle.close()

    def close(self) -> None:
        """Close without patching the header."""
        self._finalized = True
        self._handle.close()

    def _header(self, data_length: int) -> bytes:
        return build_wav_header(
            data_length, self.sample_rate, self.channels, self.bits_per_sample
        )

    def __enter__(self) -> WavWriter:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if exc_type is None:
            self.finalize()
        else:
            self.close()
