"""Audio extraction stage and waveform summarization.

WHY: whisper.cpp consumes a mono 16 kHz 16-bit WAV file. The source is
an arbitrary video, possibly hours long, and extraction must report
progress and stop promptly when the user cancels.

HOW: AudioExtractor.extract() probes the source, starts a decoder that
streams canonical PCM, and copies each chunk into a WavWriter at a fresh
temporary path, reporting decoded-position / duration after every
chunk. The cancellation predicate is checked before every pull; when it
fires the decoder is killed and the loop exits normally; the caller
decides what a cancelled extraction means. summarize_waveform() reduces
the written payload to fixed-length peak buckets for display.

RULES:
- Progress is clamped to [0, 1] and reported as 1.0 on completion
- Cancellation is not an exception here
- The WAV file is always finalized, even after cancellation
- A failed decoder raises ReaderFailedError after finalization
- summarize_waveform() always returns exactly bucket_count values
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import numpy as np

from caption_aligner.audio.decoder import FFmpegDecoder
from caption_aligner.audio.errors import MissingAudioTrackError, WavReadFailedError
from caption_aligner.audio.wav_writer import WAV_HEADER_SIZE, WavWriter
from caption_aligner.config import BITS_PER_SAMPLE, CHANNELS, SAMPLE_RATE, TEMP_DIR

logger = logging.getLogger(__name__)

_INT16_MAX = 32767.0

ProgressCallback = Callable[[float], None]
CancelPredicate = Callable[[], bool]


class AudioExtractor:
    """Decode a source's audio track into a canonical temporary WAV file.

    Args:
        decoder_factory: Callable taking the source path and returning a
            decoder (probe/start/read_chunk/position/cancel/finish).
            Defaults to FFmpegDecoder.
        temp_dir: Directory for extracted WAV files.
    """

    def __init__(
        self,
        decoder_factory: Optional[Callable[[Path], Any]] = None,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self._decoder_factory = decoder_factory or FFmpegDecoder
        self._temp_dir = Path(temp_dir) if temp_dir is not None else TEMP_DIR

    def extract(
        self,
        source: Union[str, Path],
        on_progress: ProgressCallback,
        is_cancelled: CancelPredicate,
    ) -> Path:
        """Extract ``source``'s audio and return the WAV path.

        Raises:
            MissingAudioTrackError: If the source has no audio stream.
            ReaderFailedError: If the decoder fails.
            CannotCreateFileError: If the temp file cannot be created.
        """
        source = Path(source)
        decoder = self._decoder_factory(source)
        info = decoder.probe()
        if not info.has_audio:
            raise MissingAudioTrackError("No audio track in {}".format(source))

        duration = max(info.duration, 0.001)
        self._temp_dir.mkdir(parents=True, exist_ok=True)
        out_path = self._temp_dir / "audio-{}.wav".format(uuid.uuid4().hex)

        writer = WavWriter(out_path, SAMPLE_RATE, CHANNELS, BITS_PER_SAMPLE)
        logger.info("Extracting audio from %s to %s", source, out_path)

        cancelled = False
        try:
            decoder.start()
            while True:
                if is_cancelled():
                    decoder.cancel()
                    cancelled = True
                    break
                chunk = decoder.read_chunk()
                if not chunk:
                    break
                writer.append(chunk)
                on_progress(min(max(decoder.position / duration, 0.0), 1.0))
        except BaseException:
            decoder.cancel()
            writer.close()
            raise

        writer.finalize()

        if cancelled:
            logger.info("Extraction cancelled after %d bytes", writer.bytes_written)
        else:
            decoder.finish()
            logger.info("Extracted %d bytes of PCM", writer.bytes_written)

        on_progress(1.0)
        return out_path


def summarize_waveform(audio_path: Union[str, Path], bucket_count: int) -> List[float]:
    """Reduce a canonical WAV file to ``bucket_count`` peak amplitudes in [0, 1].

    HOW: bucket size = max(1, samples // bucket_count); the first
    bucket_count full windows are reduced to their peak |sample| / 32767.
    Missing buckets (fewer samples than buckets) are padded with 0.

    Raises:
        WavReadFailedError: If the file holds nothing beyond the header.
    """
    if bucket_count <= 0:
        return []

    size = Path(audio_path).stat().st_size
    if size <= WAV_HEADER_SIZE:
        raise WavReadFailedError(
            "WAV file {} has no payload ({} bytes)".format(audio_path, size)
        )

    sample_count = (size - WAV_HEADER_SIZE) // 2
    if sample_count == 0:
        return [0.0] * bucket_count

    # Mapped, not loaded: an hour of audio is ~115 MB.
    samples = np.memmap(
        audio_path, dtype="<i2", mode="r", offset=WAV_HEADER_SIZE, shape=(sample_count,)
    )
    bucket_size = max(1, sample_count // bucket_count)
    full_buckets = min(bucket_count, sample_count // bucket_size)

    windows = samples[: full_buckets * bucket_size].reshape(full_buckets, bucket_size)
    highs = windows.max(axis=1).astype(np.int32)
    lows = windows.min(axis=1).astype(np.int32)
    del windows, samples
    peaks = np.clip(np.maximum(highs, -lows) / _INT16_MAX, 0.0, 1.0)

    result = [float(v) for v in peaks]
    result.extend([0.0] * (bucket_count - len(result)))
    return result
