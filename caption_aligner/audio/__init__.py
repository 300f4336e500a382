"""Audio extraction: ffmpeg decoding into a canonical streaming WAV file.

WHY: The recognizer needs mono 16 kHz 16-bit PCM in a WAV container; the
timeline needs a compact amplitude summary of the same audio.

HOW: decoder.py wraps ffprobe/ffmpeg, wav_writer.py streams the
container, extractor.py drives both and summarizes the result.
"""

from caption_aligner.audio.errors import (
    AudioExtractionError,
    MissingAudioTrackError,
    ReaderFailedError,
    WavReadFailedError,
)
from caption_aligner.audio.extractor import AudioExtractor, summarize_waveform
from caption_aligner.audio.wav_writer import (
    CannotCreateFileError,
    InvalidHeaderError,
    WavWriter,
    WavWriterError,
    build_wav_header,
)

__all__ = [
    "AudioExtractionError",
    "AudioExtractor",
    "CannotCreateFileError",
    "InvalidHeaderError",
    "MissingAudioTrackError",
    "ReaderFailedError",
    "WavReadFailedError",
    "WavWriter",
    "WavWriterError",
    "build_wav_header",
    "summarize_waveform",
]
