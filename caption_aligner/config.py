"""Configuration constants, search paths, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Audio format, timing thresholds, and the
whisper.cpp search paths are plain data, not buried in logic, so
the extractor, backend, orchestrator, and timeline share one source of
truth.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values. The candidate-list helpers prepend environment
overrides to the fixed search paths at call time, so tests can
monkeypatch the environment without reloading this module.

RULES:
- Canonical audio is mono, 16 kHz, 16-bit little-endian PCM
- Executable/model search is ordered; the first match wins
- WHISPER_CLI_PATH / WHISPER_MODEL_PATH are probed before the fixed lists
- All timing values are float seconds
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Canonical audio format
# ---------------------------------------------------------------------------

SAMPLE_RATE = 16_000
CHANNELS = 1
BITS_PER_SAMPLE = 16
BYTES_PER_SECOND = SAMPLE_RATE * CHANNELS * BITS_PER_SAMPLE // 8

DECODE_CHUNK_BYTES = 32_000  # one second of canonical PCM

WAVEFORM_BUCKETS = 900

TEMP_DIR = Path(os.getenv("CAPTION_ALIGNER_TMPDIR", tempfile.gettempdir()))

FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
FFPROBE_BINARY = os.getenv("FFPROBE_BINARY", "ffprobe")

# ---------------------------------------------------------------------------
# whisper.cpp resolution
# ---------------------------------------------------------------------------

WHISPER_CLI_CANDIDATES: List[Path] = [
    Path("./ThirdParty/whisper.cpp/build/bin/whisper-cli"),
    Path("/opt/homebrew/bin/whisper-cli"),
    Path("/usr/local/bin/whisper-cli"),
]

WHISPER_MODEL_CANDIDATES: List[Path] = [
    Path("./Models/ggml-base.en.bin"),
    Path("./Models/ggml-small.en.bin"),
    Path("./ThirdParty/whisper.cpp/models/ggml-base.en.bin"),
    Path("/opt/homebrew/share/whisper/models/ggml-base.en.bin"),
]

RECOGNITION_POLL_INTERVAL_S = 0.08

# ---------------------------------------------------------------------------
# Pipeline progress weights
# ---------------------------------------------------------------------------

EXTRACTION_PROGRESS_WEIGHT = 0.35
RECOGNITION_PROGRESS_WEIGHT = 1.0 - EXTRACTION_PROGRESS_WEIGHT

# ---------------------------------------------------------------------------
# Caption timing
# ---------------------------------------------------------------------------

MIN_CAPTION_DURATION_S = 0.05
PARTIAL_MERGE_WINDOW_S = 0.08
PAUSE_GAP_THRESHOLD_S = 0.12
SNAP_DISTANCE_S = 0.08
BASE_PIXELS_PER_SECOND = 140.0

LYRIC_MIN_LINE_DURATION_S = 0.45
LYRIC_FALLBACK_MIN_DURATION_S = 0.5
LYRIC_LINE_GAP_S = 0.03
LYRIC_MIN_WORD_SPAN_S = 0.1


def whisper_cli_candidates() -> List[Path]:
    """Return the ordered executable search list.

    RULES:
    - WHISPER_CLI_PATH (if set) is probed first
    - Followed by WHISPER_CLI_CANDIDATES in order
    """
    candidates: List[Path] = []
    override = os.getenv("WHISPER_CLI_PATH", "").strip()
    if override:
        candidates.append(Path(override).expanduser())
    candidates.extend(WHISPER_CLI_CANDIDATES)
    return candidates


def whisper_model_candidates() -> List[Path]:
    """Return the ordered model search list.

    RULES:
    - WHISPER_MODEL_PATH (if set) is probed first
    - Followed by WHISPER_MODEL_CANDIDATES in order
    """
    candidates: List[Path] = []
    override = os.getenv("WHISPER_MODEL_PATH", "").strip()
    if override:
        candidates.append(Path(override).expanduser())
    candidates.extend(WHISPER_MODEL_CANDIDATES)
    return candidates
