"""Command-line interface for caption-aligner.

WHY: Users need a way to turn a video into caption files, or to lay out
known lyrics against a track, from the terminal. The CLI wires together
the transcription engine, the caption timeline, the lyrics engine and
the pluggable formatters behind two subcommands.

HOW: argparse with two subcommands:
  transcribe  runs TranscriptionEngine on a worker thread. Updates are
              queued on an UpdatePump and delivered on the main thread,
              which prints status to stderr until a terminal update
              arrives. Ctrl-C cancels the run and waits for it to wind
              down.
  lyrics      reads a lyrics text file (and optionally a caption JSON
              file supplying the speech rhythm) and writes aligned
              captions.
Results pass through a CaptionTimeline before formatting so the timing
invariants hold in every exported file.

RULES:
- Status output goes to stderr (not stdout)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-captions-2.srt)
- Exit codes: 0 success, 1 error, 130 cancelled by the user
- -v enables INFO logging; otherwise only warnings are logged
- The extracted WAV file is deleted after export unless --keep-audio
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import jsonschema

from caption_aligner.core.ir import Caption
from caption_aligner.core.lyrics import LyricsAlignmentEngine
from caption_aligner.core.timecode import format_timecode
from caption_aligner.core.timeline import CaptionTimeline
from caption_aligner.formatters import FORMATTERS, load_captions_json
from caption_aligner.formatters.base import FormatterOutput
from caption_aligner.pipeline.dispatch import UpdatePump
from caption_aligner.pipeline.orchestrator import TranscriptionEngine
from caption_aligner.pipeline.updates import (
    CancelledUpdate,
    FailedUpdate,
    FinishedUpdate,
    PartialUpdate,
    ProgressUpdate,
    StatusUpdate,
    TranscriptionUpdate,
)

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Seconds the main thread blocks on the update queue per iteration.
_PUMP_TIMEOUT_S = 0.2


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. interview-captions.srt)
    - Conflict: insert counter before the extension (interview-captions-2.srt)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")
    return path


def _parse_formats(value: Optional[str]) -> List[str]:
    """Split and check ``--formats``; exits with code 1 on an unknown key."""
    if not value:
        return list(FORMATTERS.keys())
    keys = [f.strip() for f in value.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            print(
                "Error: Unknown format '{}'. Available formats: {}".format(key, available),
                file=sys.stderr,
            )
            sys.exit(1)
    return keys


def _resolve_output_dir(value: Optional[str], default: Path) -> Path:
    output_dir = Path(value).resolve() if value else default
    if not output_dir.is_dir():
        print("Error: Output directory does not exist: {}".format(output_dir), file=sys.stderr)
        sys.exit(1)
    return output_dir


def _export(
    captions: List[Caption],
    format_keys: List[str],
    stem: str,
    source_filename: str,
    output_dir: Path,
) -> List[Path]:
    """Normalize captions through a timeline, then run each formatter."""
    timeline = CaptionTimeline(captions)
    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(timeline.captions, source_filename):
            path = _save_output(output, stem, output_dir)
            saved.append(path)
            _status("  Saved: {}".format(path.name))
    return saved


class _TranscribeSession:
    """Main-thread consumer of one engine run's updates."""

    def __init__(self) -> None:
        self.outcome: Optional[TranscriptionUpdate] = None
        self._last_percent = -1

    @property
    def done(self) -> bool:
        return self.outcome is not None

    def on_update(self, update: TranscriptionUpdate) -> None:
        if isinstance(update, StatusUpdate):
            _status(update.text + "...")
        elif isinstance(update, ProgressUpdate):
            percent = int(update.fraction * 100)
            if percent // 10 > self._last_percent // 10:
                _status("  {}%".format(percent))
            self._last_percent = percent
        elif isinstance(update, PartialUpdate):
            caption = update.caption
            _status("  [{}] {}".format(format_timecode(caption.start), caption.text))
        elif update.is_terminal:
            self.outcome = update


def _run_transcribe(args: argparse.Namespace) -> None:
    input_path = Path(args.video).resolve()
    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        sys.exit(1)

    output_dir = _resolve_output_dir(args.output_dir, input_path.parent)
    format_keys = _parse_formats(args.formats)

    pump = UpdatePump()
    engine = TranscriptionEngine(dispatch=pump)
    session = _TranscribeSession()

    engine.start(input_path, args.model, session.on_update)
    try:
        while not session.done:
            pump.pump(timeout=_PUMP_TIMEOUT_S)
    except KeyboardInterrupt:
        _status("\nCancelling...")
        engine.cancel()
        engine.wait()
        pump.drain()
        _status("Cancelled by user.")
        sys.exit(130)

    outcome = session.outcome
    if isinstance(outcome, FailedUpdate):
        print("Error: {}".format(outcome.message), file=sys.stderr)
        sys.exit(1)
    if isinstance(outcome, CancelledUpdate):
        _status("Cancelled.")
        sys.exit(130)

    assert isinstance(outcome, FinishedUpdate)
    _status("Recognized {} caption(s)".format(len(outcome.captions)))
    _status("Formatting output...")
    saved = _export(outcome.captions, format_keys, input_path.stem, input_path.name, output_dir)

    if args.keep_audio:
        _status("  Audio: {}".format(outcome.audio_path))
    else:
        try:
            outcome.audio_path.unlink()
        except FileNotFoundError:
            pass

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def _run_lyrics(args: argparse.Namespace) -> None:
    lyrics_path = Path(args.lyrics).resolve()
    if not lyrics_path.is_file():
        print("Error: File not found: {}".format(lyrics_path), file=sys.stderr)
        sys.exit(1)
    if args.duration <= 0:
        print("Error: --duration must be positive", file=sys.stderr)
        sys.exit(1)

    output_dir = _resolve_output_dir(args.output_dir, lyrics_path.parent)
    format_keys = _parse_formats(args.formats)

    speech: List[Caption] = []
    if args.speech:
        try:
            speech = load_captions_json(args.speech)
        except (OSError, json.JSONDecodeError, jsonschema.ValidationError) as e:
            print("Error: Cannot read speech captions: {}".format(e), file=sys.stderr)
            sys.exit(1)
        _status("Loaded {} speech caption(s) from {}".format(len(speech), args.speech))

    lyrics_text = lyrics_path.read_text(encoding="utf-8")
    captions = LyricsAlignmentEngine().suggest_alignment(lyrics_text, speech, args.duration)
    if not captions:
        print("Error: No lyric lines in {}".format(lyrics_path), file=sys.stderr)
        sys.exit(1)
    _status("Aligned {} lyric line(s)".format(len(captions)))

    _status("Formatting output...")
    saved = _export(captions, format_keys, lyrics_path.stem, lyrics_path.name, output_dir)
    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable; tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="caption-aligner",
        description="Transcribe video audio into timed captions with whisper.cpp, "
                    "or align lyrics against a track.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log pipeline details to stderr.",
    )
    formats_help = "Comma-separated list of output formats. Available: {}. Default: all.".format(
        ", ".join(sorted(FORMATTERS.keys()))
    )

    sub = parser.add_subparsers(dest="command", required=True)

    transcribe = sub.add_parser("transcribe", help="Transcribe the audio track of a video.")
    transcribe.add_argument("video", help="Path to the video (or audio) file.")
    transcribe.add_argument(
        "--model",
        default=None,
        help="Path to a whisper.cpp ggml model (default: first model found).",
    )
    transcribe.add_argument("--formats", default=None, help=formats_help)
    transcribe.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )
    transcribe.add_argument(
        "--keep-audio",
        action="store_true",
        help="Keep the extracted WAV file instead of deleting it.",
    )
    transcribe.set_defaults(handler=_run_transcribe)

    lyrics = sub.add_parser("lyrics", help="Lay out lyric lines against a track.")
    lyrics.add_argument("lyrics", help="Path to a text file with one lyric line per line.")
    lyrics.add_argument(
        "--duration",
        type=float,
        required=True,
        help="Track duration in seconds.",
    )
    lyrics.add_argument(
        "--speech",
        default=None,
        help="Caption JSON file whose durations set the lyric rhythm.",
    )
    lyrics.add_argument("--formats", default=None, help=formats_help)
    lyrics.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as lyrics file).",
    )
    lyrics.set_defaults(handler=_run_lyrics)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format=_LOG_FORMAT,
    )
    args.handler(args)


if __name__ == "__main__":
    main()
