"""caption-aligner: video audio to editable, timed captions.

WHY: Captioning a video by hand means typing every line and dragging
every boundary. This package extracts the audio track, runs whisper.cpp
locally, and produces a caption timeline that can be edited, snapped to
pauses, re-laid against known lyrics, and exported.

HOW: Four stages, each independently testable: audio (ffmpeg decode to a
canonical WAV), recognition (whisper-cli subprocess with incremental
output parsing), pipeline (cancellable orchestration with progress and
partial captions), core (caption model, timeline invariants, snapping,
lyric alignment). Formatters export the result.

RULES:
- All stages exchange the Caption IR from core.ir
- Adding a new export format = one new formatter module, no core changes
- Nothing leaves the machine: recognition runs as a local process
"""

__version__ = "0.1.0"
