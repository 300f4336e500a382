"""Plain text transcript formatter.

WHY: Editors need a simple, readable transcript for review and quick
reference: no schema, no timecodes, just the caption text.

HOW: Captions are written in timeline order, one per line. A blank line
starts a new paragraph wherever the gap between two captions reaches
PAUSE_GAP_THRESHOLD_S multiplied by ``paragraph_gap_factor``.

RULES:
- One caption per line, stripped of surrounding whitespace
- Whitespace-only captions are skipped
- No trailing whitespace on any line; file ends with a newline unless empty
- Output suffix: "-captions.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from caption_aligner.config import PAUSE_GAP_THRESHOLD_S
from caption_aligner.core.ir import Caption
from caption_aligner.formatters.base import BaseFormatter, FormatterOutput

# Pauses this many times the snap-pause threshold start a new paragraph.
_PARAGRAPH_GAP_FACTOR = 10.0


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces caption text grouped into paragraphs."""

    def __init__(self, paragraph_gap_factor: float = _PARAGRAPH_GAP_FACTOR) -> None:
        self._paragraph_gap = PAUSE_GAP_THRESHOLD_S * paragraph_gap_factor

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(
        self,
        captions: Sequence[Caption],
        source_filename: Optional[str] = None,
    ) -> List[FormatterOutput]:
        lines: List[str] = []
        previous: Optional[Caption] = None
        for caption in sorted(captions, key=lambda c: c.start):
            text = caption.text.strip()
            if not text:
                continue
            if previous is not None and caption.start - previous.end >= self._paragraph_gap:
                lines.append("")
            lines.append(text)
            previous = caption

        content = "\n".join(lines)
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix="-captions.txt",
                content=content,
                media_type="text/plain",
            ),
        ]
