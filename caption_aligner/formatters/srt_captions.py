"""SRT caption formatter.

WHY: SRT is the lowest common denominator for caption import: every
editor, player and hosting platform reads it.

HOW: Captions are written in timeline order as numbered cues with
``hh:mm:ss,mmm --> hh:mm:ss,mmm`` bounds. Caption text is written as-is;
whitespace-only captions are skipped so cue numbering stays contiguous.

RULES:
- Cue numbers start at 1 with no gaps
- Blank line between cues, file ends with a single newline
- Output suffix: "-captions.srt"
- Media type: "application/x-subrip"
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from caption_aligner.core.ir import Caption
from caption_aligner.core.timecode import format_timecode
from caption_aligner.formatters.base import BaseFormatter, FormatterOutput


def _cue(index: int, caption: Caption) -> str:
    return "{}\n{} --> {}\n{}\n".format(
        index,
        format_timecode(caption.start, separator=","),
        format_timecode(caption.end, separator=","),
        caption.text.strip(),
    )


class SRTCaptionFormatter(BaseFormatter):
    """Formatter that produces a single SRT caption file."""

    @property
    def name(self) -> str:
        return "SRT Captions"

    def format(
        self,
        captions: Sequence[Caption],
        source_filename: Optional[str] = None,
    ) -> List[FormatterOutput]:
        ordered = sorted(captions, key=lambda c: c.start)
        cues: List[str] = []
        for caption in ordered:
            if not caption.text.strip():
                continue
            cues.append(_cue(len(cues) + 1, caption))

        return [
            FormatterOutput(
                suffix="-captions.srt",
                content="\n".join(cues),
                media_type="application/x-subrip",
            ),
        ]
