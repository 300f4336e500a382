"""Output formatter registry: pluggable export formats.

WHY: The CLI needs a single lookup to find the right formatter by name.
A central dict makes it trivial to add new formats: create the
formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from caption_aligner.formatters.caption_json import CaptionJSONFormatter, load_captions_json
from caption_aligner.formatters.plain_text import PlainTextFormatter
from caption_aligner.formatters.srt_captions import SRTCaptionFormatter

if TYPE_CHECKING:
    from caption_aligner.formatters.base import BaseFormatter

FORMATTERS: Dict[str, Type[BaseFormatter]] = {
    "srt": SRTCaptionFormatter,
    "json": CaptionJSONFormatter,
    "plain_text": PlainTextFormatter,
}

__all__ = ["FORMATTERS", "load_captions_json"]
