"""Abstract base formatter and output container.

WHY: Every export format consumes the same list of captions but produces
different file content. This base class enforces a consistent interface
so the CLI can work with any formatter generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list; every current formatter returns one item
- ``suffix`` starts with a hyphen, e.g. ``"-captions.srt"``
- The caller is responsible for prepending the source filename stem
- Formatters never modify the captions they are given
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from caption_aligner.core.ir import Caption


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-captions.srt"`` → ``"interview-captions.srt"``.
        content: The file content as a string.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: Union[str, bytes]
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all caption exporters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SRT Captions'."""

    @abstractmethod
    def format(
        self,
        captions: Sequence[Caption],
        source_filename: Optional[str] = None,
    ) -> List[FormatterOutput]:
        """Convert captions into one or more output files.

        Args:
            captions: Captions sorted by start (as held by a CaptionTimeline).
            source_filename: Name of the media the captions belong to, if any.

        Returns:
            List of FormatterOutput objects.
        """
