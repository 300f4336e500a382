"""Caption JSON formatter and loader.

WHY: SRT loses caption ids and word timing. The JSON document keeps the
full caption model so a transcription can be saved, reloaded, and fed
back in as the speech rhythm for lyric alignment.

HOW: Captions are serialized into a versioned document and validated
against the bundled caption_schema.json with jsonschema before
returning. load_captions_json() reads a document back, validates it
against the same schema, and rebuilds Caption/CaptionWord objects.

RULES:
- Document version: "1.0.0"
- Times are rounded to milliseconds
- Output is always schema-valid (jsonschema.ValidationError otherwise)
- Loaded captions keep their ids; words without ids get fresh ones
- Output suffix: "-captions.json"
- Media type: "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import jsonschema

from caption_aligner.core.ir import Caption, CaptionWord
from caption_aligner.formatters.base import BaseFormatter, FormatterOutput

DOCUMENT_VERSION = "1.0.0"

_SCHEMA_PATH = Path(__file__).resolve().parent / "caption_schema.json"

_CACHED_SCHEMA: Optional[dict] = None


def _get_schema() -> dict:
    """Load and cache the caption document schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _seconds(value: float) -> float:
    return round(max(0.0, value), 3)


def captions_to_document(
    captions: Sequence[Caption],
    source_filename: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the JSON-ready caption document."""
    return {
        "version": DOCUMENT_VERSION,
        "source": source_filename,
        "captions": [
            {
                "id": caption.id,
                "text": caption.text,
                "start": _seconds(caption.start),
                "end": _seconds(caption.end),
                "words": [
                    {
                        "id": word.id,
                        "text": word.text,
                        "start": _seconds(word.start),
                        "end": _seconds(word.end),
                    }
                    for word in caption.words
                ],
            }
            for caption in sorted(captions, key=lambda c: c.start)
        ],
    }


def load_captions_json(path: Union[str, Path]) -> List[Caption]:
    """Read a caption document written by CaptionJSONFormatter.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not JSON.
        jsonschema.ValidationError: If the document does not match the schema.
    """
    with open(path, encoding="utf-8") as f:
        document = json.load(f)
    jsonschema.validate(instance=document, schema=_get_schema())

    captions: List[Caption] = []
    for item in document["captions"]:
        words = []
        for w in item["words"]:
            word = CaptionWord(text=w["text"], start=w["start"], end=w["end"])
            if w.get("id"):
                word.id = w["id"]
            words.append(word)
        captions.append(Caption(
            text=item["text"],
            start=item["start"],
            end=item["end"],
            words=words,
            id=item["id"],
        ))
    return captions


class CaptionJSONFormatter(BaseFormatter):
    """Formatter that produces a schema-validated caption JSON file."""

    @property
    def name(self) -> str:
        return "Caption JSON"

    def format(
        self,
        captions: Sequence[Caption],
        source_filename: Optional[str] = None,
    ) -> List[FormatterOutput]:
        """Serialize captions and validate the document.

        Raises:
            jsonschema.ValidationError: If the generated document does not
                conform to caption_schema.json.
        """
        document = captions_to_document(captions, source_filename)
        jsonschema.validate(instance=document, schema=_get_schema())

        return [
            FormatterOutput(
                suffix="-captions.json",
                content=json.dumps(document, indent=2, ensure_ascii=False) + "\n",
                media_type="application/json",
            ),
        ]
