"""Timecode formatting and parsing (hh:mm:ss.mmm).

WHY: whisper.cpp prints segment bounds as ``hh:mm:ss.mmm``, the caption
editor exposes the same format for typed start/end edits, and SRT
export needs the comma-separated variant.

HOW: Plain arithmetic on float seconds; parsing splits on ':' and '.'.

RULES:
- Negative values format as 00:00:00.000
- parse() returns None for anything that is not three ':' fields
- Millisecond digits are read as an integer count of milliseconds
"""

from __future__ import annotations

import math
from typing import Optional


def format_timecode(seconds: float, separator: str = ".") -> str:
    """Format seconds as ``hh:mm:ss.mmm`` (or ``hh:mm:ss,mmm`` for SRT)."""
    safe = max(0.0, seconds)
    total_ms = int(math.floor(safe * 1000 + 0.5))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, secs, separator, millis)


def parse_timecode(value: str) -> Optional[float]:
    """Parse ``hh:mm:ss[.mmm]`` into float seconds, or None if malformed."""
    parts = value.strip().split(":")
    if len(parts) != 3:
        return None
    try:
        hours = float(parts[0])
        minutes = float(parts[1])
        sec_parts = parts[2].split(".")
        seconds = float(sec_parts[0])
        millis = float(sec_parts[1]) / 1000 if len(sec_parts) > 1 and sec_parts[1] else 0.0
    except ValueError:
        return None
    return hours * 3600 + minutes * 60 + seconds + millis
