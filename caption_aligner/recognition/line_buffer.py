"""Incremental line splitter for subprocess output.

WHY: Pipe reads return whatever bytes happen to be available, so a
single logical line (or even a multi-byte UTF-8 character) can be split
across reads. Parsing must only ever see complete lines.

HOW: Each stream gets its own LineBuffer. consume() appends the chunk to
a bytearray remainder, then repeatedly cuts everything up to the next
LF, decodes it, strips surrounding whitespace, and hands it to the
callback. Bytes after the last LF wait for the next chunk.

RULES:
- Output is independent of how the input was chunked
- Lines are decoded as UTF-8 with replacement and stripped
- Empty lines are emitted (callers filter them)
- flush() emits a trailing unterminated line, if any
- A lock serializes consume()/flush() on one buffer
"""

from __future__ import annotations

import threading
from typing import Callable

LineCallback = Callable[[str], None]

_LF = 0x0A


class LineBuffer:
    """Byte accumulator that emits complete, trimmed text lines."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._remainder = bytearray()

    def consume(self, chunk: bytes, on_line: LineCallback) -> None:
        with self._lock:
            self._remainder.extend(chunk)
            while True:
                idx = self._remainder.find(_LF)
                if idx < 0:
                    break
                line = bytes(self._remainder[:idx])
                del self._remainder[: idx + 1]
                on_line(line.decode("utf-8", "replace").strip())

    def flush(self, on_line: LineCallback) -> None:
        with self._lock:
            if not self._remainder:
                return
            line = bytes(self._remainder)
            self._remainder.clear()
            on_line(line.decode("utf-8", "replace").strip())
