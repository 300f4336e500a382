"""Core caption model, timeline invariants, and derived timeline features.

WHY: The core package holds the stable heart of the editor: the caption
IR and the collection that enforces its timing invariants. Everything
upstream (recognition) produces these types and everything downstream
(snapping, lyric alignment, formatters) consumes them.

HOW: ir.py defines the dataclasses, timeline.py owns the sorted
collection, snap.py and lyrics.py derive new timing from it,
cancellation.py and timecode.py are shared utilities.

RULES:
- IR dataclasses are the contract; change with care
- No I/O or threading in this package
"""
