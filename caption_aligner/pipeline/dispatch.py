"""Delivery of orchestrator updates to the owner's thread.

WHY: Updates are produced on the worker thread and the subprocess
reader threads, but a GUI may only touch its widgets from its main
thread. The orchestrator therefore never calls the owner directly; it
hands each delivery to a dispatcher.

HOW: A dispatcher is any callable taking a zero-argument function.
inline_dispatch runs it immediately (CLI, tests). UpdatePump queues it
on a queue.Queue; the owner calls drain() or pump() from its own loop,
the same way a Tk window polls a status queue with .after().

RULES:
- Deliveries run in submission order
- UpdatePump never runs callbacks on the submitting thread
"""

from __future__ import annotations

import queue
from typing import Callable, Optional

Delivery = Callable[[], None]
Dispatcher = Callable[[Delivery], None]


def inline_dispatch(delivery: Delivery) -> None:
    delivery()


class UpdatePump:
    """Queue-backed dispatcher drained by a single consumer thread."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[Delivery]" = queue.Queue()

    def __call__(self, delivery: Delivery) -> None:
        self._queue.put(delivery)

    def drain(self) -> int:
        """Run every queued delivery without blocking; return how many ran."""
        count = 0
        while True:
            try:
                delivery = self._queue.get_nowait()
            except queue.Empty:
                return count
            delivery()
            count += 1

    def pump(self, timeout: Optional[float] = None) -> int:
        """Block up to ``timeout`` for one delivery, then drain the rest."""
        try:
            delivery = self._queue.get(timeout=timeout)
        except queue.Empty:
            return 0
        delivery()
        return 1 + self.drain()
