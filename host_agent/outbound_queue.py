"""
Outbound Queue
==============

Thread-safe FIFO between the producers of asynchronous events (the differ)
and the single consumer that owns the websocket (the session's receive loop).

Unbounded: push never blocks. pop on an empty queue returns None, which can
never be confused with a real message (messages are never None, even with an
empty payload).
"""

from __future__ import annotations
import threading
from collections import deque
from typing import Optional

from .messages import OutboundMessage


class OutboundQueue:
    def __init__(self) -> None:
        self._items: deque[OutboundMessage] = deque()
        self._lock = threading.Lock()

    def push(self, message: OutboundMessage) -> None:
        if message is None:
            raise TypeError("cannot queue None")
        with self._lock:
            self._items.append(message)

    def pop(self) -> Optional[OutboundMessage]:
        """Remove and return the head, or None when the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def size(self) -> int:
        with self._lock:
            return len(self._items)
