"""Thread-safe ring buffer of applied decisions exposed via the API."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DecisionEvent:
    """One applied (or failed-to-apply) decision."""

    task_id: int
    channel: str
    action_id: int
    action: str
    digest: str
    mutation: str | None = None
    model_version: int | None = None
    tick: int = 0


class DecisionLog:
    """Bounded event log. Writers append; readers snapshot a slice.

    The mutation thread is the only writer; API handlers read copies.
    """

    __slots__ = ("_buffer", "_lock", "_total")

    def __init__(self, maxlen: int = 1000) -> None:
        self._buffer: deque[DecisionEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self._total = 0

    def append(self, event: DecisionEvent) -> None:
        with self._lock:
            self._buffer.append(event)
            self._total += 1

    def latest(self, count: int = 50) -> list[DecisionEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:] if count > 0 else []

    def all(self) -> list[DecisionEvent]:
        with self._lock:
            return list(self._buffer)

    @property
    def total(self) -> int:
        return self._total

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()
            self._total = 0
