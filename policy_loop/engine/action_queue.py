"""Thread-safe queue connecting inference workers to the MutationLoop."""

from __future__ import annotations

import queue
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from policy_loop.actions.base import Decision

WorkItem = Union["Decision", Callable[[], None]]


class ActionQueue:
    """MPSC (multiple-producer, single-consumer) FIFO.

    Workers push Decisions; command handlers push plain callables that must
    run on the mutation context. The MutationLoop consumes both in arrival
    order.
    """

    __slots__ = ("_queue",)

    def __init__(self) -> None:
        self._queue: queue.Queue[WorkItem] = queue.Queue()

    def push(self, item: WorkItem) -> None:
        """Thread-safe enqueue."""
        self._queue.put_nowait(item)

    def get(self, timeout: float) -> WorkItem | None:
        """Wait up to *timeout* seconds for the next item."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[WorkItem]:
        """Drain all pending items."""
        items: list[WorkItem] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return items

    @property
    def empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()
