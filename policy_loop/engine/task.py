"""PendingTask: one event -> one inference -> one action application."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import TYPE_CHECKING, Callable

from policy_loop.core.enums import Channel, TaskPhase

if TYPE_CHECKING:
    from policy_loop.core.snapshot import WorldSnapshot
    from policy_loop.model.adapter import ModelHandle

_TERMINAL = frozenset({TaskPhase.DONE, TaskPhase.CANCELLED})


class PendingTask:
    """Phase-tracked unit of work owned by the dispatcher.

    Phase transitions are guarded by a per-task lock so that cancellation and
    the start of ``APPLYING`` are mutually exclusive: once a task is applying
    it can no longer be cancelled, and once cancelled it never applies.
    """

    __slots__ = (
        "id", "channel", "trigger", "snapshot", "created_at",
        "handle", "future", "_phase", "_lock", "_settled", "_on_settle",
    )

    def __init__(
        self,
        task_id: int,
        channel: Channel,
        trigger: WorldSnapshot | str,
        snapshot: WorldSnapshot,
        on_settle: Callable[[PendingTask], None] | None = None,
    ) -> None:
        self.id = task_id
        self.channel = channel
        self.trigger = trigger
        self.snapshot = snapshot
        self.created_at = time.monotonic()
        self.handle: ModelHandle | None = None
        self.future: Future | None = None
        self._phase = TaskPhase.IDLE
        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._on_settle = on_settle

    @property
    def phase(self) -> TaskPhase:
        return self._phase

    @property
    def cancelled(self) -> bool:
        return self._phase == TaskPhase.CANCELLED

    @property
    def settled(self) -> bool:
        return self._settled.is_set()

    def advance(self, phase: TaskPhase) -> bool:
        """Move to *phase* (ENCODING or INFERRING). False if cancelled."""
        with self._lock:
            if self._phase in _TERMINAL:
                return False
            self._phase = phase
            return True

    def begin_apply(self) -> bool:
        """Cross the APPLYING boundary. False if cancelled or already applied."""
        with self._lock:
            if self._phase in _TERMINAL or self._phase == TaskPhase.APPLYING:
                return False
            self._phase = TaskPhase.APPLYING
            return True

    def finish(self) -> None:
        with self._lock:
            if self._phase in _TERMINAL:
                return
            self._phase = TaskPhase.DONE
        self._settle()

    def cancel(self) -> bool:
        """Cancel unless already applying or done. Idempotent."""
        with self._lock:
            if self._phase == TaskPhase.CANCELLED:
                return True
            if self._phase in (TaskPhase.APPLYING, TaskPhase.DONE):
                return False
            self._phase = TaskPhase.CANCELLED
        if self.future is not None:
            self.future.cancel()
        self._settle()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until DONE or CANCELLED."""
        return self._settled.wait(timeout)

    def _settle(self) -> None:
        self._settled.set()
        if self._on_settle is not None:
            self._on_settle(self)

    def __repr__(self) -> str:
        return f"PendingTask(id={self.id}, {self.channel.name}, {self._phase.name})"
