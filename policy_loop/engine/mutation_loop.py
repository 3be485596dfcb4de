"""MutationLoop: the single consumer that applies decisions to the world.

Runs either on its own ``world-mutator`` thread (``start``) or is pumped by a
host that already owns a main loop (``bind`` + ``run_pending``). Either way,
exactly one thread is bound to the MutationContext and only that thread calls
the ActionExecutor.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable

from policy_loop.actions.base import Decision

if TYPE_CHECKING:
    from policy_loop.actions.base import ActionOutcome
    from policy_loop.actions.executor import ActionExecutor, MutationContext
    from policy_loop.engine.action_queue import ActionQueue, WorkItem

logger = logging.getLogger(__name__)

AppliedHook = Callable[[Decision, "ActionOutcome | None"], None]


class MutationLoop:
    __slots__ = ("_executor", "_queue", "_poll_interval", "_on_applied", "_thread", "_stop")

    def __init__(
        self,
        executor: ActionExecutor,
        action_queue: ActionQueue,
        poll_interval: float = 0.05,
        on_applied: AppliedHook | None = None,
    ) -> None:
        self._executor = executor
        self._queue = action_queue
        self._poll_interval = poll_interval
        self._on_applied = on_applied
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def context(self) -> MutationContext:
        return self._executor.context

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -- lifecycle --

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.context.name, daemon=True)
        self._thread.start()
        logger.info("Mutation loop started on thread %r", self.context.name)

    def bind(self) -> None:
        """Adopt the calling thread as the mutation context (host-pumped mode)."""
        self.context.bind()

    def stop(self, timeout: float = 5.0, flush: bool = False) -> None:
        """Stop consuming. An apply already in progress runs to completion.

        With *flush*, the mutation thread first handles everything queued
        before this call; otherwise leftover decisions are cancelled.
        """
        if flush and self.running:
            self._queue.push(self._stop.set)
        else:
            self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Mutation loop did not stop within %.1fs", timeout)
        self._stop.set()
        self._thread = None
        for item in self._queue.drain():
            if isinstance(item, Decision):
                item.task.cancel()
        logger.info("Mutation loop stopped.")

    def call(self, fn: Callable[[], None]) -> None:
        """Run *fn* on the mutation context at the next opportunity."""
        self._queue.push(fn)

    # -- consumption --

    def run_pending(self) -> list[ActionOutcome]:
        """Apply everything queued so far. Must run on the bound thread."""
        self.context.check()
        outcomes: list[ActionOutcome] = []
        for item in self._queue.drain():
            outcome = self._handle(item)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def _run(self) -> None:
        self.context.bind()
        try:
            while not self._stop.is_set():
                item = self._queue.get(self._poll_interval)
                if item is None:
                    continue
                if self._stop.is_set():
                    if isinstance(item, Decision):
                        item.task.cancel()
                    break
                self._handle(item)
        finally:
            self.context.release()
            logger.debug("Mutation thread exited.")

    def _handle(self, item: WorkItem) -> ActionOutcome | None:
        if isinstance(item, Decision):
            return self._apply(item)
        try:
            item()
        except Exception:
            logger.exception("Mutation-context callback failed")
        return None

    def _apply(self, decision: Decision) -> ActionOutcome | None:
        task = decision.task
        if not task.begin_apply():
            logger.debug("Skipping %r: task no longer eligible", decision)
            return None

        outcome: ActionOutcome | None = None
        try:
            outcome = self._executor.apply(decision.action, decision.snapshot)
        except Exception:
            logger.exception("Failed to apply %r", decision)
        finally:
            task.finish()

        if self._on_applied is not None:
            try:
                self._on_applied(decision, outcome)
            except Exception:
                logger.exception("Applied-hook failed for %r", decision)
        return outcome
