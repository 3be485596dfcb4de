"""EventDispatcher: fans world events out to inference tasks.

Per event:
  1. Capture a WorldSnapshot on the event thread (cheap, never blocks)
  2. Spawn a PendingTask on the WorkerPool: encode -> predict -> resolve
  3. Push the resulting Decision onto the ActionQueue for the MutationLoop

Backpressure: at most ``max_pending`` tasks may wait for a worker. When a new
event would exceed that, the oldest waiting task is dropped.
"""

from __future__ import annotations

import functools
import itertools
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from policy_loop.actions.base import Decision
from policy_loop.ai.encoder import encode, input_digest
from policy_loop.core.enums import Channel, TaskPhase
from policy_loop.core.snapshot import WorldSnapshot
from policy_loop.engine.task import PendingTask
from policy_loop.errors import DispatchError, InferenceError

if TYPE_CHECKING:
    from policy_loop.core.catalog import ActionCatalog
    from policy_loop.core.world import EventListener, WorldHost
    from policy_loop.engine.action_queue import ActionQueue
    from policy_loop.engine.worker_pool import WorkerPool
    from policy_loop.model.adapter import ModelAdapter

logger = logging.getLogger(__name__)

# Raw id used when inference fails; never present in a catalog.
FAILED_ACTION_ID = -1


@dataclass(frozen=True, slots=True)
class DispatcherStats:
    dispatched: int = 0
    dropped: int = 0
    completed: int = 0
    cancelled: int = 0
    inference_failures: int = 0
    in_flight: int = 0
    waiting: int = 0


class EventDispatcher:
    """Subscribes to world channels and schedules one task per event."""

    def __init__(
        self,
        adapter: ModelAdapter,
        catalog: ActionCatalog,
        pool: WorkerPool,
        action_queue: ActionQueue,
        max_pending: int = 64,
    ) -> None:
        self._adapter = adapter
        self._catalog = catalog
        self._pool = pool
        self._action_queue = action_queue
        self._max_pending = max(1, max_pending)

        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._tasks: dict[int, PendingTask] = {}
        self._waiting: OrderedDict[int, PendingTask] = OrderedDict()
        self._closed = False
        self._tick = 0

        self._host: WorldHost | None = None
        self._listeners: dict[Channel, EventListener] = {}

        self._dispatched = 0
        self._dropped = 0
        self._completed = 0
        self._cancelled = 0
        self._inference_failures = 0

    # -- configuration --

    @property
    def catalog(self) -> ActionCatalog:
        return self._catalog

    def replace_catalog(self, catalog: ActionCatalog) -> None:
        """Swap the catalog wholesale. Running tasks keep the one they read."""
        self._catalog = catalog
        logger.info("Action catalog replaced (%d entries)", len(catalog))

    @property
    def closed(self) -> bool:
        return self._closed

    # -- subscription --

    def subscribe(self, host: WorldHost) -> None:
        if self._host is not None:
            raise RuntimeError("Dispatcher is already subscribed to a host")
        self._host = host
        for channel in Channel:
            listener = functools.partial(self.on_event, channel)
            self._listeners[channel] = listener
            host.add_listener(channel, listener)
        logger.info("Subscribed to %d world channels", len(self._listeners))

    def unsubscribe(self) -> None:
        if self._host is None:
            return
        for channel, listener in self._listeners.items():
            self._host.remove_listener(channel, listener)
        self._listeners.clear()
        self._host = None

    # -- event entry point (runs on the host's event thread) --

    def on_event(self, channel: Channel, event: Any = None) -> PendingTask | None:
        """Capture state and schedule inference. Never raises into the host."""
        if self._closed or self._host is None:
            return None
        try:
            if channel == Channel.GAME_TICK:
                with self._lock:
                    self._tick += 1
            snapshot = WorldSnapshot.capture(self._host, tick=self._tick)
            trigger: WorldSnapshot | str = snapshot
            if channel == Channel.CHAT_MESSAGE:
                message = getattr(event, "message", event)
                trigger = message if isinstance(message, str) else str(message or "")
        except Exception:
            logger.exception("Failed to capture world state for %s event", channel.name)
            return None
        return self.dispatch(channel, trigger, snapshot)

    def dispatch(self, channel: Channel, trigger: WorldSnapshot | str, snapshot: WorldSnapshot) -> PendingTask | None:
        """Schedule one task for an already-captured trigger.

        Submission only fails once the pool is closed, where evicting an older
        task would not make room; the new task is dropped instead.
        """
        task = PendingTask(next(self._ids), channel, trigger, snapshot, on_settle=self._forget)
        try:
            self._schedule(task)
        except DispatchError as exc:
            logger.warning("Dropping %r: %s", task, exc)
            with self._lock:
                self._dropped += 1
            task.cancel()
            return None
        return task

    def _schedule(self, task: PendingTask) -> None:
        evicted: list[PendingTask] = []
        with self._lock:
            if self._closed:
                raise DispatchError("dispatcher is shut down")
            self._tasks[task.id] = task
            self._waiting[task.id] = task
            try:
                task.future = self._pool.submit(self._run, task)
            except DispatchError:
                del self._tasks[task.id]
                del self._waiting[task.id]
                raise
            while len(self._waiting) > self._max_pending:
                _, oldest = self._waiting.popitem(last=False)
                # Counted as dropped only, never again as cancelled.
                del self._tasks[oldest.id]
                evicted.append(oldest)
            self._dropped += len(evicted)
            self._dispatched += 1

        for old in evicted:
            old.cancel()
            logger.debug("Backpressure: dropped %r", old)

    # -- worker body --

    def _run(self, task: PendingTask) -> None:
        with self._lock:
            self._waiting.pop(task.id, None)
        try:
            self._infer(task)
        except Exception:
            logger.exception("Task %d failed on %s; no action taken", task.id, task.channel.name)
            task.cancel()

    def _infer(self, task: PendingTask) -> None:
        if not task.advance(TaskPhase.ENCODING):
            return
        try:
            data = encode(task.trigger)
        except UnicodeEncodeError as exc:
            # Unencodable chat text; an empty input fails inference and resolves to idle.
            logger.warning("Task %d: trigger is not valid UTF-8 text: %s", task.id, exc)
            data = b""
        digest = input_digest(data)

        # Capture once: a concurrent reload must not change this task's model.
        handle = self._adapter.current
        task.handle = handle
        catalog = self._catalog
        if not task.advance(TaskPhase.INFERRING):
            return

        try:
            action_id = self._adapter.predict(handle, data)
        except InferenceError as exc:
            logger.warning("Inference failed for task %d (%s): %s", task.id, task.channel.name, exc)
            with self._lock:
                self._inference_failures += 1
            action_id = FAILED_ACTION_ID

        if task.cancelled:
            return
        action = catalog.resolve(action_id)
        logger.debug("Task %d on %s -> %d (%s)", task.id, task.channel.name, action_id, action)
        self._action_queue.push(Decision(task, action_id, action, task.snapshot, digest))

    def _forget(self, task: PendingTask) -> None:
        with self._lock:
            self._waiting.pop(task.id, None)
            if self._tasks.pop(task.id, None) is None:
                return  # dropped before it ever ran
            if task.phase == TaskPhase.DONE:
                self._completed += 1
            else:
                self._cancelled += 1

    # -- introspection --

    def outstanding(self) -> list[PendingTask]:
        with self._lock:
            return list(self._tasks.values())

    def stats(self) -> DispatcherStats:
        with self._lock:
            return DispatcherStats(
                dispatched=self._dispatched,
                dropped=self._dropped,
                completed=self._completed,
                cancelled=self._cancelled,
                inference_failures=self._inference_failures,
                in_flight=len(self._tasks),
                waiting=len(self._waiting),
            )

    # -- shutdown --

    def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel every outstanding task; let an in-progress apply finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            tasks = list(self._tasks.values())
            self._waiting.clear()
        self.unsubscribe()

        applying = [t for t in tasks if not t.cancel()]
        self._pool.shutdown(wait=False)
        for task in applying:
            if not task.wait(timeout):
                logger.warning("%r still applying after %.1fs", task, timeout)
        logger.info("Dispatcher shut down (%d tasks cancelled, %d let finish)",
                    len(tasks) - len(applying), len(applying))
