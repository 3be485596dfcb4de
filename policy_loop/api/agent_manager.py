"""AgentManager: wires the policy loop to a world host and owns its lifecycle.

Startup loads the catalog and model, subscribes to the host's channels and
registers console commands. Any startup failure aborts activation, is logged
once, and is surfaced through the host's notification channel.

The mutation loop either runs on its own thread (``start(threaded=True)``)
or is pumped by the host's main thread via ``bind_mutation_thread`` +
``pump``.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from concurrent.futures import wait
from dataclasses import replace
from typing import TYPE_CHECKING

from policy_loop.actions.executor import ActionExecutor, MutationContext
from policy_loop.engine.action_queue import ActionQueue
from policy_loop.config import load_config
from policy_loop.engine.commands import CATALOG_FAILED, CATALOG_OK, CommandHandler
from policy_loop.engine.dispatcher import DispatcherStats, EventDispatcher
from policy_loop.engine.mutation_loop import MutationLoop
from policy_loop.engine.worker_pool import WorkerPool
from policy_loop.errors import ConfigError, ModelLoadError
from policy_loop.model.adapter import ModelAdapter
from policy_loop.model.backends import TorchScriptBackend
from policy_loop.utils.event_log import DecisionEvent, DecisionLog

if TYPE_CHECKING:
    from policy_loop.actions.base import ActionOutcome, Decision
    from policy_loop.config import AgentConfig
    from policy_loop.core.world import WorldHost
    from policy_loop.model.adapter import ModelHandle
    from policy_loop.model.backends import ModelBackend

logger = logging.getLogger(__name__)

STARTUP_FAILED = "Policy loop failed to start."


class AgentManager:
    """Single owner of dispatcher, worker pool, model adapter and mutation loop."""

    def __init__(
        self,
        config: AgentConfig,
        host: WorldHost,
        backend: ModelBackend | None = None,
    ) -> None:
        self._config = config
        self._host = host
        self._adapter = ModelAdapter(backend or TorchScriptBackend(config.model_device))
        self._decision_log = DecisionLog(config.decision_log_size)

        self._action_queue = ActionQueue()
        self._executor = ActionExecutor(host, MutationContext())
        self._loop = MutationLoop(
            self._executor,
            self._action_queue,
            poll_interval=config.poll_interval,
            on_applied=self._record,
        )
        self._commands = CommandHandler(self._adapter, self._notify)

        self._pool: WorkerPool | None = None
        self._dispatcher: EventDispatcher | None = None
        self._running = threading.Event()
        self._started_at: float | None = None

    # -- public properties --

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def host(self) -> WorldHost:
        return self._host

    @property
    def adapter(self) -> ModelAdapter:
        return self._adapter

    @property
    def model(self) -> ModelHandle | None:
        return self._adapter.current

    @property
    def dispatcher(self) -> EventDispatcher | None:
        return self._dispatcher

    @property
    def mutation_loop(self) -> MutationLoop:
        return self._loop

    @property
    def decision_log(self) -> DecisionLog:
        return self._decision_log

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at if self._started_at else 0.0

    def stats(self) -> DispatcherStats:
        return self._dispatcher.stats() if self._dispatcher else DispatcherStats()

    # -- lifecycle --

    def start(self, threaded: bool = True) -> None:
        """Activate the loop. Raises ConfigError/ModelLoadError on failure."""
        if self._running.is_set():
            return
        if threaded:
            self._loop.start()

        try:
            catalog = self._config.build_catalog()
            self._adapter.reload(self._config.model_path)
        except (ConfigError, ModelLoadError) as exc:
            logger.error("Failed to start policy loop: %s", exc)
            self._notify(STARTUP_FAILED)
            if threaded:
                # Deliver the notice, then release the mutation thread.
                self._loop.stop(self._config.shutdown_timeout, flush=True)
            raise

        self._pool = WorkerPool(self._config.num_workers)
        self._dispatcher = EventDispatcher(
            self._adapter, catalog, self._pool, self._action_queue,
            max_pending=self._config.max_pending,
        )
        self._dispatcher.subscribe(self._host)
        self._commands.register(self._host)
        self._started_at = time.monotonic()
        self._running.set()
        logger.info(
            "Policy loop started (model=%s, workers=%d, actions=%d)",
            self._config.model_path, self._pool.num_workers, len(catalog),
        )

    def stop(self) -> None:
        """Cancel outstanding tasks, stop the mutation loop, release the model."""
        timeout = self._config.shutdown_timeout
        self._commands.unregister()
        if self._dispatcher is not None:
            self._dispatcher.shutdown(timeout)
        self._loop.stop(timeout)
        self._adapter.close()
        self._running.clear()
        logger.info("Policy loop stopped.")

    # -- host-pumped mode --

    def bind_mutation_thread(self) -> None:
        """Make the calling thread the mutation context."""
        self._loop.bind()

    def pump(self, wait_timeout: float | None = None) -> list[ActionOutcome]:
        """Apply queued decisions on the calling (bound) thread.

        With *wait_timeout*, first wait for every in-flight inference so the
        pump sees all decisions for events raised so far.
        """
        if wait_timeout is not None and self._dispatcher is not None:
            futures = [t.future for t in self._dispatcher.outstanding() if t.future is not None]
            if futures:
                wait(futures, timeout=wait_timeout)
        return self._loop.run_pending()

    # -- commands --

    def reload(self, path: str | None = None) -> bool:
        """Reload the model from *path*, or from the configured path."""
        return self._commands.reload(path or self._config.model_path)

    def reload_catalog(self, config_path: str) -> bool:
        """Replace the action catalog with the one in *config_path*.

        A rejected file leaves the current catalog in place. Tasks already
        past encoding resolve against the catalog they started with.
        """
        try:
            config = load_config(config_path, self._config)
            catalog = config.build_catalog()
        except ConfigError as exc:
            logger.warning("Rejected catalog reload from %s: %s", config_path, exc)
            self._notify(CATALOG_FAILED)
            return False

        self._config = replace(self._config, actions=config.actions)
        if self._dispatcher is not None:
            self._dispatcher.replace_catalog(catalog)
        self._notify(CATALOG_OK)
        return True

    def announce_status(self) -> None:
        self._commands.status()

    # -- internals --

    def _notify(self, message: str) -> None:
        self._loop.call(functools.partial(self._executor.notify, message))

    def _record(self, decision: Decision, outcome: ActionOutcome | None) -> None:
        task = decision.task
        self._decision_log.append(DecisionEvent(
            task_id=task.id,
            channel=task.channel.name,
            action_id=decision.action_id,
            action=outcome.action if outcome else decision.action,
            digest=decision.digest,
            mutation=outcome.mutation if outcome else None,
            model_version=task.handle.version if task.handle else None,
            tick=decision.snapshot.tick,
        ))
