"""SimulationDriver: steps a SimulatedWorld on a background host thread."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_loop.world.script import WorldScript
    from policy_loop.world.simulated import SimulatedWorld

logger = logging.getLogger(__name__)


class SimulationDriver:
    """Plays the role of the host client thread that fires world events."""

    def __init__(self, world: SimulatedWorld, script: WorldScript, tick_rate: float = 0.6) -> None:
        self._world = world
        self._script = script
        self._tick_rate = tick_rate
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @tick_rate.setter
    def tick_rate(self, value: float) -> None:
        self._tick_rate = max(0.01, min(value, 5.0))

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="host-client", daemon=True)
        self._thread.start()
        logger.info("Simulation driver started (tick_rate=%.2fs)", self._tick_rate)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Simulation driver stopped at tick %d.", self._world.tick_count)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._world.step(self._script)
            except Exception:
                logger.exception("Simulation step %d failed", self._world.tick_count)
            self._stop.wait(self._tick_rate)
