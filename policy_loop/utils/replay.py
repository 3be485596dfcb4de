"""Replay serialization: records applied decisions for run-to-run comparison."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from policy_loop.utils.event_log import DecisionEvent

logger = logging.getLogger(__name__)


class ReplayRecorder:
    """Accumulates decision events and flushes them to a JSON file."""

    __slots__ = ("_path", "_events", "_seed")

    def __init__(self, path: str | Path, seed: int) -> None:
        self._path = Path(path)
        self._seed = seed
        self._events: list[dict[str, Any]] = []

    def record(self, event: DecisionEvent) -> None:
        self._events.append(asdict(event))

    def record_many(self, events: list[DecisionEvent]) -> None:
        for event in events:
            self.record(event)

    def flush(self) -> None:
        """Write accumulated data to disk."""
        replay = {
            "version": "1.0",
            "seed": self._seed,
            "total_decisions": len(self._events),
            "decisions": self._events,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(replay, indent=2), encoding="utf-8")
        logger.info("Replay saved to %s (%d decisions)", self._path, len(self._events))
