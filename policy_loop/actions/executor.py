"""ActionExecutor: applies a symbolic action to the world.

Only the thread bound to the MutationContext may call ``apply``; every other
caller gets a MutationContextError before any host method is touched.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from policy_loop.actions.base import ActionOutcome
from policy_loop.core import catalog
from policy_loop.errors import MutationContextError

if TYPE_CHECKING:
    from policy_loop.core.snapshot import WorldSnapshot
    from policy_loop.core.world import WorldHost

logger = logging.getLogger(__name__)

# (dx, dy) relative to the snapshot position
MOVE_OFFSETS: dict[str, tuple[int, int]] = {
    catalog.MOVE_NORTH: (0, 1),
    catalog.MOVE_SOUTH: (0, -1),
    catalog.MOVE_EAST: (1, 0),
    catalog.MOVE_WEST: (-1, 0),
}


class MutationContext:
    """The single execution context permitted to mutate world state."""

    __slots__ = ("_owner", "_name")

    def __init__(self, name: str = "world-mutator") -> None:
        self._owner: int | None = None
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def bound(self) -> bool:
        return self._owner is not None

    def bind(self) -> None:
        """Claim the mutation context for the calling thread."""
        ident = threading.get_ident()
        if self._owner is not None and self._owner != ident:
            raise MutationContextError(f"{self._name} is already bound to another thread")
        self._owner = ident

    def release(self) -> None:
        if self._owner == threading.get_ident():
            self._owner = None

    def is_current(self) -> bool:
        return self._owner is not None and self._owner == threading.get_ident()

    def check(self) -> None:
        if not self.is_current():
            raise MutationContextError(
                f"World mutation from thread {threading.current_thread().name!r} "
                f"outside {self._name}"
            )


class ActionExecutor:
    """Maps action names to host mutation calls."""

    __slots__ = ("_host", "_context")

    def __init__(self, host: WorldHost, context: MutationContext) -> None:
        self._host = host
        self._context = context

    @property
    def context(self) -> MutationContext:
        return self._context

    def apply(self, name: str, snapshot: WorldSnapshot) -> ActionOutcome:
        self._context.check()

        if name == catalog.ATTACK:
            target = snapshot.nearby[0].id if snapshot.nearby else None
            self._host.interact("attack", target)
            return self._announce(ActionOutcome(name, "interact", target, "Performing Attack"))

        if name == catalog.DEFEND:
            self._host.interact("defend", None)
            return self._announce(ActionOutcome(name, "interact", None, "Performing Defend"))

        offset = MOVE_OFFSETS.get(name)
        if offset is not None and snapshot.has_actor:
            # Target is relative to where the actor was when the event fired.
            target = snapshot.position.offset(*offset)
            self._host.set_actor_position(target)
            return self._announce(ActionOutcome(name, "move", target, f"Moving to {target}"))

        if offset is not None:
            logger.debug("No local actor in snapshot; %s treated as idle", name)
        elif name != catalog.IDLE:
            logger.debug("Unrecognised action %r treated as idle", name)
        return self._announce(ActionOutcome(catalog.IDLE, None, None, "Idling"))

    def notify(self, message: str) -> None:
        """Send a plain notification from the mutation context."""
        self._context.check()
        self._host.notify(message)

    def _announce(self, outcome: ActionOutcome) -> ActionOutcome:
        self._host.notify(outcome.message)
        return outcome
