"""Decision: the hand-off between inference workers and the mutation loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_loop.core.snapshot import WorldSnapshot
    from policy_loop.engine.task import PendingTask


@dataclass(frozen=True, slots=True)
class Decision:
    """A resolved action paired with the snapshot captured at dispatch time.

    The mutation loop applies *action* against *snapshot*, never against a
    snapshot belonging to another task.
    """

    task: PendingTask
    action_id: int
    action: str
    snapshot: WorldSnapshot
    digest: str = ""

    def __repr__(self) -> str:
        return f"Decision(task={self.task.id}, {self.action}, id={self.action_id})"


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """What the executor did for one decision."""

    action: str
    mutation: str | None = None
    target: object = None
    message: str = ""
