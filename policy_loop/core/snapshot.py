"""Immutable snapshot of the world facts a decision needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from policy_loop.core.models import ORIGIN, NearbyEntity, Position

if TYPE_CHECKING:
    from policy_loop.core.world import WorldHost


@dataclass(frozen=True, slots=True)
class WorldSnapshot:
    """Read-only view of the world, safe to share across threads.

    Built from plain values only; nothing in it aliases host state.
    """

    health: int = 0
    position: Position = ORIGIN
    nearby: tuple[NearbyEntity, ...] = ()
    has_actor: bool = False
    tick: int = 0

    @classmethod
    def capture(cls, host: WorldHost, tick: int = 0) -> WorldSnapshot:
        """Copy the minimum facts from *host*. Must run on the event thread."""
        actor = host.local_actor()
        if actor is None:
            return cls(tick=tick)

        pos = actor.position
        nearby = tuple(sorted(
            (
                NearbyEntity(
                    id=int(npc.id),
                    name=str(npc.name or ""),
                    position=Position(npc.position.x, npc.position.y, npc.position.plane),
                )
                for npc in host.npcs()
                if npc.is_interacting_with(actor)
            ),
            key=lambda n: n.id,
        ))
        return cls(
            health=int(actor.health or 0),
            position=Position(pos.x, pos.y, pos.plane),
            nearby=nearby,
            has_actor=True,
            tick=tick,
        )
