"""WorldScript: the seeded script behind SimulatedWorld's events.

Every draw is a pure function of (seed, kind, subject, tick), hashed with
xxh64, so a run replays identically no matter which thread asks or in what
order the questions come.
"""

from __future__ import annotations

from enum import IntEnum, unique
from typing import Sequence

import xxhash

NPC_NAMES = ("Goblin", "Guard", "Rat", "Man", "Woman", "Cow", "Imp", "Skeleton")
CHATTER = ("hello", "attack!", "run", "buying gf", "lol", "help me", "defend the gate")

_UINT64 = 1 << 64


@unique
class ScriptKind(IntEnum):
    """Independent event streams; one never shifts another's draws."""

    SPAWN = 0
    CHATTER = 1
    STROLL = 2
    DAMAGE = 3
    DEATH = 4


class WorldScript:
    """Answers "what happens next" for a simulated world. Stateless."""

    __slots__ = ("_seed",)

    # per-tick event odds
    CHATTER_CHANCE = 0.2
    STROLL_CHANCE = 0.1
    DAMAGE_CHANCE = 0.05
    DEATH_CHANCE = 0.02
    INTERACTING_CHANCE = 0.4

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _roll(self, kind: ScriptKind, subject: int, tick: int) -> float:
        key = f"{kind.name}:{subject}:{tick}".encode("ascii")
        return xxhash.xxh64_intdigest(key, seed=self._seed % _UINT64) / _UINT64

    def _pick(self, kind: ScriptKind, subject: int, tick: int, count: int) -> int:
        return int(self._roll(kind, subject, tick) * count)

    # -- population --

    def npc_name(self, npc_id: int) -> str:
        return NPC_NAMES[self._pick(ScriptKind.SPAWN, npc_id, 0, len(NPC_NAMES))]

    def npc_offset(self, npc_id: int, radius: int = 8) -> tuple[int, int]:
        span = 2 * radius + 1
        return (
            self._pick(ScriptKind.SPAWN, npc_id, 1, span) - radius,
            self._pick(ScriptKind.SPAWN, npc_id, 2, span) - radius,
        )

    def npc_interacting(self, npc_id: int) -> bool:
        return self._roll(ScriptKind.SPAWN, npc_id, 3) < self.INTERACTING_CHANCE

    # -- per tick --

    def chatter(self, tick: int) -> str | None:
        """A line some NPC says this tick, if any."""
        if self._roll(ScriptKind.CHATTER, 0, tick) >= self.CHATTER_CHANCE:
            return None
        return CHATTER[self._pick(ScriptKind.CHATTER, 1, tick, len(CHATTER))]

    def stroll(self, tick: int) -> tuple[int, int] | None:
        """A one-tile player step this tick, if any."""
        if self._roll(ScriptKind.STROLL, 0, tick) >= self.STROLL_CHANCE:
            return None
        return (
            self._pick(ScriptKind.STROLL, 1, tick, 3) - 1,
            self._pick(ScriptKind.STROLL, 2, tick, 3) - 1,
        )

    def damage(self, tick: int) -> int:
        """Damage the player takes this tick; 0 for none."""
        if self._roll(ScriptKind.DAMAGE, 0, tick) >= self.DAMAGE_CHANCE:
            return 0
        return 1 + self._pick(ScriptKind.DAMAGE, 1, tick, 10)

    def victim(self, tick: int, candidates: Sequence[int]) -> int | None:
        """Which of *candidates* dies this tick, if any."""
        if not candidates or self._roll(ScriptKind.DEATH, 0, tick) >= self.DEATH_CHANCE:
            return None
        return candidates[self._pick(ScriptKind.DEATH, 1, tick, len(candidates))]
