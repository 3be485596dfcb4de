"""ActionCatalog: immutable mapping from model output ids to action names."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from policy_loop.errors import ConfigError

logger = logging.getLogger(__name__)

ATTACK = "attack"
DEFEND = "defend"
MOVE_NORTH = "move_north"
MOVE_SOUTH = "move_south"
MOVE_EAST = "move_east"
MOVE_WEST = "move_west"
IDLE = "idle"

DEFAULT_ACTIONS: tuple[tuple[int, str], ...] = (
    (0, ATTACK),
    (1, DEFEND),
    (2, MOVE_NORTH),
    (3, MOVE_SOUTH),
    (4, MOVE_EAST),
    (5, MOVE_WEST),
    (6, IDLE),
)


class ActionCatalog:
    """Read-only id -> name table. Lookups never fail; unknown ids are idle.

    A reload builds a new catalog and replaces the old one wholesale.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[int, str]) -> None:
        self._entries: Mapping[int, str] = MappingProxyType(dict(entries))

    @classmethod
    def load(cls, entries: Iterable[tuple[int, str]]) -> ActionCatalog:
        """Build a catalog from ordered ``(id, name)`` pairs.

        Raises ConfigError on a repeated id, a negative id, or an empty name.
        """
        table: dict[int, str] = {}
        for action_id, name in entries:
            if isinstance(action_id, bool) or not isinstance(action_id, int):
                raise ConfigError(f"Action id must be an integer, got {action_id!r}")
            if action_id < 0:
                raise ConfigError(f"Action id must be non-negative, got {action_id}")
            if not isinstance(name, str) or not name.strip():
                raise ConfigError(f"Action {action_id} has an empty name")
            if action_id in table:
                raise ConfigError(f"Duplicate action id {action_id}")
            table[action_id] = name.strip()
        logger.debug("Loaded action catalog with %d entries", len(table))
        return cls(table)

    @classmethod
    def default(cls) -> ActionCatalog:
        return cls.load(DEFAULT_ACTIONS)

    def resolve(self, action_id: int) -> str:
        return self._entries.get(action_id, IDLE)

    @property
    def entries(self) -> Mapping[int, str]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ActionCatalog({dict(self._entries)!r})"
