"""Enumerations used throughout the policy loop."""

from __future__ import annotations

from enum import IntEnum, unique


@unique
class Channel(IntEnum):
    """Independent world event sources feeding the dispatcher."""

    CHAT_MESSAGE = 0
    GAME_TICK = 1
    PLAYER_MOVED = 2
    ACTOR_DEATH = 3
    ITEM_CONTAINER_CHANGED = 4


@unique
class TaskPhase(IntEnum):
    """Lifecycle of one event -> inference -> action task."""

    IDLE = 0
    ENCODING = 1
    INFERRING = 2
    APPLYING = 3
    DONE = 4
    CANCELLED = 5

