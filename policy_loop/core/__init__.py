"""Core data models and the world host interface."""

from policy_loop.core.catalog import ActionCatalog
from policy_loop.core.enums import Channel, TaskPhase
from policy_loop.core.models import NearbyEntity, Position
from policy_loop.core.snapshot import WorldSnapshot
from policy_loop.core.world import ChatMessage, WorldHost

__all__ = [
    "ActionCatalog",
    "Channel",
    "ChatMessage",
    "NearbyEntity",
    "Position",
    "TaskPhase",
    "WorldHost",
    "WorldSnapshot",
]
