"""WorldHost: the interface the live world exposes to the policy loop.

The host owns all mutable world state. The policy loop only:
  - registers listeners for the five event channels and for console commands
  - reads the local actor and nearby NPCs to build a snapshot
  - calls the three mutation entry points from the mutation context
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Protocol

if TYPE_CHECKING:
    from policy_loop.core.enums import Channel
    from policy_loop.core.models import Position

EventListener = Callable[[Any], None]
CommandListener = Callable[[list[str]], None]


class Actor(Protocol):
    health: int
    position: Position


class Npc(Protocol):
    id: int
    name: str
    position: Position

    def is_interacting_with(self, actor: Actor | None) -> bool: ...


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """Payload delivered on the CHAT_MESSAGE channel."""

    sender: str
    message: str


class WorldHost(ABC):
    """Abstract live world. Implementations wrap the real host process."""

    # -- observation --

    @abstractmethod
    def local_actor(self) -> Actor | None:
        """The actor the policy controls, or None when not logged in."""

    @abstractmethod
    def npcs(self) -> Iterable[Npc]:
        """All NPCs currently loaded around the local actor."""

    # -- subscription --

    @abstractmethod
    def add_listener(self, channel: Channel, listener: EventListener) -> None: ...

    @abstractmethod
    def remove_listener(self, channel: Channel, listener: EventListener) -> None: ...

    @abstractmethod
    def add_command_listener(self, name: str, listener: CommandListener) -> None: ...

    @abstractmethod
    def remove_command_listener(self, name: str) -> None: ...

    # -- mutation (mutation context only) --

    @abstractmethod
    def set_actor_position(self, position: Position) -> None: ...

    @abstractmethod
    def notify(self, message: str) -> None:
        """Show a game message to the player."""

    @abstractmethod
    def interact(self, kind: str, target_id: int | None = None) -> None:
        """Perform an interaction such as an attack or a defensive stance."""
