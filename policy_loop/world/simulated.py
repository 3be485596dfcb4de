"""SimulatedWorld: in-memory WorldHost used by the CLI and tests.

Events are raised synchronously on the caller's thread, the way a host
client fires listeners from its own event thread. Mutations are recorded
together with the name of the thread that performed them.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from policy_loop.core.enums import Channel
from policy_loop.core.models import Position
from policy_loop.core.world import ChatMessage, CommandListener, EventListener, WorldHost
from policy_loop.world.script import WorldScript

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SimActor:
    health: int = 99
    position: Position = field(default_factory=lambda: Position(3200, 3200, 0))
    name: str = "player"


@dataclass(slots=True)
class SimNpc:
    id: int
    name: str
    position: Position
    interacting: bool = False
    alive: bool = True

    def is_interacting_with(self, actor: Any) -> bool:
        return actor is not None and self.alive and self.interacting


@dataclass(frozen=True, slots=True)
class MutationRecord:
    kind: str
    args: tuple
    thread: str


class SimulatedWorld(WorldHost):
    """Single-actor world with NPCs, listeners, commands, and a chat box."""

    def __init__(self, actor: SimActor | None = None, npcs: Iterable[SimNpc] = ()) -> None:
        self.actor = actor
        self._npcs: dict[int, SimNpc] = {n.id: n for n in npcs}
        self._listeners: dict[Channel, list[EventListener]] = defaultdict(list)
        self._commands: dict[str, CommandListener] = {}
        self._lock = threading.RLock()
        self.messages: list[str] = []
        self.mutations: list[MutationRecord] = []
        self.tick_count = 0

    @classmethod
    def populate(cls, script: WorldScript, npc_count: int = 6) -> SimulatedWorld:
        """Build a world with *npc_count* NPCs scattered around the actor."""
        actor = SimActor()
        npcs = []
        for i in range(npc_count):
            nid = 100 + i
            npcs.append(SimNpc(
                id=nid,
                name=script.npc_name(nid),
                position=actor.position.offset(*script.npc_offset(nid)),
                interacting=script.npc_interacting(nid),
            ))
        return cls(actor=actor, npcs=npcs)

    # -- observation --

    def local_actor(self) -> SimActor | None:
        return self.actor

    def npcs(self) -> list[SimNpc]:
        with self._lock:
            return list(self._npcs.values())

    def npc(self, npc_id: int) -> SimNpc | None:
        return self._npcs.get(npc_id)

    # -- subscription --

    def add_listener(self, channel: Channel, listener: EventListener) -> None:
        with self._lock:
            self._listeners[channel].append(listener)

    def remove_listener(self, channel: Channel, listener: EventListener) -> None:
        with self._lock:
            if listener in self._listeners[channel]:
                self._listeners[channel].remove(listener)

    def listener_count(self, channel: Channel | None = None) -> int:
        with self._lock:
            if channel is not None:
                return len(self._listeners[channel])
            return sum(len(v) for v in self._listeners.values())

    def add_command_listener(self, name: str, listener: CommandListener) -> None:
        with self._lock:
            self._commands[name] = listener

    def remove_command_listener(self, name: str) -> None:
        with self._lock:
            self._commands.pop(name, None)

    # -- mutation --

    def set_actor_position(self, position: Position) -> None:
        self._record("set_position", position)
        if self.actor is not None:
            self.actor.position = position

    def notify(self, message: str) -> None:
        self._record("notify", message)
        with self._lock:
            self.messages.append(message)

    def interact(self, kind: str, target_id: int | None = None) -> None:
        self._record("interact", kind, target_id)

    def _record(self, kind: str, *args: Any) -> None:
        with self._lock:
            self.mutations.append(MutationRecord(kind, args, threading.current_thread().name))

    def world_mutations(self) -> list[MutationRecord]:
        """Mutations other than plain notifications."""
        with self._lock:
            return [m for m in self.mutations if m.kind != "notify"]

    # -- event raising (host side) --

    def emit(self, channel: Channel, event: Any = None) -> None:
        with self._lock:
            listeners = list(self._listeners[channel])
        for listener in listeners:
            listener(event)

    def run_command(self, line: str) -> bool:
        """Invoke a console command such as ``rl_reload models/v2.pt``."""
        name, *args = line.split()
        with self._lock:
            listener = self._commands.get(name)
        if listener is None:
            return False
        listener(args)
        return True

    def say(self, sender: str, message: str) -> None:
        self.emit(Channel.CHAT_MESSAGE, ChatMessage(sender, message))

    def tick(self) -> None:
        self.tick_count += 1
        self.emit(Channel.GAME_TICK, self.tick_count)

    def walk_to(self, position: Position) -> None:
        """Host-driven movement, e.g. the player clicking the map."""
        if self.actor is not None:
            self.actor.position = position
        self.emit(Channel.PLAYER_MOVED, position)

    def kill_npc(self, npc_id: int) -> None:
        with self._lock:
            npc = self._npcs.get(npc_id)
            if npc is None:
                return
            npc.alive = False
        self.emit(Channel.ACTOR_DEATH, npc_id)

    def change_inventory(self, item: str = "coins") -> None:
        self.emit(Channel.ITEM_CONTAINER_CHANGED, item)

    def step(self, script: WorldScript) -> None:
        """Advance one scripted tick and raise the events it implies."""
        self.tick()
        tick = self.tick_count
        line = script.chatter(tick)
        if line is not None:
            self.say("npc", line)
        if self.actor is not None:
            stroll = script.stroll(tick)
            if stroll is not None:
                self.walk_to(self.actor.position.offset(*stroll))
            hit = script.damage(tick)
            if hit:
                self.actor.health = max(1, self.actor.health - hit)
                self.change_inventory("food")
        victim = script.victim(tick, [n.id for n in self.npcs() if n.alive])
        if victim is not None:
            self.kill_npc(victim)
