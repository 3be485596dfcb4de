"""State encoder: turns snapshots and chat messages into model input bytes.

Snapshot wire format (UTF-8)::

    health=<h>;location=WorldPoint(x=<x>, y=<y>, plane=<p>);nearby_npcs=<npc>;<npc>...

where each ``<npc>`` is ``NPC[id=<id>,name=<name>,location=WorldPoint(...)]``.
Structurally equal snapshots always produce byte-identical output.
"""

from __future__ import annotations

import xxhash

from policy_loop.core.snapshot import WorldSnapshot


def encode_snapshot(snapshot: WorldSnapshot) -> bytes:
    npcs = ";".join(
        f"NPC[id={n.id},name={n.name},location={n.position}]"
        for n in snapshot.nearby
    )
    text = f"health={snapshot.health};location={snapshot.position};nearby_npcs={npcs}"
    return text.encode("utf-8")


def encode_message(message: str) -> bytes:
    return message.encode("utf-8")


def encode(trigger: WorldSnapshot | str) -> bytes:
    """Encode either trigger kind."""
    if isinstance(trigger, WorldSnapshot):
        return encode_snapshot(trigger)
    if isinstance(trigger, str):
        return encode_message(trigger)
    raise TypeError(f"Cannot encode trigger of type {type(trigger).__name__}")


def input_digest(data: bytes) -> str:
    """Short stable fingerprint of an encoded input for decision logs."""
    return xxhash.xxh64(data).hexdigest()
