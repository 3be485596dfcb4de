"""Core value types: Position, NearbyEntity."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Position:
    """Immutable world coordinate (x, y, plane)."""

    x: int = 0
    y: int = 0
    plane: int = 0

    def offset(self, dx: int = 0, dy: int = 0) -> Position:
        return Position(self.x + dx, self.y + dy, self.plane)

    def __str__(self) -> str:
        return f"WorldPoint(x={self.x}, y={self.y}, plane={self.plane})"


ORIGIN = Position(0, 0, 0)


@dataclass(frozen=True, slots=True)
class NearbyEntity:
    """An NPC interacting with the local actor at capture time."""

    id: int
    name: str
    position: Position
