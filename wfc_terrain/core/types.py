"""Foundational types for wfc-terrain.

This module defines the coordinate and direction types shared by the
solver and the terrain layer:
- Position: Grid coordinates (x, y)
- Direction: The four directions of a square grid
- HexDirection: The six directions of an axial hex grid
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class Direction(Enum):
    """Directions on a square grid.

    Coordinate system is screen-like: x increases east, y increases south,
    (0, 0) is the top-left cell. Members are listed clockwise from north,
    which rotation relies on.
    """

    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"

    @property
    def offset(self) -> tuple[int, int]:
        """Get the (dx, dy) offset for this direction."""
        return _DIRECTION_OFFSETS[self]

    @property
    def opposite(self) -> Direction:
        """Get the opposite direction."""
        return _DIRECTION_OPPOSITES[self]

    def rotated(self, quarter_turns: int) -> Direction:
        """Rotate clockwise by the given number of quarter turns (negative = counter-clockwise)."""
        members = list(Direction)
        return members[(members.index(self) + quarter_turns) % len(members)]


# Lookup tables for Direction properties
_DIRECTION_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}

_DIRECTION_OPPOSITES: dict[Direction, Direction] = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}


class HexDirection(Enum):
    """Directions on a pointy-top hex grid using axial (q, r) coordinates.

    Position.x holds q and Position.y holds r.
    """

    EAST = "east"
    SOUTH_EAST = "south_east"
    SOUTH_WEST = "south_west"
    WEST = "west"
    NORTH_WEST = "north_west"
    NORTH_EAST = "north_east"

    @property
    def offset(self) -> tuple[int, int]:
        """Get the (dq, dr) offset for this direction."""
        return _HEX_OFFSETS[self]

    @property
    def opposite(self) -> HexDirection:
        """Get the opposite direction."""
        members = list(HexDirection)
        return members[(members.index(self) + 3) % 6]


_HEX_OFFSETS: dict[HexDirection, tuple[int, int]] = {
    HexDirection.EAST: (1, 0),
    HexDirection.SOUTH_EAST: (0, 1),
    HexDirection.SOUTH_WEST: (-1, 1),
    HexDirection.WEST: (-1, 0),
    HexDirection.NORTH_WEST: (0, -1),
    HexDirection.NORTH_EAST: (1, -1),
}


class Position(NamedTuple):
    """A position in a grid.

    x is the column and y the row; row 0 is the top of the map.
    """

    x: int
    y: int

    def __add__(self, other: object) -> Position:
        """Add a direction offset or tuple to this position."""
        if isinstance(other, (Direction, HexDirection)):
            dx, dy = other.offset
            return Position(self.x + dx, self.y + dy)
        if isinstance(other, tuple) and len(other) == 2:
            return Position(self.x + other[0], self.y + other[1])
        return NotImplemented

    def in_bounds(self, width: int, height: int) -> bool:
        """Check if position is within grid bounds (0 to width-1, 0 to height-1)."""
        return 0 <= self.x < width and 0 <= self.y < height

    def wrapped(self, width: int, height: int) -> Position:
        """Wrap the position onto a torus of the given size."""
        return Position(self.x % width, self.y % height)
