"""
Neighbor topologies for Wave Function Collapse.

The solver never hard-codes grid offsets. It asks a Topology "for this
coordinate, which (direction, neighbor) pairs exist?", so the same
propagator and solver loop serve square grids, hex grids and arbitrary
graph-shaped maps.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Hashable, Iterator, Mapping, Sequence

from wfc_terrain.core.types import Direction, HexDirection, Position
from .errors import ConfigError


class Topology(ABC):
    """
    Neighbor enumeration for a finite set of coordinates.

    coords() returns every coordinate in canonical order. The order is what
    deterministic tie-breaking uses, so it must not depend on hashing.
    """

    directions: tuple[Any, ...] = ()

    @abstractmethod
    def coords(self) -> Sequence[Hashable]:
        """All coordinates, in canonical order."""

    @abstractmethod
    def neighbors(self, coord: Hashable) -> Iterator[tuple[Any, Hashable]]:
        """
        Yield (direction, neighbor) pairs for a coordinate.

        Direction is FROM the input coordinate TO the neighbor.
        """

    @abstractmethod
    def contains(self, coord: Hashable) -> bool:
        """Check whether a coordinate belongs to this topology."""

    def opposite(self, direction: Any) -> Any:
        """Get the direction pointing back along the same edge."""
        return direction.opposite

    def missing_directions(self, coord: Hashable) -> list[Any]:
        """Directions in which a coordinate has no neighbor (the map edge)."""
        present = {direction for direction, _ in self.neighbors(coord)}
        return [d for d in self.directions if d not in present]

    def direction_from_name(self, name: str) -> Any:
        """Look up a direction by name, as written in catalog files."""
        for direction in self.directions:
            if getattr(direction, "value", direction) == name:
                return direction
        raise ConfigError(f"Unknown direction '{name}' for {type(self).__name__}")

    @property
    def size(self) -> int:
        return len(self.coords())


class SquareTopology(Topology):
    """
    Rectangular grid with 4-neighborhood.

    Coordinates are Position(x, y), listed in row-major order.
    With periodic=True the grid wraps around on both axes (a torus), so
    every cell has all four neighbors and the output tiles seamlessly.
    """

    directions = tuple(Direction)

    def __init__(self, width: int, height: int, periodic: bool = False):
        if width <= 0 or height <= 0:
            raise ConfigError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.periodic = periodic
        self._coords = [Position(x, y) for y in range(height) for x in range(width)]

    def coords(self) -> list[Position]:
        return self._coords

    def contains(self, coord: Hashable) -> bool:
        return _in_rect(coord, self.width, self.height)

    def neighbors(self, coord: Position) -> Iterator[tuple[Direction, Position]]:
        for direction in Direction:
            neighbor = coord + direction
            if self.periodic:
                yield direction, neighbor.wrapped(self.width, self.height)
            elif neighbor.in_bounds(self.width, self.height):
                yield direction, neighbor


class HexTopology(Topology):
    """
    Parallelogram-shaped hex grid in axial coordinates, 6-neighborhood.

    Coordinates are Position(q, r) with 0 <= q < width and 0 <= r < height.
    """

    directions = tuple(HexDirection)

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ConfigError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._coords = [Position(q, r) for r in range(height) for q in range(width)]

    def coords(self) -> list[Position]:
        return self._coords

    def contains(self, coord: Hashable) -> bool:
        return _in_rect(coord, self.width, self.height)

    def neighbors(self, coord: Position) -> Iterator[tuple[HexDirection, Position]]:
        for direction in HexDirection:
            neighbor = coord + direction
            if neighbor.in_bounds(self.width, self.height):
                yield direction, neighbor


class GraphTopology(Topology):
    """
    Arbitrary map given as labelled edges.

    Args:
        adjacency: node -> {direction label -> neighbor node}. Node order is
                   the canonical order.
        opposites: direction label -> label of the reverse edge

    Every edge must be mirrored: if b is a's neighbor via d, then a must be
    b's neighbor via opposites[d].
    """

    def __init__(
        self,
        adjacency: Mapping[Hashable, Mapping[Any, Hashable]],
        opposites: Mapping[Any, Any],
    ):
        if not adjacency:
            raise ConfigError("Graph topology has no nodes")

        self._adjacency = {node: dict(edges) for node, edges in adjacency.items()}
        self._opposites = dict(opposites)
        self._coords = list(self._adjacency)
        self.directions = tuple(self._opposites)

        for node, edges in self._adjacency.items():
            for direction, neighbor in edges.items():
                if direction not in self._opposites:
                    raise ConfigError(f"Edge label {direction!r} at {node!r} has no opposite")
                if neighbor not in self._adjacency:
                    raise ConfigError(f"Node {node!r} links to unknown node {neighbor!r}")
                back = self._adjacency[neighbor].get(self._opposites[direction])
                if back != node:
                    raise ConfigError(
                        f"Edge {node!r} -{direction!r}-> {neighbor!r} is not mirrored"
                    )

    def coords(self) -> list[Hashable]:
        return self._coords

    def contains(self, coord: Hashable) -> bool:
        return coord in self._adjacency

    def neighbors(self, coord: Hashable) -> Iterator[tuple[Any, Hashable]]:
        yield from self._adjacency[coord].items()

    def opposite(self, direction: Any) -> Any:
        return self._opposites[direction]


def _in_rect(coord: Hashable, width: int, height: int) -> bool:
    """Check that coord is an (x, y) integer pair inside a width x height rectangle."""
    if not isinstance(coord, tuple) or len(coord) != 2:
        return False
    if not all(isinstance(value, int) for value in coord):
        return False
    return Position(*coord).in_bounds(width, height)
