"""
Tile definition for Wave Function Collapse.

A Tile is a discrete unit that can occupy a cell in the grid.
Each tile knows what other tiles can be adjacent to it in each direction,
either through an explicit neighbor list or through socket labels on its
edges. This is the core data that drives the constraint propagation.

Tiles are immutable: the helpers here return new tiles instead of
modifying existing ones, so a built catalog can be shared by every solver.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Hashable, Iterable, Iterator, Mapping

from wfc_terrain.core.types import Direction
from .errors import ConfigError


class Symmetry(Enum):
    """
    Rotational symmetry of a socket tile.

    Decides how many rotated variants rotation expansion creates:
    INVARIANT keeps the tile as is, HALF_TURN adds the quarter-turn variant
    (the tile looks the same after 180 degrees), ASYMMETRIC adds all four.
    """
    INVARIANT = "invariant"
    HALF_TURN = "half_turn"
    ASYMMETRIC = "asymmetric"

    @property
    def variants(self) -> int:
        return {Symmetry.INVARIANT: 1, Symmetry.HALF_TURN: 2, Symmetry.ASYMMETRIC: 4}[self]


@dataclass(frozen=True)
class Tile:
    """
    A tile type that can appear in the generated output.

    Attributes:
        id: Unique identifier for this tile type (e.g., "water", "grass")
        color: RGB tuple used by previews
        weight: Probability weight - higher means more common in output.
                When collapsing a cell, tiles are chosen proportionally to their weights.
        self_affinity: How much this tile "likes" being next to itself.
                      During collapse, weight is multiplied by self_affinity^(number of same-type neighbors).
                      1.0 = neutral (default), 2.0 = strongly clusters, 0.5 = avoids clustering.
        sockets: For each direction, the label on that edge. Two socket tiles may touch
                 when their facing labels satisfy the catalog's compatibility predicate.
        allowed_neighbors: For each direction, the set of tile IDs that can be adjacent.
                          Takes precedence over sockets for the directions it names.
        symmetry: Rotational symmetry, used by rotation expansion
        base_id: For rotated variants, the id of the tile they were made from
        rotation: For rotated variants, quarter turns clockwise from the base tile
    """
    id: str
    color: tuple[int, int, int] = (128, 128, 128)  # Default gray
    weight: float = 1.0
    self_affinity: float = 1.0
    sockets: Mapping[Hashable, str] = field(default_factory=dict)
    allowed_neighbors: Mapping[Hashable, frozenset[str]] = field(default_factory=dict)
    symmetry: Symmetry = Symmetry.INVARIANT
    base_id: str | None = None
    rotation: int = 0

    def __post_init__(self):
        # Freeze the mappings so a tile can be shared safely
        object.__setattr__(self, "sockets", MappingProxyType(dict(self.sockets)))
        object.__setattr__(
            self,
            "allowed_neighbors",
            MappingProxyType({d: frozenset(ids) for d, ids in self.allowed_neighbors.items()}),
        )

    @property
    def uses_sockets(self) -> bool:
        return bool(self.sockets)

    def get_allowed_neighbors(self, direction: Hashable) -> frozenset[str] | None:
        """Get the explicit neighbor list for a direction, or None if the tile has none."""
        return self.allowed_neighbors.get(direction)

    def socket(self, direction: Hashable) -> str | None:
        """Get the socket label on the given edge, or None."""
        return self.sockets.get(direction)

    def with_neighbor(self, direction: Hashable, neighbor_id: str) -> Tile:
        """Return a new tile that also allows neighbor_id in the given direction."""
        neighbors = dict(self.allowed_neighbors)
        neighbors[direction] = neighbors.get(direction, frozenset()) | {neighbor_id}
        return dataclasses.replace(self, allowed_neighbors=neighbors)

    def rotated(self, quarter_turns: int) -> Tile:
        """
        Return this tile rotated clockwise by the given number of quarter turns.

        Only socket tiles on a square grid can be rotated: the socket that
        faced direction d now faces d rotated by the same amount.
        """
        if self.allowed_neighbors:
            raise ConfigError(f"Tile '{self.id}' uses explicit neighbors and cannot be rotated")
        if not all(isinstance(d, Direction) for d in self.sockets):
            raise ConfigError(f"Tile '{self.id}' has non-square sockets and cannot be rotated")

        turns = quarter_turns % 4
        base_id = self.base_id or self.id
        rotation = (self.rotation + turns) % 4
        return dataclasses.replace(
            self,
            id=base_id if rotation == 0 else f"{base_id}@{rotation * 90}",
            sockets={d.rotated(turns): label for d, label in self.sockets.items()},
            base_id=base_id,
            rotation=rotation,
        )


def make_bidirectional_rule(
    tiles: dict[str, Tile],
    tile_a_id: str,
    tile_b_id: str,
    directions: Iterable[Any] = Direction,
    opposite: Callable[[Any], Any] = lambda direction: direction.opposite,
) -> None:
    """
    Create a bidirectional adjacency rule: A and B can be neighbors in all directions.

    This is a convenience function for defining symmetric rules.
    If A can have B to its north, then B can have A to its south, etc.
    Replaces the affected entries of `tiles` with updated tiles.

    Pass a topology's `directions` and `opposite` to build rules for
    grids other than the square one.
    """
    for direction in directions:
        tiles[tile_a_id] = tiles[tile_a_id].with_neighbor(direction, tile_b_id)
        tiles[tile_b_id] = tiles[tile_b_id].with_neighbor(opposite(direction), tile_a_id)


def expand_rotations(tiles: Iterable[Tile]) -> list[Tile]:
    """
    Expand socket tiles into their distinct rotated variants.

    The number of variants comes from each tile's symmetry. A HALF_TURN tile
    must really look the same after half a turn, otherwise the missing
    variants would silently be lost.
    """
    expanded: list[Tile] = []
    for tile in tiles:
        if tile.symmetry is Symmetry.INVARIANT:
            expanded.append(tile)
            continue

        if tile.symmetry is Symmetry.HALF_TURN and tile.rotated(2).sockets != tile.sockets:
            raise ConfigError(
                f"Tile '{tile.id}' is declared half-turn symmetric but its sockets "
                "change under a half turn"
            )

        for turns in range(tile.symmetry.variants):
            expanded.append(tile.rotated(turns))

    return expanded


class TileCatalog:
    """
    Immutable registry of tiles, in declaration order.

    Declaration order matters: it is the canonical order used whenever
    tiles must be ordered deterministically (e.g., weighted selection).
    """

    def __init__(self, tiles: Iterable[Tile]):
        tiles = tuple(tiles)
        if not tiles:
            raise ConfigError("Tile catalog has no tiles")

        self._tiles: dict[str, Tile] = {}
        for tile in tiles:
            if tile.id in self._tiles:
                raise ConfigError(f"Duplicate tile id '{tile.id}'")
            if not tile.weight > 0:
                raise ConfigError(f"Tile '{tile.id}' has non-positive weight {tile.weight}")
            if not tile.self_affinity > 0:
                raise ConfigError(
                    f"Tile '{tile.id}' has non-positive self_affinity {tile.self_affinity}"
                )
            self._tiles[tile.id] = tile

    @classmethod
    def with_rotations(cls, tiles: Iterable[Tile]) -> TileCatalog:
        """Build a catalog holding every rotated variant of the given tiles."""
        return cls(expand_rotations(tiles))

    @property
    def ids(self) -> tuple[str, ...]:
        """Tile ids in declaration order."""
        return tuple(self._tiles)

    @property
    def weights(self) -> dict[str, float]:
        return {tile_id: tile.weight for tile_id, tile in self._tiles.items()}

    def get(self, tile_id: str) -> Tile | None:
        return self._tiles.get(tile_id)

    def __getitem__(self, tile_id: str) -> Tile:
        return self._tiles[tile_id]

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._tiles

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles.values())

    def __len__(self) -> int:
        return len(self._tiles)

    def __repr__(self) -> str:
        return f"TileCatalog({list(self._tiles)})"
