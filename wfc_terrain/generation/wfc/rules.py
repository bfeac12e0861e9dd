"""
Adjacency rule table for Wave Function Collapse.

The rule table is derived once from a tile catalog and a topology:
for every direction and every tile, the frozen set of tiles allowed on
that side. The rules never change after building, so one table can be
shared by every solve attempt and by solvers on other threads.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Iterable

from .errors import ConfigError
from .tile import Tile, TileCatalog
from .topology import Topology

logger = logging.getLogger(__name__)

SocketPredicate = Callable[[str, str], bool]

# Distinct (direction, domain) unions remembered per table
UNION_CACHE_SIZE = 4096


def sockets_match(socket_a: str, socket_b: str) -> bool:
    """Default predicate: facing sockets must carry the same label."""
    return socket_a == socket_b


def mirrored_sockets_match(socket_a: str, socket_b: str) -> bool:
    """
    Predicate for asymmetric edge labels read clockwise around each tile.

    Two facing edges are read in opposite senses, so "ab" meets "ba".
    """
    return socket_a == socket_b[::-1]


class RuleTable:
    """
    Which tiles may sit in direction d relative to tile t, for every (d, t).

    Built with RuleTable.build() (or build_rule_table()); the constructor
    takes already-validated data.

    The only mutable part is the bounded LRU cache behind allowed_union(),
    which is thread-safe; it holds at most UNION_CACHE_SIZE entries.
    """

    def __init__(
        self,
        catalog: TileCatalog,
        directions: Iterable[Any],
        allowed: dict[tuple[Any, str], frozenset[str]],
    ):
        self.catalog = catalog
        self.directions = tuple(directions)
        self._allowed = allowed
        self._order = {tile_id: i for i, tile_id in enumerate(catalog.ids)}
        self._union = functools.lru_cache(maxsize=UNION_CACHE_SIZE)(self._compute_union)

    @classmethod
    def build(
        cls,
        catalog: TileCatalog,
        topology: Topology,
        predicate: SocketPredicate = sockets_match,
        strict_sockets: bool = True,
    ) -> RuleTable:
        """
        Derive the rule table from a catalog.

        Args:
            catalog: The tiles
            topology: Provides the direction set and the opposite of each direction
            predicate: Compatibility test for two facing socket labels
            strict_sockets: If True, a socket that matches no tile at all is a
                            ConfigError. If False, it is allowed and the tile can
                            then only sit where it has no neighbor on that side
                            (the map border).

        Raises:
            ConfigError: On unknown ids or directions, asymmetric rules, or
                         dangling sockets in strict mode
        """
        directions = tuple(topology.directions)
        if not directions:
            raise ConfigError("Topology has no directions")
        direction_set = set(directions)

        for tile in catalog:
            _validate_tile(tile, catalog, direction_set)

        def compatible(tile_a: Tile, direction: Any, tile_b: Tile) -> bool:
            explicit = tile_a.get_allowed_neighbors(direction)
            if explicit is not None:
                return tile_b.id in explicit
            socket_a = tile_a.socket(direction)
            socket_b = tile_b.socket(topology.opposite(direction))
            if socket_a is None or socket_b is None:
                return False
            return predicate(socket_a, socket_b)

        allowed: dict[tuple[Any, str], frozenset[str]] = {}
        for direction in directions:
            for tile_a in catalog:
                allowed[(direction, tile_a.id)] = frozenset(
                    tile_b.id for tile_b in catalog if compatible(tile_a, direction, tile_b)
                )

        # Compatibility must read the same from both sides of an edge
        for direction in directions:
            opposite = topology.opposite(direction)
            for tile_a in catalog:
                for tile_b_id in allowed[(direction, tile_a.id)]:
                    if tile_a.id not in allowed[(opposite, tile_b_id)]:
                        raise ConfigError(
                            f"Asymmetric rule: '{tile_b_id}' may sit {_name(direction)} of "
                            f"'{tile_a.id}' but '{tile_a.id}' may not sit "
                            f"{_name(opposite)} of '{tile_b_id}'"
                        )

        for tile in catalog:
            if not tile.uses_sockets:
                continue
            for direction in directions:
                if tile.get_allowed_neighbors(direction) is not None:
                    continue
                if allowed[(direction, tile.id)]:
                    continue
                message = (
                    f"Tile '{tile.id}' socket {tile.socket(direction)!r} on its "
                    f"{_name(direction)} side matches no tile"
                )
                if strict_sockets:
                    raise ConfigError(message)
                logger.warning(f"{message}; it can only sit on the {_name(direction)} map edge")

        logger.debug(
            f"Built rule table | tiles={len(catalog)} | directions={len(directions)} | "
            f"rules={sum(len(ids) for ids in allowed.values())}"
        )
        return cls(catalog, directions, allowed)

    @property
    def tile_ids(self) -> tuple[str, ...]:
        """Tile ids in catalog order."""
        return self.catalog.ids

    def allowed(self, direction: Any, tile_id: str) -> frozenset[str]:
        """Tiles that may sit in `direction` relative to `tile_id`."""
        return self._allowed[(direction, tile_id)]

    def allowed_union(self, direction: Any, domain: frozenset[str]) -> frozenset[str]:
        """
        Tiles allowed in `direction` of a cell that could still be any tile in `domain`.

        This unions the allowed neighbors of all tiles in the domain. Results
        are cached; domains repeat a lot during a solve.
        """
        return self._union(direction, domain)

    def _compute_union(self, direction: Any, domain: frozenset[str]) -> frozenset[str]:
        allowed: set[str] = set()
        for tile_id in domain:
            allowed |= self._allowed[(direction, tile_id)]
        return frozenset(allowed)

    def compatible(self, tile_a: str, direction: Any, tile_b: str) -> bool:
        """Check whether tile_b may sit in `direction` of tile_a."""
        return tile_b in self._allowed[(direction, tile_a)]

    def weight(self, tile_id: str) -> float:
        return self.catalog[tile_id].weight

    def self_affinity(self, tile_id: str) -> float:
        return self.catalog[tile_id].self_affinity

    def order(self, tile_id: str) -> int:
        """Position of a tile in catalog order."""
        return self._order[tile_id]


def build_rule_table(
    catalog: TileCatalog,
    topology: Topology,
    predicate: SocketPredicate = sockets_match,
    strict_sockets: bool = True,
) -> RuleTable:
    """Build a RuleTable. See RuleTable.build()."""
    return RuleTable.build(catalog, topology, predicate, strict_sockets)


def _validate_tile(tile: Tile, catalog: TileCatalog, directions: set[Any]) -> None:
    for direction, neighbor_ids in tile.allowed_neighbors.items():
        if direction not in directions:
            raise ConfigError(f"Tile '{tile.id}' names unknown direction {direction!r}")
        unknown = sorted(neighbor_ids - set(catalog.ids))
        if unknown:
            raise ConfigError(f"Tile '{tile.id}' allows unknown tiles {unknown}")
    for direction in tile.sockets:
        if direction not in directions:
            raise ConfigError(f"Tile '{tile.id}' has a socket on unknown direction {direction!r}")


def _name(direction: Any) -> str:
    return str(getattr(direction, "value", direction))
