"""
Collapse strategy for Wave Function Collapse.

Decides which cell to observe next (minimum entropy) and which tile it
becomes (weighted random choice). All randomness comes from the random
generator passed in by the caller, so a fixed seed reproduces the same map.
"""

from __future__ import annotations

import random
from collections import Counter
from typing import Hashable, Iterable, Mapping

from .grid import Grid
from .rules import RuleTable


def select_cell(grid: Grid) -> Hashable | None:
    """
    Pick the uncollapsed cell with the fewest possibilities.

    Ties are broken by canonical order (row-major on square grids), which
    keeps results reproducible for a fixed seed. Returns None when every
    cell is collapsed.
    """
    return grid.min_entropy_coord()


def select_tile(
    domain: Iterable[str],
    rng: random.Random,
    weights: Mapping[str, float],
) -> str:
    """
    Draw one tile from a domain, proportionally to its weight.

    Candidates are taken in the order of `weights` (catalog order), never in
    set order, so the draw does not depend on string hashing.

    Raises:
        ValueError: If the domain is empty or holds a tile without a weight
    """
    domain = frozenset(domain)
    if not domain:
        raise ValueError("Cannot select a tile from an empty domain")
    candidates = [tile_id for tile_id in weights if tile_id in domain]
    if len(candidates) != len(domain):
        missing = sorted(domain.difference(weights))
        raise ValueError(f"No weight for tiles {missing}")

    if len(candidates) == 1:
        return candidates[0]
    return rng.choices(candidates, weights=[weights[t] for t in candidates], k=1)[0]


class CollapseStrategy:
    """
    Minimum-entropy cell selection with weighted, clustering-aware tile choice.

    Self-affinity boosts weights when neighboring cells have the same tile,
    creating natural clustering behavior.
    """

    def __init__(self, rules: RuleTable):
        self.rules = rules
        self._base_weights = rules.catalog.weights
        self._clustering = any(tile.self_affinity != 1.0 for tile in rules.catalog)

    def select_cell(self, grid: Grid) -> Hashable | None:
        return select_cell(grid)

    def weights_for(self, grid: Grid, coord: Hashable) -> dict[str, float]:
        """
        Effective weights for the tiles still possible at coord, in catalog order.

        Boost: base_weight * self_affinity^(collapsed neighbors with the same tile)
        """
        domain = grid.domain_of(coord)
        weights = {t: w for t, w in self._base_weights.items() if t in domain}
        if not self._clustering:
            return weights

        # Count collapsed neighbors per tile type
        same_neighbors: Counter[str] = Counter()
        for _, neighbor in grid.topology.neighbors(coord):
            neighbor_tile = grid.tile_at(neighbor)
            if neighbor_tile is not None:
                same_neighbors[neighbor_tile] += 1

        for tile_id in weights:
            count = same_neighbors.get(tile_id, 0)
            if count:
                weights[tile_id] *= self.rules.self_affinity(tile_id) ** count
        return weights

    def select_tile(self, grid: Grid, coord: Hashable, rng: random.Random) -> str:
        """Pick the tile a cell collapses to."""
        return select_tile(grid.domain_of(coord), rng, self.weights_for(grid, coord))
