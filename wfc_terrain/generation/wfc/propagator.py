"""
Constraint propagation for Wave Function Collapse.

After a cell's domain shrinks, each neighbor may only keep tiles that are
allowed next to at least one tile the cell could still be. Whenever a
neighbor loses a tile, its own neighbors must be re-checked, so the effect
cascades outward until nothing changes (a fixed point).
"""

from __future__ import annotations

from collections import deque
from typing import Hashable, Iterable

from .errors import Contradiction
from .grid import Grid
from .rules import RuleTable


def propagate(grid: Grid, rules: RuleTable, seed: Hashable) -> set[Hashable]:
    """
    Propagate constraints outward from one cell.

    Returns the set of coordinates whose domain shrank.

    Raises:
        Contradiction: As soon as some domain becomes empty. Restrictions
                       already applied are left in place; undoing them is the
                       caller's business.
    """
    return propagate_many(grid, rules, (seed,))


def propagate_many(grid: Grid, rules: RuleTable, seeds: Iterable[Hashable]) -> set[Hashable]:
    """
    Propagate constraints from multiple cells simultaneously.

    All seeds go into the initial queue and propagation proceeds normally.
    When wavefronts meet, they naturally merge.

    Returns the set of coordinates whose domain shrank.
    """
    queue: deque[Hashable] = deque()
    in_queue: set[Hashable] = set()

    for seed in seeds:
        if grid.is_contradicted(seed):
            raise Contradiction(seed)
        if seed not in in_queue:
            queue.append(seed)
            in_queue.add(seed)

    topology = grid.topology
    changed: set[Hashable] = set()

    while queue:
        coord = queue.popleft()
        in_queue.discard(coord)
        domain = grid.domain_of(coord)

        for direction, neighbor in topology.neighbors(coord):
            # Collapsed neighbors are checked too: a fixed cell can be contradicted
            allowed = rules.allowed_union(direction, domain)
            if not grid.restrict(neighbor, allowed):
                continue

            changed.add(neighbor)
            if grid.is_contradicted(neighbor):
                raise Contradiction(neighbor)

            if neighbor not in in_queue:
                queue.append(neighbor)
                in_queue.add(neighbor)

    return changed
