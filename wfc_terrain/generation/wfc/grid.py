"""
Grid representation for Wave Function Collapse.

The Grid is the "wave function" - one domain per coordinate, holding the
tiles that cell could still become. Each cell is in superposition
(multiple possibilities) until it collapses to a single definite tile.

This is where we track the state of one solve attempt. The grid only ever
shrinks domains, one coordinate at a time; spreading the consequences to
neighbors is the propagator's job.

For backtracking the grid can keep an undo trail: checkpoint() marks the
trail, rollback() restores every domain changed since the last mark.
"""

from __future__ import annotations

import heapq
from types import MappingProxyType
from typing import Hashable, Iterable, Mapping

from .topology import Topology


class Grid:
    """
    Mutable map from coordinate to domain (frozenset of tile ids).

    Initially all cells can be any tile (maximum superposition).
    The grid caches how many cells are collapsed and how many are empty,
    and keeps a lazy min-entropy heap so the most constrained cell can be
    found without scanning the whole grid.
    """

    def __init__(
        self,
        topology: Topology,
        tile_ids: Iterable[str],
        max_checkpoints: int | None = None,
    ):
        """
        Create a grid with all cells in maximum superposition.

        Args:
            topology: Provides the coordinates and their canonical order
            tile_ids: All possible tile IDs (initial superposition)
            max_checkpoints: How many checkpoints to keep; older ones are
                             discarded (None = unbounded)
        """
        self.topology = topology
        self.tile_ids = frozenset(tile_ids)
        self.max_checkpoints = max_checkpoints

        self._coords = list(topology.coords())
        self._index: dict[Hashable, int] = {coord: i for i, coord in enumerate(self._coords)}
        self.reset()

    def reset(self) -> None:
        """Reset all cells to maximum superposition and drop all checkpoints."""
        full = self.tile_ids
        self._domains: dict[Hashable, frozenset[str]] = {coord: full for coord in self._coords}
        self._collapsed_count = len(self._coords) if len(full) == 1 else 0
        self._empty_count = len(self._coords) if not full else 0

        # Entries are (domain size, canonical index, coord); listed in index order
        # with equal sizes, so the list is already a valid heap
        self._heap: list[tuple[int, int, Hashable]] = (
            [(len(full), i, coord) for i, coord in enumerate(self._coords)]
            if len(full) > 1 else []
        )

        self._trail: list[tuple[Hashable, frozenset[str]]] = []
        self._marks: list[int] = []

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __contains__(self, coord: object) -> bool:
        return coord in self._index

    def __len__(self) -> int:
        return len(self._coords)

    @property
    def size(self) -> int:
        return len(self._coords)

    @property
    def collapsed_count(self) -> int:
        """Number of cells holding exactly one tile."""
        return self._collapsed_count

    def coords(self) -> list[Hashable]:
        """All coordinates in canonical order."""
        return self._coords

    def canonical(self, coord: Hashable) -> Hashable:
        """Return the grid's own key for a coordinate (e.g. a Position for an (x, y) tuple)."""
        return self._coords[self._index[coord]]

    def order(self, coord: Hashable) -> int:
        """Canonical index of a coordinate."""
        return self._index[coord]

    def domain_of(self, coord: Hashable) -> frozenset[str]:
        """The tiles this cell could still become."""
        return self._domains[coord]

    def tile_at(self, coord: Hashable) -> str | None:
        """The chosen tile ID, or None if not yet collapsed."""
        domain = self._domains[coord]
        if len(domain) == 1:
            return next(iter(domain))
        return None

    def is_contradicted(self, coord: Hashable) -> bool:
        """A cell is contradicted when no tile is left for it."""
        return not self._domains[coord]

    def has_contradiction(self) -> bool:
        """Check if any cell is contradicted."""
        return self._empty_count > 0

    def is_fully_collapsed(self) -> bool:
        """Check if all cells have collapsed."""
        return self._collapsed_count == len(self._coords)

    def min_entropy_coord(self) -> Hashable | None:
        """
        Find the uncollapsed cell with minimum entropy (fewest possibilities).

        Ties go to the lowest canonical index, so the choice is reproducible.
        Returns None if no cell has more than one possibility left.
        """
        heap = self._heap
        while heap:
            size, _, coord = heap[0]
            current = len(self._domains[coord])
            if current > 1 and current == size:
                return coord
            heapq.heappop(heap)  # Stale entry
        return None

    def snapshot(self) -> dict[Hashable, frozenset[str]]:
        """Copy of every domain, keyed by coordinate in canonical order."""
        return dict(self._domains)

    def result(self) -> Mapping[Hashable, str]:
        """
        Read-only mapping from every coordinate to its tile.

        Raises:
            ValueError: If some cell is not collapsed
        """
        if not self.is_fully_collapsed():
            raise ValueError(
                f"Grid is not fully collapsed ({self._collapsed_count}/{len(self._coords)} cells)"
            )
        return MappingProxyType({coord: next(iter(self._domains[coord])) for coord in self._coords})

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def restrict(self, coord: Hashable, allowed: frozenset[str] | set[str]) -> bool:
        """
        Constrain this cell to only the given possibilities.

        Returns True if the cell changed (lost possibilities).
        Never adds a possibility.
        """
        domain = self._domains[coord]
        narrowed = domain & allowed
        if len(narrowed) == len(domain):
            return False
        self._set(coord, frozenset(narrowed))
        return True

    def collapse(self, coord: Hashable, tile_id: str) -> None:
        """
        Force this cell to a specific tile.

        If the tile is no longer possible here the cell becomes empty
        (a contradiction) rather than gaining the tile back.
        """
        self.restrict(coord, frozenset((tile_id,)))

    def _set(self, coord: Hashable, domain: frozenset[str]) -> None:
        old = self._domains[coord]
        if self._marks:
            self._trail.append((coord, old))
        self._count(old, -1)
        self._count(domain, +1)
        self._domains[coord] = domain
        if len(domain) > 1:
            heapq.heappush(self._heap, (len(domain), self._index[coord], coord))

    def _count(self, domain: frozenset[str], delta: int) -> None:
        if len(domain) == 1:
            self._collapsed_count += delta
        elif not domain:
            self._empty_count += delta

    # -------------------------------------------------------------------------
    # Backtracking
    # -------------------------------------------------------------------------

    @property
    def checkpoint_depth(self) -> int:
        """Number of checkpoints that can still be rolled back to."""
        return len(self._marks)

    def checkpoint(self) -> None:
        """Mark the current state so rollback() can return to it."""
        self._marks.append(len(self._trail))

        if self.max_checkpoints is not None and len(self._marks) > self.max_checkpoints:
            # Forget the oldest mark and the undo entries only it needed
            self._marks.pop(0)
            cut = self._marks[0] if self._marks else len(self._trail)
            del self._trail[:cut]
            self._marks = [mark - cut for mark in self._marks]

    def rollback(self) -> set[Hashable]:
        """
        Restore every domain changed since the last checkpoint and drop it.

        Returns the coordinates that were restored.

        Raises:
            IndexError: If there is no checkpoint
        """
        mark = self._marks.pop()
        restored: set[Hashable] = set()
        for coord, old in reversed(self._trail[mark:]):
            current = self._domains[coord]
            self._count(current, -1)
            self._count(old, +1)
            self._domains[coord] = old
            if len(old) > 1:
                heapq.heappush(self._heap, (len(old), self._index[coord], coord))
            restored.add(coord)
        del self._trail[mark:]
        return restored
