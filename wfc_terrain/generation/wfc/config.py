"""
Solver configuration for Wave Function Collapse.

SolverConfig is everything a caller hands to solve(): grid size and shape,
tile catalog, fixed cells, seed and the various budgets. It validates
itself on construction and raises ConfigError before any solving starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Hashable, Mapping

from .errors import ConfigError
from .rules import SocketPredicate, sockets_match
from .tile import TileCatalog
from .topology import HexTopology, SquareTopology, Topology


class EdgeMode(Enum):
    """
    How cells on the map edge treat their missing neighbors.

    OPEN: anything goes, the edge imposes no constraint.
    BORDER: the missing neighbor counts as `border_tile`, so edge cells may
            only hold tiles compatible with it on that side.
    """
    OPEN = "open"
    BORDER = "border"


TOPOLOGIES = ("square", "hex")


@dataclass(frozen=True)
class SolverConfig:
    """
    Input configuration for one generation request.

    Attributes:
        width: Grid width in cells
        height: Grid height in cells
        catalog: The tiles to place
        topology: "square", "hex", or a Topology instance (width/height are
                  then ignored)
        periodic: Wrap a square grid around on both axes
        fixed_cells: Coordinates forced to a tile before solving starts
        seed: Random seed for reproducibility (None = random, reported in the result)
        max_retries: Restarts allowed after a contradiction (attempts = retries + 1)
        max_cycles: Budget of collapse cycles across all attempts (None = unlimited)
        time_limit: Wall-clock budget in seconds (None = unlimited)
        edge_mode: See EdgeMode
        border_tile: Tile standing in for missing neighbors when edge_mode is BORDER
        backtrack_depth: Decisions remembered for backtracking (0 = restart only)
        max_backtracks: Backtracks allowed per attempt before a full restart
        predicate: Socket compatibility predicate for the rule table
        strict_sockets: Treat sockets matching nothing as a ConfigError
    """
    width: int
    height: int
    catalog: TileCatalog
    topology: str | Topology = "square"
    periodic: bool = False
    fixed_cells: Mapping[Hashable, str] = field(default_factory=dict)
    seed: int | None = None
    max_retries: int = 10
    max_cycles: int | None = None
    time_limit: float | None = None
    edge_mode: EdgeMode = EdgeMode.OPEN
    border_tile: str | None = None
    backtrack_depth: int = 0
    max_backtracks: int = 100
    predicate: SocketPredicate = sockets_match
    strict_sockets: bool = True

    def __post_init__(self):
        object.__setattr__(self, "fixed_cells", MappingProxyType(dict(self.fixed_cells)))

        if isinstance(self.topology, str):
            if self.topology not in TOPOLOGIES:
                raise ConfigError(f"Unknown topology '{self.topology}', expected one of {TOPOLOGIES}")
            if not _positive_int(self.width) or not _positive_int(self.height):
                raise ConfigError(
                    f"Grid dimensions must be positive integers, got {self.width}x{self.height}"
                )
            if self.periodic and self.topology != "square":
                raise ConfigError("Only square grids can be periodic")
        elif not isinstance(self.topology, Topology):
            raise ConfigError(f"topology must be a name or a Topology, got {self.topology!r}")

        if not isinstance(self.catalog, TileCatalog):
            raise ConfigError("catalog must be a TileCatalog")

        if self.max_retries < 0:
            raise ConfigError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.max_cycles is not None and self.max_cycles <= 0:
            raise ConfigError(f"max_cycles must be positive, got {self.max_cycles}")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ConfigError(f"time_limit must be positive, got {self.time_limit}")
        if self.backtrack_depth < 0:
            raise ConfigError(f"backtrack_depth must be >= 0, got {self.backtrack_depth}")
        if self.max_backtracks < 0:
            raise ConfigError(f"max_backtracks must be >= 0, got {self.max_backtracks}")

        if self.edge_mode is EdgeMode.BORDER:
            if self.border_tile is None:
                raise ConfigError("edge_mode BORDER needs a border_tile")
            if self.border_tile not in self.catalog:
                raise ConfigError(f"Unknown border tile '{self.border_tile}'")
        elif self.border_tile is not None:
            raise ConfigError("border_tile is only used with edge_mode BORDER")

        for coord, tile_id in self.fixed_cells.items():
            if tile_id not in self.catalog:
                raise ConfigError(f"Fixed cell {coord!r} uses unknown tile '{tile_id}'")

    def build_topology(self) -> Topology:
        """Create the topology this configuration describes."""
        if isinstance(self.topology, Topology):
            return self.topology
        if self.topology == "hex":
            return HexTopology(self.width, self.height)
        return SquareTopology(self.width, self.height, periodic=self.periodic)


def _positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
