"""Wave Function Collapse algorithm for tile-based map generation."""

from wfc_terrain.core.types import Direction, HexDirection
from .errors import WFCError, ConfigError, Contradiction, SolveFailed
from .tile import Tile, Symmetry, TileCatalog, make_bidirectional_rule, expand_rotations
from .topology import Topology, SquareTopology, HexTopology, GraphTopology
from .rules import RuleTable, build_rule_table, sockets_match, mirrored_sockets_match
from .grid import Grid
from .propagator import propagate, propagate_many
from .strategy import CollapseStrategy, select_cell, select_tile
from .config import SolverConfig, EdgeMode
from .solver import (
    WFCSolver,
    SolverState,
    SolveResult,
    Failure,
    FailureReason,
    solve,
    solve_async,
)

__all__ = [
    "Direction",
    "HexDirection",
    "WFCError",
    "ConfigError",
    "Contradiction",
    "SolveFailed",
    "Tile",
    "Symmetry",
    "TileCatalog",
    "make_bidirectional_rule",
    "expand_rotations",
    "Topology",
    "SquareTopology",
    "HexTopology",
    "GraphTopology",
    "RuleTable",
    "build_rule_table",
    "sockets_match",
    "mirrored_sockets_match",
    "Grid",
    "propagate",
    "propagate_many",
    "CollapseStrategy",
    "select_cell",
    "select_tile",
    "SolverConfig",
    "EdgeMode",
    "WFCSolver",
    "SolverState",
    "SolveResult",
    "Failure",
    "FailureReason",
    "solve",
    "solve_async",
]
