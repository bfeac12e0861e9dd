"""Value types shared by the solver and the terrain layer.

Usage:
    from wfc_terrain.core import Position, Direction, Terrain
"""

from .types import Position, Direction, HexDirection
from .terrain import Terrain, TERRAIN_SYMBOLS, get_symbol

__all__ = [
    "Position",
    "Direction",
    "HexDirection",
    "Terrain",
    "TERRAIN_SYMBOLS",
    "get_symbol",
]
