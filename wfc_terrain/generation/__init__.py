"""Map generation for wfc-terrain."""

from .terrain import generate_terrain, generate_terrain_grid
from .tileset import (
    create_terrain_tileset,
    create_basic_tileset,
    create_path_tiles,
    create_path_catalog,
    TILE_TO_TERRAIN,
)
from .catalog_loader import load_catalog, available_catalogs

__all__ = [
    "generate_terrain",
    "generate_terrain_grid",
    "create_terrain_tileset",
    "create_basic_tileset",
    "create_path_tiles",
    "create_path_catalog",
    "TILE_TO_TERRAIN",
    "load_catalog",
    "available_catalogs",
]
