"""
Terrain generation using Wave Function Collapse.

This module provides the main entry point for generating terrain maps.
The WFC algorithm creates natural-looking terrain with biomes that flow into
each other based on adjacency rules.
"""

import logging
from typing import Callable

from wfc_terrain.core.types import Position
from wfc_terrain.core.terrain import Terrain
from .tileset import create_terrain_tileset, TILE_TO_TERRAIN
from .wfc import ConfigError, SolverConfig, TileCatalog, solve

logger = logging.getLogger(__name__)


def generate_terrain(
    width: int = 64,
    height: int = 64,
    seed: int | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
    max_retries: int = 10,
    backtrack_depth: int = 64,
    max_backtracks: int = 500,
    catalog: TileCatalog | None = None,
) -> dict[Position, Terrain]:
    """
    Generate terrain using Wave Function Collapse.

    Creates a natural-looking terrain map with biomes that flow into each other:
    water -> coast -> sand -> grass -> forest/hill -> stone

    Args:
        width: World width in cells
        height: World height in cells
        seed: Random seed for reproducibility (None = random)
        progress_callback: Optional callback(collapsed, total_cells) for progress updates
        max_retries: Full restarts allowed after a contradiction
        backtrack_depth: Decisions that can be undone before a full restart
        max_backtracks: Backtracks allowed per attempt
        catalog: Tiles to use (default: the terrain tileset). Every tile id
                 must be a Terrain value.

    Returns:
        Dict mapping Position to Terrain for non-grass cells.
        (Grass is the default terrain, so only non-default cells are returned)

    Raises:
        ConfigError: If the catalog holds tiles that are not terrain
        SolveFailed: If terrain generation fails after max_retries restarts
    """
    if catalog is None:
        catalog = TileCatalog(create_terrain_tileset().values())

    unknown = [tile_id for tile_id in catalog.ids if tile_id not in TILE_TO_TERRAIN]
    if unknown:
        raise ConfigError(f"Tiles {unknown} have no terrain type")

    config = SolverConfig(
        width=width,
        height=height,
        catalog=catalog,
        seed=seed,
        max_retries=max_retries,
        backtrack_depth=backtrack_depth,
        max_backtracks=max_backtracks,
    )
    result = solve(config, progress_callback=progress_callback)
    mapping = result.unwrap()

    logger.info(
        f"Generated terrain | {width}x{height} | seed={result.seed} | "
        f"attempts={result.attempts} | backtracks={result.backtracks}"
    )

    # Convert tile ids to terrain, dropping the grass default
    terrain_map: dict[Position, Terrain] = {}
    for pos, tile_id in mapping.items():
        terrain = TILE_TO_TERRAIN[tile_id]
        if terrain != Terrain.GRASS:
            terrain_map[pos] = terrain
    return terrain_map


def generate_terrain_grid(
    width: int = 64,
    height: int = 64,
    seed: int | None = None,
    **kwargs,
) -> list[list[Terrain]]:
    """
    Generate terrain as a 2D grid (for visualization/debugging).

    This is a convenience wrapper that returns a full grid instead of
    sparse storage. Useful for visualization and testing.

    Args:
        width: World width in cells
        height: World height in cells
        seed: Random seed for reproducibility
        **kwargs: Additional arguments passed to generate_terrain()

    Returns:
        2D list of Terrain values, indexed as grid[y][x]
    """
    terrain_map = generate_terrain(width, height, seed, **kwargs)

    # Build full grid with grass as default
    grid = [
        [Terrain.GRASS for _ in range(width)]
        for _ in range(height)
    ]

    # Fill in non-grass terrain
    for pos, terrain in terrain_map.items():
        grid[pos.y][pos.x] = terrain

    return grid
