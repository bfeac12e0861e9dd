"""Tests for terrain generation."""

import pytest

from wfc_terrain.core.types import Direction, Position
from wfc_terrain.core.terrain import Terrain
from wfc_terrain.generation import generate_terrain, generate_terrain_grid
from wfc_terrain.generation.tileset import create_path_catalog
from wfc_terrain.generation.wfc import ConfigError, SolveFailed, Tile, TileCatalog

NEIGHBOR_OFFSETS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


class TestGenerateTerrain:
    """Test the main terrain generation function."""

    def test_generates_small_grid_without_error(self):
        result = generate_terrain(width=20, height=20, seed=12345)
        assert isinstance(result, dict)

    def test_seed_produces_reproducible_results(self):
        """Same seed should produce identical terrain."""
        result1 = generate_terrain(width=20, height=20, seed=12345)
        result2 = generate_terrain(width=20, height=20, seed=12345)
        assert result1 == result2

    def test_different_seeds_produce_different_results(self):
        """Different seeds should produce different terrain (usually)."""
        result1 = generate_terrain(width=20, height=20, seed=1)
        result2 = generate_terrain(width=20, height=20, seed=2)
        # Could theoretically be equal but extremely unlikely
        assert result1 != result2

    def test_returns_sparse_map_without_grass(self):
        """Result should not contain grass (it's the default)."""
        result = generate_terrain(width=20, height=20, seed=12345)
        for terrain in result.values():
            assert terrain != Terrain.GRASS

    def test_all_positions_are_valid(self):
        """All positions in result should be within bounds."""
        width, height = 20, 15
        result = generate_terrain(width=width, height=height, seed=12345)
        for pos in result.keys():
            assert isinstance(pos, Position)
            assert 0 <= pos.x < width, f"x out of bounds: {pos.x}"
            assert 0 <= pos.y < height, f"y out of bounds: {pos.y}"

    def test_water_is_bounded_by_coast(self):
        """Water cells should only be adjacent to water or coast."""
        width, height = 30, 30
        result = generate_terrain(width=width, height=height, seed=12345)

        for pos, terrain in result.items():
            if terrain == Terrain.WATER:
                for dx, dy in NEIGHBOR_OFFSETS:
                    neighbor_pos = pos + (dx, dy)
                    if neighbor_pos.in_bounds(width, height):
                        neighbor_terrain = result.get(neighbor_pos, Terrain.GRASS)
                        assert neighbor_terrain in (Terrain.WATER, Terrain.COAST), \
                            f"Water at {pos} adjacent to {neighbor_terrain} at {neighbor_pos}"

    def test_stone_is_bounded_by_hill(self):
        """Stone cells should only be adjacent to stone or hill."""
        width, height = 30, 30
        result = generate_terrain(width=width, height=height, seed=12345)

        for pos, terrain in result.items():
            if terrain == Terrain.STONE:
                for dx, dy in NEIGHBOR_OFFSETS:
                    neighbor_pos = pos + (dx, dy)
                    if neighbor_pos.in_bounds(width, height):
                        neighbor_terrain = result.get(neighbor_pos, Terrain.GRASS)
                        assert neighbor_terrain in (Terrain.STONE, Terrain.HILL), \
                            f"Stone at {pos} adjacent to {neighbor_terrain} at {neighbor_pos}"

    def test_progress_callback(self):
        progress = []
        generate_terrain(
            width=8, height=8, seed=3,
            progress_callback=lambda collapsed, total: progress.append((collapsed, total)),
        )
        assert progress[-1] == (64, 64)

    def test_custom_terrain_catalog(self, basic_catalog):
        result = generate_terrain(width=10, height=10, seed=5, catalog=basic_catalog)
        assert set(result.values()) <= {Terrain.WATER, Terrain.SAND}

    def test_non_terrain_catalog_rejected(self):
        with pytest.raises(ConfigError, match="no terrain type"):
            generate_terrain(width=4, height=4, catalog=create_path_catalog())

    def test_failure_raises(self):
        """An unsolvable catalog raises SolveFailed instead of returning a partial map."""
        empty = {direction: frozenset() for direction in Direction}
        catalog = TileCatalog([Tile(id="water", allowed_neighbors=empty)])
        with pytest.raises(SolveFailed):
            generate_terrain(width=3, height=3, catalog=catalog, max_retries=1)

    @pytest.mark.slow
    def test_large_map(self):
        result = generate_terrain(width=100, height=100, seed=12345)
        assert len(set(result.values())) >= 3, "Expected more terrain variety"


class TestGenerateTerrainGrid:
    """Test the 2D grid generation convenience function."""

    def test_returns_2d_list(self):
        """Should return a 2D list of Terrain values."""
        grid = generate_terrain_grid(width=12, height=10, seed=12345)
        assert isinstance(grid, list)
        assert len(grid) == 10  # height
        assert all(len(row) == 12 for row in grid)  # width

    def test_all_cells_have_terrain(self):
        """Every cell should have a Terrain value."""
        grid = generate_terrain_grid(width=10, height=10, seed=12345)
        for row in grid:
            for cell in row:
                assert isinstance(cell, Terrain)

    def test_matches_sparse_map(self):
        sparse = generate_terrain(width=10, height=10, seed=77)
        grid = generate_terrain_grid(width=10, height=10, seed=77)
        for y, row in enumerate(grid):
            for x, terrain in enumerate(row):
                assert terrain == sparse.get(Position(x, y), Terrain.GRASS)
