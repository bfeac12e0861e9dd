"""Tests for the cell domain store."""

import pytest

from wfc_terrain.core.types import Position
from wfc_terrain.generation.wfc import Grid, SquareTopology

TILES = ("grass", "sand", "water")


def make_grid(width: int = 3, height: int = 3, **kwargs) -> Grid:
    return Grid(SquareTopology(width, height), TILES, **kwargs)


class TestGridBasics:
    """Test initial state and queries."""

    def test_starts_in_full_superposition(self):
        grid = make_grid()
        assert len(grid) == 9
        for coord in grid.coords():
            assert grid.domain_of(coord) == frozenset(TILES)
            assert grid.tile_at(coord) is None
        assert grid.collapsed_count == 0
        assert not grid.has_contradiction()
        assert not grid.is_fully_collapsed()

    def test_single_tile_grid_is_collapsed_from_the_start(self):
        grid = Grid(SquareTopology(2, 2), ["only"])
        assert grid.is_fully_collapsed()
        assert grid.min_entropy_coord() is None

    def test_tuple_lookup_and_canonical(self):
        grid = make_grid()
        assert (1, 2) in grid
        assert grid.canonical((1, 2)) == Position(1, 2)
        assert isinstance(grid.canonical((1, 2)), Position)
        assert grid.order(Position(1, 2)) == 7


class TestRestrictAndCollapse:
    """Test domain narrowing."""

    def test_restrict_reports_change(self):
        grid = make_grid()
        assert grid.restrict(Position(0, 0), {"grass", "sand"})
        assert grid.domain_of(Position(0, 0)) == frozenset({"grass", "sand"})
        # Same restriction again changes nothing
        assert not grid.restrict(Position(0, 0), {"grass", "sand"})

    def test_restrict_never_adds(self):
        grid = make_grid()
        grid.restrict(Position(0, 0), {"grass"})
        assert not grid.restrict(Position(0, 0), {"grass", "sand", "water", "lava"})
        assert grid.domain_of(Position(0, 0)) == frozenset({"grass"})

    def test_collapse(self):
        grid = make_grid()
        grid.collapse(Position(1, 1), "water")
        assert grid.tile_at(Position(1, 1)) == "water"
        assert grid.collapsed_count == 1

    def test_collapse_to_impossible_tile_empties_cell(self):
        grid = make_grid()
        grid.restrict(Position(1, 1), {"grass"})
        grid.collapse(Position(1, 1), "water")
        assert grid.is_contradicted(Position(1, 1))
        assert grid.has_contradiction()
        assert grid.collapsed_count == 0

    def test_result_requires_full_collapse(self):
        grid = make_grid(1, 2)
        grid.collapse(Position(0, 0), "sand")
        with pytest.raises(ValueError):
            grid.result()
        grid.collapse(Position(0, 1), "grass")
        assert dict(grid.result()) == {Position(0, 0): "sand", Position(0, 1): "grass"}

    def test_result_is_read_only(self):
        grid = make_grid(1, 1)
        grid.collapse(Position(0, 0), "sand")
        with pytest.raises(TypeError):
            grid.result()[Position(0, 0)] = "water"


class TestMinEntropy:
    """Test lowest-entropy cell selection."""

    def test_ties_break_in_row_major_order(self):
        grid = make_grid()
        assert grid.min_entropy_coord() == Position(0, 0)

    def test_smallest_domain_first(self):
        grid = make_grid()
        grid.restrict(Position(2, 1), {"grass", "sand"})
        assert grid.min_entropy_coord() == Position(2, 1)

    def test_collapsed_cells_are_skipped(self):
        grid = make_grid(2, 1)
        grid.collapse(Position(0, 0), "grass")
        assert grid.min_entropy_coord() == Position(1, 0)
        grid.collapse(Position(1, 0), "grass")
        assert grid.min_entropy_coord() is None

    def test_cell_regains_entropy_after_rollback(self):
        grid = make_grid(2, 1)
        grid.checkpoint()
        grid.restrict(Position(1, 0), {"grass", "sand"})
        grid.rollback()
        assert grid.min_entropy_coord() == Position(0, 0)


class TestCheckpoints:
    """Test the undo trail."""

    def test_rollback_restores_domains(self):
        grid = make_grid()
        before = grid.snapshot()
        grid.checkpoint()
        grid.collapse(Position(0, 0), "grass")
        grid.restrict(Position(1, 0), {"grass", "sand"})

        restored = grid.rollback()
        assert restored == {Position(0, 0), Position(1, 0)}
        assert grid.snapshot() == before
        assert grid.collapsed_count == 0

    def test_nested_checkpoints(self):
        grid = make_grid()
        grid.checkpoint()
        grid.collapse(Position(0, 0), "grass")
        grid.checkpoint()
        grid.collapse(Position(1, 0), "sand")
        assert grid.checkpoint_depth == 2

        grid.rollback()
        assert grid.tile_at(Position(0, 0)) == "grass"
        assert grid.tile_at(Position(1, 0)) is None

        grid.rollback()
        assert grid.tile_at(Position(0, 0)) is None
        assert grid.checkpoint_depth == 0

    def test_rollback_restores_contradiction_counts(self):
        grid = make_grid()
        grid.checkpoint()
        grid.restrict(Position(0, 0), set())
        assert grid.has_contradiction()
        grid.rollback()
        assert not grid.has_contradiction()

    def test_rollback_without_checkpoint(self):
        with pytest.raises(IndexError):
            make_grid().rollback()

    def test_changes_without_checkpoint_are_not_recorded(self):
        grid = make_grid()
        grid.collapse(Position(0, 0), "grass")
        grid.checkpoint()
        grid.rollback()
        assert grid.tile_at(Position(0, 0)) == "grass"

    def test_max_checkpoints_drops_oldest(self):
        grid = make_grid(max_checkpoints=2)
        grid.checkpoint()
        grid.collapse(Position(0, 0), "grass")
        grid.checkpoint()
        grid.collapse(Position(1, 0), "grass")
        grid.checkpoint()
        grid.collapse(Position(2, 0), "grass")
        assert grid.checkpoint_depth == 2

        grid.rollback()
        grid.rollback()
        # The first change can no longer be undone
        assert grid.tile_at(Position(0, 0)) == "grass"
        assert grid.tile_at(Position(1, 0)) is None
        assert grid.checkpoint_depth == 0

    def test_reset(self):
        grid = make_grid()
        grid.checkpoint()
        grid.collapse(Position(0, 0), "grass")
        grid.reset()
        assert grid.tile_at(Position(0, 0)) is None
        assert grid.checkpoint_depth == 0
