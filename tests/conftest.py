"""Shared test fixtures for wfc-terrain."""

import logging
import tempfile
from pathlib import Path

import pytest

from wfc_terrain.core.types import Direction
from wfc_terrain.logging_config import ROOT_LOGGER_NAME
from wfc_terrain.generation.tileset import create_basic_tileset, create_terrain_tileset
from wfc_terrain.generation.wfc import (
    RuleTable,
    SquareTopology,
    Tile,
    TileCatalog,
    make_bidirectional_rule,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (skipped by default, run with --run-slow)")


def pytest_addoption(parser):
    """Add --run-slow option to pytest."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (skipped by default)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is passed."""
    if config.getoption("--run-slow"):
        # --run-slow given: don't skip slow tests
        return

    skip_slow = pytest.mark.skip(reason="Slow test (use --run-slow to run)")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def temp_data_dir() -> Path:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory(prefix="wfc_terrain_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove handlers installed by setup_logging() once a test is done."""
    yield
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()


# =============================================================================
# Catalogs
# =============================================================================

@pytest.fixture
def basic_catalog() -> TileCatalog:
    """Grass, water and sand; grass never touches water."""
    return TileCatalog(create_basic_tileset().values())


@pytest.fixture
def terrain_catalog() -> TileCatalog:
    """The 7-biome terrain tileset."""
    return TileCatalog(create_terrain_tileset().values())


@pytest.fixture
def single_tile_catalog() -> TileCatalog:
    """One tile that may sit next to itself."""
    tiles = {"only": Tile(id="only")}
    make_bidirectional_rule(tiles, "only", "only")
    return TileCatalog(tiles.values())


@pytest.fixture
def lonely_catalog() -> TileCatalog:
    """Two tiles that allow no neighbors at all: any grid larger than 1x1 fails."""
    empty = {direction: frozenset() for direction in Direction}
    return TileCatalog([
        Tile(id="a", allowed_neighbors=empty),
        Tile(id="b", allowed_neighbors=empty),
    ])


@pytest.fixture
def checkerboard_catalog() -> TileCatalog:
    """Black and white tiles that must alternate."""
    tiles = {"black": Tile(id="black"), "white": Tile(id="white")}
    make_bidirectional_rule(tiles, "black", "white")
    return TileCatalog(tiles.values())


@pytest.fixture
def basic_rules(basic_catalog: TileCatalog) -> RuleTable:
    """Rule table for the basic catalog on a square grid."""
    return RuleTable.build(basic_catalog, SquareTopology(4, 4))
