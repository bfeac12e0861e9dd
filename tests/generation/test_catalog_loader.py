"""Tests for loading tile catalogs from YAML."""

from pathlib import Path
from typing import get_args

import pytest

from wfc_terrain.core.types import Direction, HexDirection
from wfc_terrain.generation.catalog_loader import (
    CatalogSpec,
    TileSpec,
    available_catalogs,
    build_catalog,
    load_catalog,
    load_catalog_spec,
)
from wfc_terrain.generation.tileset import create_path_catalog, create_terrain_tileset
from wfc_terrain.generation.wfc import ConfigError, GraphTopology, RuleTable, SquareTopology, Symmetry


def write(tmp_dir: Path, text: str, name: str = "catalog.yaml") -> Path:
    path = tmp_dir / name
    path.write_text(text, encoding="utf-8")
    return path


class TestBundledCatalogs:
    """The catalogs shipped in wfc_terrain/config."""

    def test_available(self):
        assert {"terrain", "basic", "paths"} <= set(available_catalogs())

    def test_terrain_matches_code_tileset(self):
        """The YAML terrain catalog and create_terrain_tileset() agree."""
        loaded = load_catalog("terrain")
        built = create_terrain_tileset()
        assert loaded.ids == tuple(built)
        for tile_id, tile in built.items():
            assert loaded[tile_id].weight == tile.weight
            assert loaded[tile_id].self_affinity == tile.self_affinity
            assert loaded[tile_id].color == tile.color
            for direction in Direction:
                assert loaded[tile_id].get_allowed_neighbors(direction) == \
                    tile.get_allowed_neighbors(direction)

    def test_paths_expand_rotations(self):
        loaded = load_catalog("paths")
        assert loaded.ids == create_path_catalog().ids
        assert loaded["corner@90"].socket(Direction.SOUTH) == "p"
        assert loaded["straight"].symmetry is Symmetry.HALF_TURN

    def test_basic_builds_rules(self):
        rules = RuleTable.build(load_catalog("basic"), SquareTopology(2, 2))
        assert not rules.compatible("grass", Direction.EAST, "water")


class TestLoadFromFile:
    """Catalog files from disk."""

    def test_sockets_and_neighbors(self, temp_data_dir):
        path = write(temp_data_dir, """
tiles:
  - id: grass
    weight: 2
    sockets: {north: g, east: g, south: g, west: g}
  - id: rock
    neighbors: {north: [rock], south: [rock]}
""")
        catalog = load_catalog(path)
        assert catalog.ids == ("grass", "rock")
        assert catalog["grass"].socket(Direction.WEST) == "g"
        assert catalog["grass"].weight == 2.0
        assert catalog["rock"].get_allowed_neighbors(Direction.NORTH) == frozenset({"rock"})

    def test_load_by_string_path(self, temp_data_dir):
        path = write(temp_data_dir, "tiles:\n  - id: only\n")
        assert load_catalog(str(path)).ids == ("only",)

    def test_hex_direction_names(self, temp_data_dir):
        path = write(temp_data_dir, """
topology: hex
tiles:
  - id: a
adjacency:
  - [a, a]
""")
        catalog = load_catalog(path)
        assert set(catalog["a"].allowed_neighbors) == set(HexDirection)

    def test_graph_labels(self, temp_data_dir):
        path = write(temp_data_dir, """
tiles:
  - id: floor
    sockets: {up: s}
  - id: roof
    sockets: {down: s}
""")
        topology = GraphTopology({"a": {"up": "b"}, "b": {"down": "a"}}, {"up": "down", "down": "up"})
        catalog = load_catalog(path, topology=topology)
        assert catalog["floor"].socket("up") == "s"


class TestInvalidCatalogs:
    """Malformed files raise ConfigError."""

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(ConfigError, match="No catalog"):
            load_catalog(temp_data_dir / "nope.yaml")

    def test_unknown_bundled_name(self):
        with pytest.raises(ConfigError, match="bundled catalogs"):
            load_catalog("volcano")

    def test_bad_yaml(self, temp_data_dir):
        path = write(temp_data_dir, "tiles: [id: a\n")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_catalog(path)

    def test_not_a_mapping(self, temp_data_dir):
        path = write(temp_data_dir, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_catalog(path)

    def test_no_tiles(self, temp_data_dir):
        path = write(temp_data_dir, "tiles: []\n")
        with pytest.raises(ConfigError, match="Invalid catalog"):
            load_catalog(path)

    @pytest.mark.parametrize("tile", [
        "{id: a, weight: 0}",
        "{id: a, self_affinity: -1}",
        "{id: a, symmetry: spiral}",
        "{id: a, colour: [1, 2, 3]}",
        "{id: ''}",
    ])
    def test_schema_violations(self, temp_data_dir, tile):
        path = write(temp_data_dir, f"tiles:\n  - {tile}\n")
        with pytest.raises(ConfigError, match="Invalid catalog"):
            load_catalog(path)

    def test_unknown_direction_name(self, temp_data_dir):
        path = write(temp_data_dir, "tiles:\n  - {id: a, sockets: {up: x}}\n")
        with pytest.raises(ConfigError, match="Unknown direction"):
            load_catalog(path)

    def test_adjacency_with_unknown_tile(self, temp_data_dir):
        path = write(temp_data_dir, "tiles:\n  - {id: a}\nadjacency:\n  - [a, b]\n")
        with pytest.raises(ConfigError, match="unknown tile 'b'"):
            load_catalog(path)

    def test_duplicate_ids(self, temp_data_dir):
        path = write(temp_data_dir, "tiles:\n  - {id: a}\n  - {id: a}\n")
        with pytest.raises(ConfigError, match="Duplicate"):
            load_catalog(path)


class TestSpecModels:
    """The pydantic models on their own."""

    def test_defaults(self):
        spec = CatalogSpec.model_validate({"tiles": [{"id": "a"}]})
        assert spec.topology == "square"
        assert not spec.rotations
        assert spec.tiles[0].color == (128, 128, 128)
        assert spec.tiles[0].symmetry == "invariant"

    def test_build_catalog_from_spec(self):
        spec = CatalogSpec.model_validate({
            "tiles": [{"id": "a", "color": [1, 2, 3]}, {"id": "b"}],
            "adjacency": [["a", "b"]],
        })
        catalog = build_catalog(spec)
        assert catalog["a"].color == (1, 2, 3)
        assert catalog["a"].get_allowed_neighbors(Direction.EAST) == frozenset({"b"})
        assert catalog["b"].get_allowed_neighbors(Direction.WEST) == frozenset({"a"})

    def test_load_catalog_spec(self):
        spec = load_catalog_spec("paths")
        assert spec.rotations
        assert spec.name == "paths"

    def test_symmetry_names_match_enum(self):
        """Every symmetry a file may name is a Symmetry member, and vice versa."""
        allowed = set(get_args(TileSpec.model_fields["symmetry"].annotation))
        assert allowed == {member.value for member in Symmetry}
        assert Symmetry("invariant") is Symmetry.INVARIANT
        assert Symmetry("asymmetric") is Symmetry.ASYMMETRIC
