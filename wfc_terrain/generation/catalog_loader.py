"""Tile catalogs from YAML files.

A catalog file lists the tiles and how they may touch, either through
socket labels on each edge, explicit per-direction neighbor lists, or
`adjacency` pairs that are allowed next to each other in every direction.
Files are validated with pydantic before any tile is built.

Example:
    topology: square
    rotations: true
    tiles:
      - id: grass
        sockets: {north: g, east: g, south: g, west: g}
      - id: road
        symmetry: half_turn
        sockets: {north: p, east: g, south: p, west: g}

Bundled catalogs live in wfc_terrain/config and can be loaded by name:
    catalog = load_catalog("terrain")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .wfc import (
    ConfigError,
    HexTopology,
    SquareTopology,
    Symmetry,
    Tile,
    TileCatalog,
    Topology,
    make_bidirectional_rule,
)

logger = logging.getLogger(__name__)

# Default to config/ next to the package modules
CATALOG_DIR = Path(__file__).parent.parent / "config"


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------


class TileSpec(BaseModel):
    """One tile as written in a catalog file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    color: tuple[int, int, int] = (128, 128, 128)
    weight: float = Field(default=1.0, gt=0)
    self_affinity: float = Field(default=1.0, gt=0)
    sockets: dict[str, str] = Field(default_factory=dict)
    neighbors: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    symmetry: Literal["invariant", "half_turn", "asymmetric"] = "invariant"


class CatalogSpec(BaseModel):
    """A whole catalog file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    description: str = ""
    topology: Literal["square", "hex"] = "square"
    rotations: bool = False
    tiles: tuple[TileSpec, ...] = Field(min_length=1)
    adjacency: tuple[tuple[str, str], ...] = ()


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------


def available_catalogs() -> list[str]:
    """Names of the bundled catalogs."""
    return sorted(path.stem for path in CATALOG_DIR.glob("*.yaml"))


def resolve_catalog_path(source: Path | str) -> Path:
    """
    Turn a file path or a bundled catalog name into a path.

    Raises:
        ConfigError: If neither a file nor a bundled catalog matches
    """
    path = Path(source)
    if path.is_file():
        return path
    bundled = CATALOG_DIR / f"{source}.yaml"
    if bundled.is_file():
        return bundled
    raise ConfigError(
        f"No catalog file '{source}' (bundled catalogs: {', '.join(available_catalogs())})"
    )


def load_catalog_spec(source: Path | str) -> CatalogSpec:
    """
    Read and validate a catalog file.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or does not
                     match the catalog schema
    """
    path = resolve_catalog_path(source)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Catalog {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Catalog {path} must be a mapping with a 'tiles' list")

    try:
        spec = CatalogSpec.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid catalog {path}:\n{exc}") from exc

    logger.debug(f"Loaded catalog spec | path={path} | tiles={len(spec.tiles)}")
    return spec


def build_catalog(spec: CatalogSpec, topology: Topology | None = None) -> TileCatalog:
    """
    Build a TileCatalog from a validated spec.

    Args:
        spec: The parsed catalog file
        topology: Resolves direction names; defaults to the topology named in
                  the file. Pass a GraphTopology to use its edge labels.

    Raises:
        ConfigError: On unknown direction names or tile ids, or tiles that
                     cannot be rotated
    """
    if topology is None:
        topology = HexTopology(1, 1) if spec.topology == "hex" else SquareTopology(1, 1)

    tiles: dict[str, Tile] = {}
    for tile_spec in spec.tiles:
        if tile_spec.id in tiles:
            raise ConfigError(f"Duplicate tile id '{tile_spec.id}'")
        tiles[tile_spec.id] = Tile(
            id=tile_spec.id,
            color=tile_spec.color,
            weight=tile_spec.weight,
            self_affinity=tile_spec.self_affinity,
            sockets={
                topology.direction_from_name(name): label
                for name, label in tile_spec.sockets.items()
            },
            allowed_neighbors={
                topology.direction_from_name(name): frozenset(ids)
                for name, ids in tile_spec.neighbors.items()
            },
            symmetry=Symmetry(tile_spec.symmetry),
        )

    for tile_a_id, tile_b_id in spec.adjacency:
        for tile_id in (tile_a_id, tile_b_id):
            if tile_id not in tiles:
                raise ConfigError(f"Adjacency pair names unknown tile '{tile_id}'")
        make_bidirectional_rule(
            tiles,
            tile_a_id,
            tile_b_id,
            directions=topology.directions,
            opposite=topology.opposite,
        )

    if spec.rotations:
        return TileCatalog.with_rotations(tiles.values())
    return TileCatalog(tiles.values())


def load_catalog(source: Path | str, topology: Topology | None = None) -> TileCatalog:
    """
    Load a catalog file, or a bundled catalog by name.

    Args:
        source: Path to a YAML file, or the name of a bundled catalog
                ("terrain", "basic", "paths")
        topology: See build_catalog()

    Raises:
        ConfigError: If the catalog is missing or malformed
    """
    return build_catalog(load_catalog_spec(source), topology)
