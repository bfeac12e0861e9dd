"""
Terrain tilesets for Wave Function Collapse.

Defines 7 terrain types with adjacency rules that create natural gradients:
    water -> coast -> sand -> grass -> forest/hill -> stone

The key insight: by only allowing certain tiles to neighbor each other,
we get emergent large-scale structure (coastlines, mountain ranges, forests)
from purely local rules.

Also provides the small grass/water/sand set and a socket-based path set,
which are handy for tests and demos.
"""

from wfc_terrain.core.terrain import Terrain
from wfc_terrain.core.types import Direction
from .wfc import Symmetry, Tile, TileCatalog, make_bidirectional_rule


def create_terrain_tileset() -> dict[str, Tile]:
    """
    Create the terrain tileset with all adjacency rules defined.

    Returns a dict mapping tile ID to Tile object.
    """
    # Higher weight = more common in output
    # Higher self_affinity = stronger clustering (smoother biomes)
    tiles = {
        "water": Tile(
            id="water",
            color=(26, 82, 118),      # Deep blue
            weight=1.12,
            self_affinity=3.98,       # Strong clustering for lakes/oceans
        ),
        "coast": Tile(
            id="coast",
            color=(133, 193, 233),    # Light blue
            weight=2.0,
            self_affinity=1.12,       # Slight clustering for coastlines
        ),
        "sand": Tile(
            id="sand",
            color=(244, 208, 63),     # Tan/yellow
            weight=1.5,
            self_affinity=0.9,
        ),
        "grass": Tile(
            id="grass",
            color=(39, 174, 96),      # Green
            weight=4.03,              # Most common
            self_affinity=3.98,       # Strong clustering for large plains
        ),
        "forest": Tile(
            id="forest",
            color=(30, 132, 73),      # Dark green
            weight=2.07,
            self_affinity=2.23,       # Forest patches
        ),
        "hill": Tile(
            id="hill",
            color=(160, 64, 0),       # Brown
            weight=1.93,
            self_affinity=1.09,       # Rolling hills
        ),
        "stone": Tile(
            id="stone",
            color=(127, 140, 141),    # Gray
            weight=1.32,
            self_affinity=2.16,       # Mountain ranges
        ),
    }

    # Adjacency graph:
    #
    #   water <-> coast <-> sand <-> grass <-> forest
    #                                   |         |
    #                                 hill  <->  hill
    #                                   |
    #                                stone
    #

    # Water gradient: water -> coast -> sand -> grass
    make_bidirectional_rule(tiles, "water", "water")
    make_bidirectional_rule(tiles, "water", "coast")
    make_bidirectional_rule(tiles, "coast", "coast")
    make_bidirectional_rule(tiles, "coast", "sand")
    make_bidirectional_rule(tiles, "sand", "sand")
    make_bidirectional_rule(tiles, "sand", "grass")

    # Land: grass is the hub - connects to sand, forest, and hills
    make_bidirectional_rule(tiles, "grass", "grass")
    make_bidirectional_rule(tiles, "grass", "forest")
    make_bidirectional_rule(tiles, "grass", "hill")

    # Forest connects to grass and hills (forested foothills)
    make_bidirectional_rule(tiles, "forest", "forest")
    make_bidirectional_rule(tiles, "forest", "hill")

    # Elevation: hill -> stone (mountains)
    make_bidirectional_rule(tiles, "hill", "hill")
    make_bidirectional_rule(tiles, "hill", "stone")
    make_bidirectional_rule(tiles, "stone", "stone")

    return tiles


def create_basic_tileset() -> dict[str, Tile]:
    """
    Grass, water and sand; grass never touches water.

    Returns a dict mapping tile ID to Tile object.
    """
    tiles = {
        "grass": Tile(id="grass", color=(39, 174, 96), weight=3.0),
        "water": Tile(id="water", color=(26, 82, 118), weight=2.0),
        "sand": Tile(id="sand", color=(244, 208, 63), weight=1.0),
    }
    make_bidirectional_rule(tiles, "grass", "grass")
    make_bidirectional_rule(tiles, "grass", "sand")
    make_bidirectional_rule(tiles, "sand", "sand")
    make_bidirectional_rule(tiles, "sand", "water")
    make_bidirectional_rule(tiles, "water", "water")
    return tiles


def create_path_tiles() -> list[Tile]:
    """
    Socket tiles for paths on grass, before rotation expansion.

    Each edge is grass ("g") or path ("p"). Use TileCatalog.with_rotations()
    (or create_path_catalog()) to get every orientation.
    """
    def sockets(north: str, east: str, south: str, west: str) -> dict[Direction, str]:
        return {
            Direction.NORTH: north,
            Direction.EAST: east,
            Direction.SOUTH: south,
            Direction.WEST: west,
        }

    return [
        Tile(id="grass", color=(39, 174, 96), weight=6.0, self_affinity=1.5,
             sockets=sockets("g", "g", "g", "g")),
        Tile(id="straight", color=(189, 154, 96), weight=2.0,
             sockets=sockets("p", "g", "p", "g"), symmetry=Symmetry.HALF_TURN),
        Tile(id="corner", color=(189, 154, 96), weight=1.0,
             sockets=sockets("p", "p", "g", "g"), symmetry=Symmetry.ASYMMETRIC),
        Tile(id="tee", color=(160, 120, 70), weight=0.3,
             sockets=sockets("p", "p", "g", "p"), symmetry=Symmetry.ASYMMETRIC),
        Tile(id="cross", color=(140, 100, 60), weight=0.1,
             sockets=sockets("p", "p", "p", "p")),
        Tile(id="end", color=(120, 90, 50), weight=0.2,
             sockets=sockets("p", "g", "g", "g"), symmetry=Symmetry.ASYMMETRIC),
    ]


def create_path_catalog() -> TileCatalog:
    """The path tiles in every distinct orientation."""
    return TileCatalog.with_rotations(create_path_tiles())


# Terrain tile ids are the Terrain values
TILE_TO_TERRAIN: dict[str, Terrain] = {terrain.value: terrain for terrain in Terrain}
