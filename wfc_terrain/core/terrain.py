"""Terrain kinds produced by the bundled terrain tileset.

`generate_terrain` translates WFC tile ids into these values; the CLI
preview draws them with the ASCII symbols below.
"""

from __future__ import annotations

from enum import Enum


class Terrain(Enum):
    """Kinds of ground in a generated map, ordered wet to high."""

    WATER = "water"
    COAST = "coast"
    SAND = "sand"
    GRASS = "grass"
    FOREST = "forest"
    HILL = "hill"
    STONE = "stone"


# Distinct ASCII so a map stays readable without color
TERRAIN_SYMBOLS: dict[Terrain, str] = {
    Terrain.WATER: "=",
    Terrain.COAST: "~",
    Terrain.SAND: ":",
    Terrain.GRASS: ".",
    Terrain.FOREST: "T",
    Terrain.HILL: "^",
    Terrain.STONE: "#",
}


def get_symbol(terrain: Terrain) -> str:
    """Display symbol for a terrain kind, '?' if it has none."""
    return TERRAIN_SYMBOLS.get(terrain, "?")
