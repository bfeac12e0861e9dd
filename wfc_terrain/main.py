"""wfc-terrain - generate tile maps with Wave Function Collapse from the command line."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Hashable, Mapping

from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text
from tqdm import tqdm

from wfc_terrain import __version__
from wfc_terrain.logging_config import setup_logging
from wfc_terrain.core.terrain import get_symbol
from wfc_terrain.generation.catalog_loader import available_catalogs, load_catalog
from wfc_terrain.generation.tileset import TILE_TO_TERRAIN
from wfc_terrain.generation.wfc import (
    ConfigError,
    EdgeMode,
    HexTopology,
    SolverConfig,
    SolveResult,
    TileCatalog,
    solve,
)

DEFAULT_CATALOG = "terrain"
DEFAULT_LOG_DIR = "logs"


def tile_symbol(catalog: TileCatalog, tile_id: str) -> str:
    """One-character glyph for a tile in the text preview."""
    terrain = TILE_TO_TERRAIN.get(tile_id)
    if terrain is not None:
        return get_symbol(terrain)
    tile = catalog[tile_id]
    return (tile.base_id or tile.id)[0]


def render_preview(
    mapping: Mapping[Hashable, str],
    catalog: TileCatalog,
    width: int,
    height: int,
    hex_offset: bool = False,
) -> Text:
    """
    Render a solved square or hex map as colored text.

    Rows are drawn top to bottom (row 0 first). Hex rows are shifted right
    by half a cell per row so the axial parallelogram reads correctly.
    """
    result = Text()
    for y in range(height):
        if hex_offset:
            result.append(" " * y)
        for x in range(width):
            tile_id = mapping[(x, y)]
            r, g, b = catalog[tile_id].color
            result.append(tile_symbol(catalog, tile_id), style=f"rgb({r},{g},{b})")
            result.append(" ")  # Spacing between cells
        if y < height - 1:
            result.append("\n")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wfc-terrain",
        description="wfc-terrain - tile map generation with Wave Function Collapse",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wfc-terrain                              # 40x20 terrain map
  wfc-terrain --seed 42 --width 80         # Reproducible, wider map
  wfc-terrain --catalog paths --periodic   # Seamless path tiling
  wfc-terrain --catalog basic --edge-mode border --border-tile water
        """,
    )
    parser.add_argument("--width", type=int, default=40, help="Map width in cells (default: 40)")
    parser.add_argument("--height", type=int, default=20, help="Map height in cells (default: 20)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: random)")
    parser.add_argument(
        "--catalog",
        default=os.environ.get("WFC_TERRAIN_CATALOG", DEFAULT_CATALOG),
        help="Bundled catalog name or path to a YAML catalog "
             f"(default: $WFC_TERRAIN_CATALOG or '{DEFAULT_CATALOG}')",
    )
    parser.add_argument(
        "--list-catalogs",
        action="store_true",
        help="List the bundled catalogs and exit",
    )
    parser.add_argument(
        "--topology",
        choices=["square", "hex"],
        default="square",
        help="Grid shape (default: square)",
    )
    parser.add_argument(
        "--periodic",
        action="store_true",
        help="Wrap the square grid around on both axes",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=10,
        help="Full restarts allowed after a contradiction (default: 10)",
    )
    parser.add_argument(
        "--backtrack-depth",
        type=int,
        default=32,
        help="Decisions that can be undone before restarting, 0 disables (default: 32)",
    )
    parser.add_argument("--max-cycles", type=int, default=None, help="Cycle budget across attempts")
    parser.add_argument("--time-limit", type=float, default=None, help="Time budget in seconds")
    parser.add_argument(
        "--edge-mode",
        choices=[mode.value for mode in EdgeMode],
        default=EdgeMode.OPEN.value,
        help="How map edges constrain tiles (default: open)",
    )
    parser.add_argument("--border-tile", default=None, help="Tile assumed beyond the edge in border mode")
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path(os.environ.get("WFC_TERRAIN_LOG_DIR", DEFAULT_LOG_DIR)),
        help=f"Log directory (default: $WFC_TERRAIN_LOG_DIR or {DEFAULT_LOG_DIR}/)",
    )
    parser.add_argument("--no-preview", action="store_true", help="Do not print the map")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to console",
    )
    return parser


def run_solve(config: SolverConfig, show_progress: bool = True) -> SolveResult:
    """Solve with a tqdm progress bar over collapsed cells."""
    total_cells = config.build_topology().size
    pbar = tqdm(total=total_cells, desc="Generating", unit="cells", disable=not show_progress)
    last_progress = [0]

    def update_progress(current: int, total: int) -> None:
        # Restarts and backtracks move the count backwards
        delta = current - last_progress[0]
        if delta:
            pbar.update(delta)
            last_progress[0] = current

    try:
        return solve(config, progress_callback=update_progress)
    finally:
        pbar.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for wfc-terrain."""
    # Load environment variables first, so they can provide defaults
    load_dotenv()

    args = build_parser().parse_args(argv)

    if args.list_catalogs:
        for name in available_catalogs():
            print(name)
        return 0

    console_level = logging.DEBUG if args.debug else logging.WARNING
    log_path = setup_logging(args.log_dir, console_level=console_level)
    print(f"wfc-terrain v{__version__}")
    print(f"Log file: {log_path}")

    try:
        # Adjacency pairs expand over the directions of the chosen grid shape
        names = HexTopology(1, 1) if args.topology == "hex" else None
        catalog = load_catalog(args.catalog, topology=names)
        config = SolverConfig(
            width=args.width,
            height=args.height,
            catalog=catalog,
            topology=args.topology,
            periodic=args.periodic,
            seed=args.seed,
            max_retries=args.retries,
            max_cycles=args.max_cycles,
            time_limit=args.time_limit,
            edge_mode=EdgeMode(args.edge_mode),
            border_tile=args.border_tile,
            backtrack_depth=args.backtrack_depth,
        )
        result = run_solve(config, show_progress=not args.no_preview)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(
        f"Seed: {result.seed} | attempts: {result.attempts} | "
        f"cycles: {result.cycles} | backtracks: {result.backtracks}"
    )
    if not result.success:
        print(f"Generation failed ({result.failure.reason.value}): {result.failure.message}",
              file=sys.stderr)
        return 1

    if not args.no_preview:
        preview = render_preview(
            result.mapping,
            catalog,
            args.width,
            args.height,
            hex_offset=args.topology == "hex",
        )
        Console().print(preview)
    return 0


if __name__ == "__main__":
    sys.exit(main())
