#!/usr/bin/env python3

"""
Butano collision exporter - writes <map>.hh from a Tiled map

Usage:
    python -m butano_export <map.tmx> [output.hh] [preview.png]

The map must contain a tile layer called "Collisions". Tile 0 of its
tileset is walkable, every other tile (and every empty cell) is not.

Without an output name the header is written next to the map, named
after it (level1.tmx -> level1.hh).
"""

import json
import sys
import xml.etree.ElementTree as ET
import zlib
from pathlib import Path

import zstandard

from tmx_manager import TiledMap

from .exporter import ExportError, export_collisions, output_path_for
from .formats import BUTANO_COLLISIONS
from .preview import render_preview


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    if len(argv) < 1:
        print(__doc__)
        return 1

    source_path = Path(argv[0])
    if not source_path.exists():
        print(f"Error: File '{source_path}' not found")
        return 1

    output_name = Path(argv[1]) if len(argv) >= 2 else source_path
    preview_path = Path(argv[2]) if len(argv) >= 3 else None

    try:
        tiled_map = TiledMap.load(source_path)
    except (OSError, ET.ParseError, json.JSONDecodeError, ValueError,
            zlib.error, zstandard.ZstdError) as e:
        print(f"Error: Could not read '{source_path}': {e}")
        return 1

    print(f"Map: {source_path} ({tiled_map.width}x{tiled_map.height} tiles)")

    try:
        result = export_collisions(tiled_map, output_name)
    except ExportError as e:
        print(e)
        return 1
    except OSError as e:
        print(f"Error: Could not write '{output_path_for(output_name)}': {e}")
        return 1

    stats = result.grid.get_stats()
    print(f"{BUTANO_COLLISIONS.name}: wrote {result.path}")
    print(f"Walkable tiles: {stats['walkable_tiles']} ({stats['walkable_percent']:.1f}%)")
    print(f"Blocked tiles: {stats['blocked_tiles']}")

    if preview_path is not None:
        try:
            render_preview(result.grid, preview_path)
        except (ValueError, OSError) as e:
            print(f"Error: Could not write preview '{preview_path}': {e}")
            return 1
        print(f"Preview: {preview_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
