"""
Butano collision exporter - Tiled "Collisions" layer to a C++ header

Requisitos:
    pip install numpy pillow zstandard
"""

from .exporter import (
    COLLISION_LAYER_NAME, ExportError, ExportResult, MissingLayerError,
    export_collisions, locate_collision_layer, output_path_for, write,
)
from .formats import (
    BUTANO_COLLISIONS, MapFormat, get_map_format, map_formats,
    register_map_format,
)
from .header import render
from .host import TiledMapSource, as_map_source
from .preview import render_preview
from .walkability import (
    NON_WALKABLE, WALKABLE, WalkabilityGrid, build_grid, classify,
)

__version__ = "1.0.0"
__all__ = [
    "COLLISION_LAYER_NAME",
    "ExportError",
    "ExportResult",
    "MissingLayerError",
    "export_collisions",
    "locate_collision_layer",
    "output_path_for",
    "write",
    "BUTANO_COLLISIONS",
    "MapFormat",
    "get_map_format",
    "map_formats",
    "register_map_format",
    "render",
    "TiledMapSource",
    "as_map_source",
    "render_preview",
    "NON_WALKABLE",
    "WALKABLE",
    "WalkabilityGrid",
    "build_grid",
    "classify",
]
