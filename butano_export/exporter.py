"""
Collision exporter

=============================================================================
FLOW
=============================================================================

    locate "Collisions" tile layer
        |-- missing -> MissingLayerError (nothing written)
        v
    output path = <dir of filename>/<base name>.hh
        v
    classify every cell -> WalkabilityGrid
        v
    render header text
        v
    write to a temporary file beside the target, then rename over it

The rename is the commit: either the whole header appears or the previous
file (if any) is left untouched.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .header import HEADER_EXTENSION, render
from .host import LayerSource, MapSource, as_map_source
from .walkability import WalkabilityGrid, build_grid


COLLISION_LAYER_NAME = "Collisions"


class ExportError(Exception):
    """Base error for a failed export."""


class MissingLayerError(ExportError):
    """Raised when the map has no tile layer with the required name."""

    def __init__(self, layer_name: str = COLLISION_LAYER_NAME):
        self.layer_name = layer_name
        super().__init__(
            f"Export failed: Could not find a tile layer called '{layer_name}'"
        )


@dataclass(frozen=True)
class ExportResult:
    """What a successful export produced."""
    path: Path
    grid: WalkabilityGrid


def locate_collision_layer(map_source: MapSource) -> Optional[LayerSource]:
    """First top-level tile layer named exactly "Collisions", or None."""
    for layer in map_source.layers:
        if layer.name == COLLISION_LAYER_NAME and layer.is_tile_layer:
            return layer
    return None


def base_name_of(filename: Union[str, Path]) -> str:
    """File name without directory and without anything after the first dot."""
    return Path(filename).name.split(".", 1)[0]


def output_path_for(filename: Union[str, Path]) -> Path:
    filename = Path(filename)
    return filename.parent / f"{base_name_of(filename)}.{HEADER_EXTENSION}"


def _commit_text(path: Path, text: str):
    """Write text to path atomically; OSError propagates."""
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        # Created with the default umask permissions, unlike mkstemp
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


def export_collisions(map_obj, filename: Union[str, Path]) -> ExportResult:
    """
    Export the collision layer of a map as a Butano header.

    Parameters:
    -----------
    map_obj : TiledMap or MapSource
        The map to export
    filename : str or Path
        Name chosen for the export; only its directory and base name are
        used, the extension is always .hh

    Returns:
    --------
    ExportResult : The header path and the grid written to it

    Raises:
    -------
    MissingLayerError : If there is no "Collisions" tile layer
    OSError : If the header can't be written
    """
    map_source = as_map_source(map_obj)

    layer = locate_collision_layer(map_source)
    if layer is None:
        raise MissingLayerError()

    path = output_path_for(filename)
    grid = build_grid(layer)
    # Constants follow the collision layer, which may differ from the map
    text = render(base_name_of(filename), layer.width, layer.height, grid)

    _commit_text(path, text)
    return ExportResult(path, grid)


def write(map_obj, filename: Union[str, Path]) -> Optional[str]:
    """
    Map format entry point.

    Returns None on success, or the error message to show to the user.
    """
    try:
        export_collisions(map_obj, filename)
    except ExportError as e:
        return str(e)
    return None
