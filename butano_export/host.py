"""
Boundary between the exporter and whatever holds the map

=============================================================================
WHY A BOUNDARY?
=============================================================================

The collision exporter only needs a very small view of a map:

    map.layers              ordered top-level layers
    map.width, map.height   map size in tiles

    layer.name              layer name
    layer.is_tile_layer     True for tile layers only
    layer.width, height     grid size in tiles
    layer.tile_at(x, y)     cell with an integer .id

This is the same shape the map editor hands to its export plugins. Any
object providing it can be exported; TiledMapSource adapts a TiledMap
loaded from disk by tmx_manager.

=============================================================================
"""

from dataclasses import dataclass
from typing import List, Protocol, Sequence

from tmx_manager import TiledMap, TileLayer


class Cell(Protocol):
    id: int


class LayerSource(Protocol):
    name: str
    is_tile_layer: bool
    width: int
    height: int

    def tile_at(self, x: int, y: int) -> Cell:
        ...


class MapSource(Protocol):
    width: int
    height: int

    @property
    def layers(self) -> Sequence[LayerSource]:
        ...


@dataclass(frozen=True)
class TileCell:
    """A single cell as seen by the exporter: the local tile id (-1 = empty)."""
    id: int


class TileLayerSource:
    """Adapts a tmx_manager.TileLayer, resolving GIDs through the owning map."""

    is_tile_layer = True

    def __init__(self, tiled_map: TiledMap, layer: TileLayer):
        self._map = tiled_map
        self._layer = layer

    @property
    def name(self) -> str:
        return self._layer.name

    @property
    def width(self) -> int:
        return self._layer.width

    @property
    def height(self) -> int:
        return self._layer.height

    def tile_at(self, x: int, y: int) -> TileCell:
        gid = self._layer.get_tile_gid(x, y)
        return TileCell(self._map.tile_id_for_gid(gid))


class OtherLayerSource:
    """Object groups and layer groups: a name and nothing to read."""

    is_tile_layer = False

    def __init__(self, layer):
        self._layer = layer

    @property
    def name(self) -> str:
        return self._layer.name


class TiledMapSource:
    """
    Exposes a TiledMap through the MapSource interface.

    Only top-level layers are listed; layers nested inside groups are not
    visible here, as in the editor's own map.layers.
    """

    def __init__(self, tiled_map: TiledMap):
        self._map = tiled_map

    @property
    def width(self) -> int:
        return self._map.width

    @property
    def height(self) -> int:
        return self._map.height

    @property
    def layers(self) -> List[LayerSource]:
        return [
            TileLayerSource(self._map, layer) if isinstance(layer, TileLayer)
            else OtherLayerSource(layer)
            for layer in self._map.layers
        ]


def as_map_source(map_obj) -> MapSource:
    """Wrap a TiledMap; objects already shaped like a MapSource pass through."""
    if isinstance(map_obj, TiledMap):
        return TiledMapSource(map_obj)
    return map_obj
