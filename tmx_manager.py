#!/usr/bin/env python3

"""
Module for reading Tiled maps (TMX and JSON formats)
Supports TMX version 1.11.0 and earlier versions

=============================================================================
WHAT IS READ?
=============================================================================

Tiled stores a map as XML (.tmx) or as JSON (.tmj / .json). Both describe
the same things:

- Map dimensions and tile sizes
- Tilesets (embedded, or external .tsx / .tsj files)
- Layers (tile layers, object groups, layer groups)
- Custom properties

This module loads either flavour into the same dataclasses so that export
code never has to care which file format the designer saved.

=============================================================================
GLOBAL TILE IDs (GIDs) AND LOCAL TILE IDs
=============================================================================

Layer data stores Global IDs (GIDs) shared across all tilesets:

    Tileset A (firstgid=1):   GIDs 1-100
    Tileset B (firstgid=101): GIDs 101-200

    GID 0   = empty cell
    GID 50  = tile 49 of tileset A
    GID 150 = tile 49 of tileset B

The editor itself talks about LOCAL tile ids (the tile's index inside its
own tileset), which is what TiledMap.tile_id_for_gid() returns:

    local id = GID - tileset.firstgid

The three highest bits of a GID are flip flags (horizontal, vertical,
diagonal). They are masked off before any lookup.

=============================================================================
DATA ENCODINGS
=============================================================================

- XML   (<tile gid="..."/> elements, deprecated)
- CSV
- Base64, optionally compressed with zlib, gzip or zstd

=============================================================================
"""

import xml.etree.ElementTree as ET
from typing import Optional, List, Dict, Any, Union
from dataclasses import dataclass, field
from pathlib import Path
import array
import base64
import gzip
import json
import sys
import zlib

import zstandard


# =============================================================================
# GID FLAGS
# =============================================================================

FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000

GID_MASK = ~(FLIPPED_HORIZONTALLY_FLAG
             | FLIPPED_VERTICALLY_FLAG
             | FLIPPED_DIAGONALLY_FLAG) & 0xFFFFFFFF

# Local tile id reported for an empty cell
EMPTY_TILE_ID = -1


# =============================================================================
# PROPERTY CLASS
# =============================================================================

@dataclass
class Property:
    """
    Custom property attached to a map, tileset, tile or layer.

    Values are converted to Python types on load:

    - string, file, color, class -> str
    - int, object               -> int
    - float                     -> float
    - bool                      -> bool
    """
    name: str
    type: str = "string"
    value: Any = None

    @staticmethod
    def _convert(prop_type: str, value: Any) -> Any:
        if prop_type in ('int', 'object'):
            return int(value)
        if prop_type == 'float':
            return float(value)
        if prop_type == 'bool':
            # XML stores "true"/"false", JSON stores a real boolean
            if isinstance(value, bool):
                return value
            return str(value).lower() == 'true'
        return value

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Property':
        """
        Parse property from XML element.

            <property name="solid" type="bool" value="true"/>
        """
        prop_type = elem.get('type', 'string')
        # Multi-line string properties keep their value as element text
        value = elem.get('value')
        if value is None:
            value = elem.text or ''
        return cls(name=elem.get('name'), type=prop_type,
                   value=cls._convert(prop_type, value))

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Property':
        """Parse property from a JSON object ({"name", "type", "value"})."""
        prop_type = data.get('type', 'string')
        return cls(name=data.get('name'), type=prop_type,
                   value=cls._convert(prop_type, data.get('value', '')))


def _properties_from_xml(elem: ET.Element) -> Dict[str, Property]:
    properties = {}
    props_elem = elem.find('properties')
    if props_elem is not None:
        for prop_elem in props_elem.findall('property'):
            prop = Property.from_xml(prop_elem)
            properties[prop.name] = prop
    return properties


def _properties_from_json(data: Dict[str, Any]) -> Dict[str, Property]:
    properties = {}
    for prop_data in data.get('properties', []):
        prop = Property.from_json(prop_data)
        properties[prop.name] = prop
    return properties


# =============================================================================
# TILESET CLASS
# =============================================================================

@dataclass
class Tileset:
    """
    Tileset - a collection of tiles sharing one GID range.

    Only the information needed to resolve GIDs (firstgid, tilecount) and
    per-tile properties is kept; images are not loaded.

    EMBEDDED tilesets live inside the map file. EXTERNAL tilesets are a
    reference (source="terrain.tsx") that is resolved relative to the map:

        <tileset firstgid="1" source="terrain.tsx"/>
    """
    firstgid: int
    name: str
    tilewidth: int = 0
    tileheight: int = 0
    tilecount: int = 0
    columns: int = 0
    properties: Dict[str, Property] = field(default_factory=dict)
    tile_properties: Dict[int, Dict[str, Property]] = field(default_factory=dict)
    source: Optional[str] = None

    @classmethod
    def from_xml(cls, elem: ET.Element, firstgid: int) -> 'Tileset':
        """
        Parse tileset from a <tileset> element.

        firstgid always comes from the referencing map, never from a TSX.
        """
        tileset = cls(
            firstgid=firstgid,
            name=elem.get('name', ''),
            tilewidth=int(elem.get('tilewidth', 0)),
            tileheight=int(elem.get('tileheight', 0)),
            tilecount=int(elem.get('tilecount', 0)),
            columns=int(elem.get('columns', 0)),
            properties=_properties_from_xml(elem),
        )
        for tile_elem in elem.findall('tile'):
            props = _properties_from_xml(tile_elem)
            if props:
                tileset.tile_properties[int(tile_elem.get('id', 0))] = props
        return tileset

    @classmethod
    def from_json(cls, data: Dict[str, Any], firstgid: int) -> 'Tileset':
        """Parse tileset from a JSON object (embedded or .tsj)."""
        tileset = cls(
            firstgid=firstgid,
            name=data.get('name', ''),
            tilewidth=int(data.get('tilewidth', 0)),
            tileheight=int(data.get('tileheight', 0)),
            tilecount=int(data.get('tilecount', 0)),
            columns=int(data.get('columns', 0)),
            properties=_properties_from_json(data),
        )
        for tile_data in data.get('tiles', []):
            props = _properties_from_json(tile_data)
            if props:
                tileset.tile_properties[int(tile_data.get('id', 0))] = props
        return tileset

    @classmethod
    def load_external(cls, path: Path, firstgid: int) -> 'Tileset':
        """
        Load an external tileset file (.tsx or .tsj/.json).

        A missing file is not fatal: a placeholder is returned so that GIDs
        still resolve to the right tileset.
        """
        try:
            if path.suffix.lower() in ('.tsj', '.json'):
                with open(path, encoding='utf-8') as f:
                    tileset = cls.from_json(json.load(f), firstgid)
            else:
                tileset = cls.from_xml(ET.parse(path).getroot(), firstgid)
        except FileNotFoundError:
            print(f"Warning: External tileset not found: {path}")
            tileset = cls(firstgid=firstgid, name=path.stem)
        tileset.source = path.name
        return tileset


# =============================================================================
# LAYER DATA CLASS
# =============================================================================

@dataclass
class LayerData:
    """
    The grid of GIDs inside a tile layer.

    Stored as array.array('I') (unsigned 32-bit), row-major:

        tiles[y * width + x]

    The encoding and compression the data was read with are remembered for
    diagnostics.
    """
    encoding: Optional[str] = None      # csv, base64, or None (XML / JSON array)
    compression: Optional[str] = None   # gzip, zlib, zstd, or None
    tiles: array.array = field(default_factory=lambda: array.array('I'))

    def decode_data(self, data_elem: ET.Element):
        """Decode tile data from a TMX <data> element."""
        encoding = data_elem.get('encoding')
        compression = data_elem.get('compression')

        if encoding == 'csv':
            # "1,2,3,\n4,5,6" - trailing commas leave empty items
            text = (data_elem.text or '').replace('\n', '')
            gids = [int(x) for x in text.split(',') if x.strip()]
            self.tiles = array.array('I', gids)
        elif encoding == 'base64':
            self.tiles = self._decode_base64(data_elem.text or '', compression)
        else:
            gids = [int(tile_elem.get('gid', 0))
                    for tile_elem in data_elem.findall('tile')]
            self.tiles = array.array('I', gids)

        self.encoding = encoding
        self.compression = compression

    def decode_json(self, data: Union[str, List[int]],
                    encoding: Optional[str] = None,
                    compression: Optional[str] = None):
        """Decode tile data from a JSON layer ("data" is a list or Base64)."""
        if encoding == 'base64':
            self.tiles = self._decode_base64(data, compression)
        else:
            self.tiles = array.array('I', (int(gid) for gid in data))
        self.encoding = encoding
        self.compression = compression or None

    @staticmethod
    def _decode_base64(text: str, compression: Optional[str]) -> array.array:
        raw_data = base64.b64decode(text.strip())

        if compression == 'zlib':
            raw_data = zlib.decompress(raw_data)
        elif compression == 'gzip':
            raw_data = gzip.decompress(raw_data)
        elif compression == 'zstd':
            raw_data = zstandard.ZstdDecompressor().decompress(raw_data)
        elif compression:
            raise ValueError(f"Unsupported layer compression: {compression}")

        # Each GID is a little-endian uint32
        tiles = array.array('I')
        tiles.frombytes(raw_data[:len(raw_data) - len(raw_data) % 4])
        if sys.byteorder == 'big':
            tiles.byteswap()
        return tiles


# =============================================================================
# TILE LAYER CLASS
# =============================================================================

@dataclass
class TileLayer:
    """
    Tile layer - a width x height grid of GIDs.

        gid = layer.get_tile_gid(5, 10)   # column 5, row 10

    GID 0 = empty cell. Out-of-bounds reads also return 0.
    """
    name: str
    width: int
    height: int
    id: int = 0
    visible: bool = True
    opacity: float = 1.0
    properties: Dict[str, Property] = field(default_factory=dict)
    data: LayerData = field(default_factory=LayerData)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'TileLayer':
        """Parse tile layer from a <layer> element."""
        layer = cls(
            name=elem.get('name', ''),
            width=int(elem.get('width', 0)),
            height=int(elem.get('height', 0)),
            id=int(elem.get('id', 0)),
            visible=elem.get('visible', '1') == '1',
            opacity=float(elem.get('opacity', 1.0)),
            properties=_properties_from_xml(elem),
        )
        data_elem = elem.find('data')
        if data_elem is not None:
            layer.data.decode_data(data_elem)
        return layer

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'TileLayer':
        """Parse tile layer from a JSON object with type "tilelayer"."""
        layer = cls(
            name=data.get('name', ''),
            width=int(data.get('width', 0)),
            height=int(data.get('height', 0)),
            id=int(data.get('id', 0)),
            visible=bool(data.get('visible', True)),
            opacity=float(data.get('opacity', 1.0)),
            properties=_properties_from_json(data),
        )
        if 'data' in data:
            layer.data.decode_json(data['data'], data.get('encoding'),
                                   data.get('compression'))
        return layer

    def get_tile_gid(self, x: int, y: int) -> int:
        """
        Get the raw GID (flip flags included) at column x, row y.

        Returns 0 (empty) outside the layer or past the end of short data.
        """
        if 0 <= x < self.width and 0 <= y < self.height:
            index = y * self.width + x
            if index < len(self.data.tiles):
                return self.data.tiles[index]
        return 0

    def set_tile_gid(self, x: int, y: int, gid: int):
        """Set the GID at column x, row y (ignored outside the layer)."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self.data.tiles[y * self.width + x] = gid


# =============================================================================
# OBJECT GROUP CLASS
# =============================================================================

@dataclass
class MapObject:
    """A single object inside an object group (rectangle, point, ...)."""
    id: int
    name: str = ""
    type: str = ""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'MapObject':
        return cls(
            id=int(elem.get('id', 0)),
            name=elem.get('name', ''),
            # Tiled 1.9 renamed "type" to "class"
            type=elem.get('type', elem.get('class', '')),
            x=float(elem.get('x', 0)),
            y=float(elem.get('y', 0)),
            width=float(elem.get('width', 0)),
            height=float(elem.get('height', 0)),
        )

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'MapObject':
        return cls(
            id=int(data.get('id', 0)),
            name=data.get('name', ''),
            type=data.get('type', data.get('class', '')),
            x=float(data.get('x', 0)),
            y=float(data.get('y', 0)),
            width=float(data.get('width', 0)),
            height=float(data.get('height', 0)),
        )


@dataclass
class ObjectGroup:
    """
    Object layer. Holds free-form objects instead of a tile grid.

    Designers sometimes draw collisions as rectangles in an object group
    called "Collisions"; such a layer is NOT a tile layer.
    """
    name: str
    id: int = 0
    visible: bool = True
    properties: Dict[str, Property] = field(default_factory=dict)
    objects: List[MapObject] = field(default_factory=list)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'ObjectGroup':
        return cls(
            name=elem.get('name', ''),
            id=int(elem.get('id', 0)),
            visible=elem.get('visible', '1') == '1',
            properties=_properties_from_xml(elem),
            objects=[MapObject.from_xml(e) for e in elem.findall('object')],
        )

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ObjectGroup':
        return cls(
            name=data.get('name', ''),
            id=int(data.get('id', 0)),
            visible=bool(data.get('visible', True)),
            properties=_properties_from_json(data),
            objects=[MapObject.from_json(o) for o in data.get('objects', [])],
        )


# =============================================================================
# LAYER GROUP CLASS
# =============================================================================

@dataclass
class LayerGroup:
    """
    Folder of layers. Groups nest:

    Layers:
    ├── Background (group)
    │   └── Sky
    └── Gameplay (group)
        ├── Ground
        └── Collisions
    """
    name: str
    id: int = 0
    visible: bool = True
    properties: Dict[str, Property] = field(default_factory=dict)
    layers: List[Union['TileLayer', 'ObjectGroup', 'LayerGroup']] = field(default_factory=list)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'LayerGroup':
        group = cls(
            name=elem.get('name', ''),
            id=int(elem.get('id', 0)),
            visible=elem.get('visible', '1') == '1',
            properties=_properties_from_xml(elem),
        )
        group.layers = _layers_from_xml(elem)
        return group

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'LayerGroup':
        group = cls(
            name=data.get('name', ''),
            id=int(data.get('id', 0)),
            visible=bool(data.get('visible', True)),
            properties=_properties_from_json(data),
        )
        group.layers = _layers_from_json(data.get('layers', []))
        return group


AnyLayer = Union[TileLayer, ObjectGroup, LayerGroup]


def _layers_from_xml(parent: ET.Element) -> List[AnyLayer]:
    """Parse the layer children of <map> or <group>, keeping document order."""
    layers = []
    for elem in parent:
        if elem.tag == 'layer':
            layers.append(TileLayer.from_xml(elem))
        elif elem.tag == 'objectgroup':
            layers.append(ObjectGroup.from_xml(elem))
        elif elem.tag == 'group':
            layers.append(LayerGroup.from_xml(elem))
    return layers


def _layers_from_json(items: List[Dict[str, Any]]) -> List[AnyLayer]:
    layers = []
    for data in items:
        layer_type = data.get('type')
        if layer_type == 'tilelayer':
            layers.append(TileLayer.from_json(data))
        elif layer_type == 'objectgroup':
            layers.append(ObjectGroup.from_json(data))
        elif layer_type == 'group':
            layers.append(LayerGroup.from_json(data))
    return layers


# =============================================================================
# TILED MAP CLASS (Main Entry Point)
# =============================================================================

@dataclass
class TiledMap:
    """
    Complete Tiled map - the root object.

    Loading:
        map_data = TiledMap.load("level1.tmx")
        print(f"Map size: {map_data.width}x{map_data.height}")

    Accessing layers:
        ground = map_data.get_layer_by_name("Ground")
        tile_id = map_data.tile_id_for_gid(ground.get_tile_gid(5, 10))
    """
    version: str = "1.10"
    tiledversion: str = ""
    orientation: str = "orthogonal"
    renderorder: str = "right-down"
    width: int = 0
    height: int = 0
    tilewidth: int = 0
    tileheight: int = 0
    infinite: bool = False
    properties: Dict[str, Property] = field(default_factory=dict)
    tilesets: List[Tileset] = field(default_factory=list)
    layers: List[AnyLayer] = field(default_factory=list)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'TiledMap':
        """
        Load a map from disk. The format is picked from the extension:
        .tmj / .json are Tiled JSON, anything else is TMX.

        Raises:
        -------
        FileNotFoundError : If the map file doesn't exist
        xml.etree.ElementTree.ParseError : If TMX XML is malformed
        json.JSONDecodeError : If JSON is malformed
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() in ('.tmj', '.json'):
            return cls._load_json(filepath)
        return cls._load_tmx(filepath)

    @classmethod
    def _load_tmx(cls, filepath: Path) -> 'TiledMap':
        root = ET.parse(filepath).getroot()

        map_obj = cls(
            version=root.get('version', '1.0'),
            tiledversion=root.get('tiledversion', ''),
            orientation=root.get('orientation', 'orthogonal'),
            renderorder=root.get('renderorder', 'right-down'),
            width=int(root.get('width', 0)),
            height=int(root.get('height', 0)),
            tilewidth=int(root.get('tilewidth', 0)),
            tileheight=int(root.get('tileheight', 0)),
            infinite=root.get('infinite', '0') == '1',
            properties=_properties_from_xml(root),
        )

        for tileset_elem in root.findall('tileset'):
            firstgid = int(tileset_elem.get('firstgid', 1))
            source = tileset_elem.get('source')
            if source:
                tileset = Tileset.load_external(filepath.parent / source, firstgid)
            else:
                tileset = Tileset.from_xml(tileset_elem, firstgid)
            map_obj.tilesets.append(tileset)

        map_obj.layers = _layers_from_xml(root)
        map_obj._sort_tilesets()
        return map_obj

    @classmethod
    def _load_json(cls, filepath: Path) -> 'TiledMap':
        with open(filepath, encoding='utf-8') as f:
            data = json.load(f)

        map_obj = cls(
            version=str(data.get('version', '1.0')),
            tiledversion=data.get('tiledversion', ''),
            orientation=data.get('orientation', 'orthogonal'),
            renderorder=data.get('renderorder', 'right-down'),
            width=int(data.get('width', 0)),
            height=int(data.get('height', 0)),
            tilewidth=int(data.get('tilewidth', 0)),
            tileheight=int(data.get('tileheight', 0)),
            infinite=bool(data.get('infinite', False)),
            properties=_properties_from_json(data),
        )

        for tileset_data in data.get('tilesets', []):
            firstgid = int(tileset_data.get('firstgid', 1))
            source = tileset_data.get('source')
            if source:
                tileset = Tileset.load_external(filepath.parent / source, firstgid)
            else:
                tileset = Tileset.from_json(tileset_data, firstgid)
            map_obj.tilesets.append(tileset)

        map_obj.layers = _layers_from_json(data.get('layers', []))
        map_obj._sort_tilesets()
        return map_obj

    def _sort_tilesets(self):
        # get_tileset_for_gid relies on ascending firstgid
        self.tilesets.sort(key=lambda ts: ts.firstgid)

    def get_tileset_for_gid(self, gid: int) -> Optional[Tileset]:
        """
        Find which tileset contains a given GID.

        A GID belongs to the tileset with the largest firstgid <= gid, so
        tilesets are scanned from the highest firstgid down.
        """
        gid &= GID_MASK
        for tileset in reversed(self.tilesets):
            if gid >= tileset.firstgid:
                return tileset
        return None

    def tile_id_for_gid(self, gid: int) -> int:
        """
        Convert a GID into the tile's local id within its tileset.

        Returns EMPTY_TILE_ID (-1) for empty cells and for GIDs that no
        tileset covers.
        """
        gid &= GID_MASK
        if gid == 0:
            return EMPTY_TILE_ID
        tileset = self.get_tileset_for_gid(gid)
        if tileset is None:
            return EMPTY_TILE_ID
        return gid - tileset.firstgid

    def get_layer_by_name(self, name: str) -> Optional[AnyLayer]:
        """Find a layer by name (searches recursively through groups)."""
        def search_layers(layers):
            for layer in layers:
                if layer.name == name:
                    return layer
                if isinstance(layer, LayerGroup):
                    result = search_layers(layer.layers)
                    if result:
                        return result
            return None

        return search_layers(self.layers)

    def get_all_layers_flat(self) -> List[Union[TileLayer, ObjectGroup]]:
        """All TileLayer and ObjectGroup objects, groups expanded."""
        result = []

        def flatten(layers):
            for layer in layers:
                if isinstance(layer, LayerGroup):
                    flatten(layer.layers)
                else:
                    result.append(layer)

        flatten(self.layers)
        return result


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def create_empty_map(width: int, height: int, tilewidth: int, tileheight: int,
                     orientation: str = "orthogonal") -> TiledMap:
    """Create an empty map with the given size in tiles and tile size in pixels."""
    return TiledMap(
        width=width,
        height=height,
        tilewidth=tilewidth,
        tileheight=tileheight,
        orientation=orientation
    )


def create_layer(name: str, width: int, height: int) -> TileLayer:
    """Create a tile layer filled with GID 0 (empty cells)."""
    layer = TileLayer(name=name, width=width, height=height)
    layer.data.tiles = array.array('I', [0] * (width * height))
    return layer
