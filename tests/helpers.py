from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def tmx_text(layers_xml: str, *, width: int = 2, height: int = 2,
             tilesets_xml: str | None = None) -> str:
    if tilesets_xml is None:
        tilesets_xml = (
            '<tileset firstgid="1" name="collisions" tilewidth="8" '
            'tileheight="8" tilecount="2" columns="2"/>'
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<map version="1.10" orientation="orthogonal" renderorder="right-down" '
        f'width="{width}" height="{height}" tilewidth="8" tileheight="8" infinite="0">\n'
        f'{tilesets_xml}\n'
        f'{layers_xml}\n'
        '</map>\n'
    )


def csv_layer(name: str, gids: List[List[int]], layer_id: int = 1) -> str:
    height = len(gids)
    width = len(gids[0]) if gids else 0
    rows = ",\n".join(",".join(str(g) for g in row) for row in gids)
    return (
        f'<layer id="{layer_id}" name="{name}" width="{width}" height="{height}">\n'
        f'<data encoding="csv">\n{rows}\n</data>\n'
        '</layer>'
    )


def write_tmx(directory: Path, name: str, text: str) -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


@dataclass
class FakeCell:
    id: int


@dataclass
class FakeLayer:
    name: str
    ids: List[List[int]] = field(default_factory=list)
    is_tile_layer: bool = True

    @property
    def width(self) -> int:
        return len(self.ids[0]) if self.ids else 0

    @property
    def height(self) -> int:
        return len(self.ids)

    def tile_at(self, x: int, y: int) -> FakeCell:
        return FakeCell(self.ids[y][x])


@dataclass
class FakeMap:
    layers: List[FakeLayer]
    width: int = 0
    height: int = 0
