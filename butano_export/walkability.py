"""
Walkability grid built from the "Collisions" tile layer

=============================================================================
TILE ID -> WALKABILITY
=============================================================================

The collision tileset has exactly two meaningful tiles:

    tile id 0  ->  WALKABLE     (1)
    tile id 1  ->  NON_WALKABLE (0)

Anything else (empty cells, tiles from another tileset, negative ids) is
treated as NON_WALKABLE. Many different causes end up as the same byte.

=============================================================================
ARRAY LAYOUT
=============================================================================

The grid is a numpy uint8 array of shape (height, width), filled row by
row. Flattened, cell (x, y) lives at index:

    y * width + x

which is how the game indexes the exported collisions[] array.

=============================================================================
"""

from types import MappingProxyType
from typing import Iterator, List

import numpy as np

from .host import LayerSource


WALKABLE_TILE_ID = 0
NON_WALKABLE_TILE_ID = 1

NON_WALKABLE = 0
WALKABLE = 1

WALKABILITY_BY_TILE_ID = MappingProxyType({
    WALKABLE_TILE_ID: WALKABLE,
    NON_WALKABLE_TILE_ID: NON_WALKABLE,
})


def classify(tile_id: int) -> int:
    """Walkability value for a tile id; unknown ids are non-walkable."""
    return WALKABILITY_BY_TILE_ID.get(tile_id, NON_WALKABLE)


class WalkabilityGrid:
    """
    Rectangular grid of walkability bytes, one per tile.

    Indexing: grid.data[y, x]
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.data = np.zeros((height, width), dtype=np.uint8)

    def __iter__(self) -> Iterator[List[int]]:
        """Rows top to bottom, each a list of ints left to right."""
        for row in self.data:
            yield [int(value) for value in row]

    def __len__(self) -> int:
        return self.height

    def is_walkable(self, x: int, y: int) -> bool:
        """Out-of-bounds positions are never walkable."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return bool(self.data[y, x] == WALKABLE)
        return False

    def flat(self) -> List[int]:
        """The row-major byte sequence written to the header."""
        return [int(value) for value in self.data.ravel()]

    def get_stats(self) -> dict:
        """
        Walkable/blocked counts for a quick sanity check of the layer.

        Returns:
        --------
        dict with keys total_tiles, walkable_tiles, blocked_tiles,
        walkable_percent
        """
        total = self.width * self.height
        walkable = int(np.count_nonzero(self.data))
        return {
            'total_tiles': total,
            'walkable_tiles': walkable,
            'blocked_tiles': total - walkable,
            'walkable_percent': (walkable / total * 100) if total > 0 else 0,
        }


def build_grid(layer: LayerSource) -> WalkabilityGrid:
    """
    Classify every cell of a tile layer.

    Rows are read top to bottom and each row left to right, so the grid
    keeps the layer's exact cell order.
    """
    grid = WalkabilityGrid(layer.width, layer.height)
    for y in range(layer.height):
        for x in range(layer.width):
            grid.data[y, x] = classify(layer.tile_at(x, y).id)
    return grid
