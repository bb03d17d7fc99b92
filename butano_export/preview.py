"""
PNG preview of a walkability grid (uses PIL)

Handy to eyeball an export before flashing the ROM: each tile becomes a
scale x scale block, white where the player can walk and dark grey where
they can't.
"""

from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

from .walkability import WalkabilityGrid


WALKABLE_COLOR = (255, 255, 255)
BLOCKED_COLOR = (48, 48, 48)


def grid_to_image(grid: WalkabilityGrid, scale: int = 8,
                  walkable_color: Tuple[int, int, int] = WALKABLE_COLOR,
                  blocked_color: Tuple[int, int, int] = BLOCKED_COLOR) -> Image.Image:
    """Build an RGB image of size (width * scale, height * scale)."""
    if scale < 1:
        raise ValueError(f"scale must be >= 1, got {scale}")
    if grid.width == 0 or grid.height == 0:
        raise ValueError(f"cannot preview an empty {grid.width}x{grid.height} grid")

    palette = np.array([blocked_color, walkable_color], dtype=np.uint8)
    # (H, W) of 0/1 -> (H, W, 3) colours, then blow each tile up to scale²
    pixels = palette[grid.data]
    pixels = np.repeat(np.repeat(pixels, scale, axis=0), scale, axis=1)
    return Image.fromarray(pixels)


def render_preview(grid: WalkabilityGrid, path: Union[str, Path],
                   scale: int = 8) -> Path:
    """Save the preview as a PNG and return its path."""
    path = Path(path)
    grid_to_image(grid, scale).save(path, format='PNG')
    return path
