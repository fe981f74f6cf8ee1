"""Turn grid distributions into inspectable images.

Uncollapsed cells show their probability-blended colour, so a partially
synthesised grid reads as a soft average that sharpens as cells collapse.
"""

import logging
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np
from PIL import Image

from .grid import ProbabilityGrid
from .palette import Palette

logger = logging.getLogger(__name__)

GRID_COLOR = (255, 0, 0)


def render_distribution(
    grid: ProbabilityGrid,
    palette: Palette,
    scale: int = 8,
    grid_lines: bool = False,
    grid_color: Tuple[int, int, int] = GRID_COLOR,
) -> np.ndarray:
    """Blend each cell's distribution and blow it up ``scale`` times.

    Returns:
        uint8 array of shape (H*scale, W*scale, C) with C = 1 squeezed away,
        3 for RGB palettes and 4 for RGBA palettes.
    """
    blended = grid.blended_colours(palette)
    img = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
    if img.shape[2] == 1:
        img = img[:, :, 0]

    img = np.ascontiguousarray(img)
    h, w = img.shape[:2]
    big = cv2.resize(img, (w * scale, h * scale), interpolation=cv2.INTER_NEAREST)

    if grid_lines and scale > 1 and big.ndim == 3 and big.shape[2] >= 3:
        color = tuple(grid_color) + (255,) * (big.shape[2] - 3)
        big[::scale, :] = color
        big[:, ::scale] = color
    return big


def save_preview(
    grid: ProbabilityGrid,
    palette: Palette,
    output_path: Path,
    scale: int = 8,
    grid_lines: bool = False,
) -> Path:
    """Render and write the grid preview. Returns the output path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(render_distribution(grid, palette, scale, grid_lines)).save(output_path)
    logger.info("Preview saved: %s", output_path)
    return output_path
