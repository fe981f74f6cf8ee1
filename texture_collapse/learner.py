"""Learn prior and conditional neighbourhood statistics from a sample image.

Every pixel of the sample contributes:
  - one count to the prior of its own colour
  - one count to the (centre colour, neighbourhood kernel) pair

Neighbour lookups wrap around the image edges (toroidal addressing), so a
pixel on the left border sees the right border as its left neighbour.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidModel
from .kernel import Kernel, validate_kernel_shape, window_offsets
from .palette import Palette

logger = logging.getLogger(__name__)


def wrap(value: int, lower: int, upper: int) -> int:
    """Wrap ``value`` into ``[lower, upper)``."""
    span = upper - lower
    if span <= 0:
        raise ValueError(f"Empty wrap range [{lower}, {upper})")
    return lower + (value - lower) % span


@dataclass(frozen=True, eq=False)
class Statistics:
    """Read-only texture model shared by every grid synthesised from it."""

    palette: Palette
    kernel_shape: Tuple[int, int]
    priors: np.ndarray                       # (n_colours,) marginal probabilities
    conditionals: Tuple[Mapping[Kernel, float], ...]  # per centre colour: P(kernel | colour)
    counts: np.ndarray                       # (n_colours,) raw centre occurrences

    @property
    def n_colours(self) -> int:
        return len(self.palette)

    def kernels_for(self, colour_index: int) -> Dict[Kernel, float]:
        return dict(self.conditionals[colour_index])

    def summary(self) -> dict:
        return {
            "colours": self.n_colours,
            "kernel_shape": f"{self.kernel_shape[0]}x{self.kernel_shape[1]}",
            "priors": [round(float(p), 6) for p in self.priors],
            "distinct_kernels": [len(c) for c in self.conditionals],
        }


def _neighbour_stack(index_map: np.ndarray, offsets: Sequence[Tuple[int, int]]) -> np.ndarray:
    """(H, W, len(offsets)) array of wrapped neighbour indices in kernel order."""
    height, width = index_map.shape
    layers = [
        # np.roll by (-dy, -dx) puts index_map[(y + dy) % h, (x + dx) % w] at [y, x]
        np.roll(index_map, shift=(-dy, -dx), axis=(0, 1))
        for dx, dy in offsets
    ]
    if not layers:
        return np.zeros((height, width, 0), dtype=index_map.dtype)
    return np.stack(layers, axis=-1)


def learn_statistics(
    image: np.ndarray,
    palette: Optional[Palette] = None,
    kernel_shape: Sequence[int] = (3, 3),
) -> Statistics:
    """Scan ``image`` and return its priors and kernel conditionals.

    Args:
        image: Sample as an (H, W) or (H, W, C) array.
        palette: Palette to index the sample with; built from the image if omitted.
        kernel_shape: ``(width, height)`` of the neighbourhood window, both odd.

    Returns:
        The learned :class:`Statistics`.

    Raises:
        InvalidKernelShape: the window has no single centre cell.
        InvalidModel: the sample contains no colours.
    """
    kernel_shape = validate_kernel_shape(kernel_shape)
    image = np.asarray(image)
    if palette is None:
        palette = Palette.from_image(image)
    if len(palette) == 0:
        raise InvalidModel("Sample image has no colours; cannot learn statistics")

    index_map = palette.index_image(image)
    height, width = index_map.shape
    if index_map.size == 0:
        raise InvalidModel("Sample image is empty; cannot learn statistics")
    n_colours = len(palette)

    counts = np.bincount(index_map.reshape(-1), minlength=n_colours).astype(np.float64)

    neighbours = _neighbour_stack(index_map, window_offsets(kernel_shape))
    pair_counts: List[Counter] = [Counter() for _ in range(n_colours)]
    for y in range(height):
        for x in range(width):
            centre = int(index_map[y, x])
            pair_counts[centre][Kernel(neighbours[y, x])] += 1

    conditionals: List[Dict[Kernel, float]] = []
    for colour_index, counter in enumerate(pair_counts):
        total = counts[colour_index]
        if total == 0:
            # colour never appears as a centre; leave its map empty
            conditionals.append({})
            continue
        conditionals.append({kernel: n / total for kernel, n in counter.items()})

    priors = counts / float(width * height)
    # shared read-only across every grid built from this model
    priors.flags.writeable = False
    counts.flags.writeable = False
    logger.info(
        "Learned %d colours, %d distinct kernels from %dx%d sample (kernel %dx%d)",
        n_colours, sum(len(c) for c in conditionals), width, height, *kernel_shape,
    )
    return Statistics(
        palette=palette,
        kernel_shape=kernel_shape,
        priors=priors,
        conditionals=tuple(MappingProxyType(c) for c in conditionals),
        counts=counts,
    )
