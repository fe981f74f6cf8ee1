"""Per-cell colour distributions of the grid being synthesised.

Cells are addressed as ``(x, y)``. Arrays are stored ``[y, x]`` like image
arrays, so ``probabilities[y, x]`` is the distribution of cell ``(x, y)``.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence, Tuple

import numpy as np

from .errors import CellAlreadyCollapsed, InvalidModel
from .palette import Palette

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


class ProbabilityGrid:
    """Colour distribution and collapsed flag for every cell of the output."""

    def __init__(self, probabilities: np.ndarray, collapsed: np.ndarray):
        if probabilities.ndim != 3 or probabilities.shape[:2] != collapsed.shape:
            raise ValueError(
                f"Mismatched grid arrays: {probabilities.shape} vs {collapsed.shape}"
            )
        self.probabilities = probabilities
        self.collapsed = collapsed

    @classmethod
    def initialise(cls, shape: Sequence[int], priors: Sequence[float]) -> "ProbabilityGrid":
        """Every cell starts uncollapsed with its own copy of ``priors``."""
        width, height = (int(v) for v in shape)
        if width < 1 or height < 1:
            raise ValueError(f"Grid shape must be positive, got {width}x{height}")
        priors = np.asarray(priors, dtype=np.float64)
        if priors.ndim != 1 or priors.size == 0:
            raise InvalidModel("Cannot initialise a grid without colour priors")

        probabilities = np.tile(priors, (height, width, 1))
        collapsed = np.zeros((height, width), dtype=bool)
        logger.debug("Initialised %dx%d grid over %d colours", width, height, priors.size)
        return cls(probabilities, collapsed)

    @property
    def width(self) -> int:
        return self.collapsed.shape[1]

    @property
    def height(self) -> int:
        return self.collapsed.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def n_colours(self) -> int:
        return self.probabilities.shape[2]

    def check_cell(self, cell: Cell) -> Tuple[int, int]:
        """Return ``cell`` as ints, raising IndexError when it lies outside the grid."""
        x, y = int(cell[0]), int(cell[1])
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Cell {cell} outside {self.width}x{self.height} grid")
        return x, y

    def distribution(self, cell: Cell) -> np.ndarray:
        x, y = self.check_cell(cell)
        return self.probabilities[y, x].copy()

    def is_collapsed(self, cell: Cell) -> bool:
        x, y = self.check_cell(cell)
        return bool(self.collapsed[y, x])

    def collapse(self, cell: Cell, colour_index: int) -> None:
        """Fix ``cell`` to a one-hot distribution on ``colour_index``."""
        x, y = self.check_cell(cell)
        if self.collapsed[y, x]:
            raise CellAlreadyCollapsed(f"Cell {(x, y)} is already collapsed")
        if not 0 <= colour_index < self.n_colours:
            raise IndexError(f"Colour index {colour_index} outside palette of {self.n_colours}")
        self.probabilities[y, x] = 0.0
        self.probabilities[y, x, colour_index] = 1.0
        self.collapsed[y, x] = True

    def argmax_colour(self, cell: Cell) -> int:
        """Most probable colour index; ties go to the lowest index."""
        x, y = self.check_cell(cell)
        return int(np.argmax(self.probabilities[y, x]))

    def peak_probability(self, cell: Cell) -> float:
        x, y = self.check_cell(cell)
        return float(self.probabilities[y, x].max())

    @property
    def collapsed_count(self) -> int:
        return int(np.count_nonzero(self.collapsed))

    @property
    def is_complete(self) -> bool:
        return bool(self.collapsed.all())

    def uncollapsed_cells(self) -> Iterator[Cell]:
        ys, xs = np.nonzero(~self.collapsed)
        for x, y in zip(xs.tolist(), ys.tolist()):
            yield x, y

    def blended_colours(self, palette: Palette) -> np.ndarray:
        """Probability-weighted palette colour per cell, shape (H, W, channels)."""
        colours = palette.as_array()
        if len(colours) != self.n_colours:
            raise ValueError(
                f"Palette has {len(colours)} colours, grid expects {self.n_colours}"
            )
        return self.probabilities @ colours
