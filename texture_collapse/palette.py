"""Colour <-> index mapping built from a sample image."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Colour = Tuple


def _pixel_rows(image: np.ndarray) -> np.ndarray:
    """Flatten an (H, W) or (H, W, C) image into row-major (H*W, C) pixels."""
    image = np.asarray(image)
    if image.ndim == 2:
        return image.reshape(-1, 1)
    if image.ndim == 3:
        return image.reshape(-1, image.shape[2])
    raise ValueError(f"Expected a 2-D or 3-D image array, got shape {image.shape}")


def _as_colour(colour) -> Colour:
    """Scalars name single-channel colours, so ``5`` and ``(5,)`` are the same key."""
    if np.ndim(colour) == 0:
        return (np.asarray(colour).item(),)
    return tuple(np.asarray(colour).tolist())


@dataclass(frozen=True)
class Palette:
    """Dense, first-seen-ordered indices for every distinct colour of a sample."""

    colours: Tuple[Colour, ...] = ()
    _lookup: Dict[Colour, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        lookup: Dict[Colour, int] = {}
        for colour in self.colours:
            if colour in lookup:
                raise ValueError(f"Duplicate palette colour {colour}")
            lookup[colour] = len(lookup)
        object.__setattr__(self, "_lookup", lookup)

    @classmethod
    def from_image(cls, image: np.ndarray) -> "Palette":
        """Assign indices in row-major scan order of first appearance."""
        pixels = _pixel_rows(image)
        if len(pixels) == 0:
            logger.debug("Empty sample image, palette is empty")
            return cls(())

        unique, first_seen = np.unique(pixels, axis=0, return_index=True)
        order = np.argsort(first_seen, kind="stable")
        colours = tuple(tuple(unique[i].tolist()) for i in order)
        logger.debug("Palette built with %d colours from %d pixels", len(colours), len(pixels))
        return cls(colours)

    def __len__(self) -> int:
        return len(self.colours)

    def __contains__(self, colour) -> bool:
        return _as_colour(colour) in self._lookup

    @property
    def colour_to_index(self) -> Dict[Colour, int]:
        return dict(self._lookup)

    def index_of(self, colour) -> int:
        return self._lookup[_as_colour(colour)]

    def colour_of(self, index: int) -> Colour:
        return self.colours[index]

    def index_image(self, image: np.ndarray) -> np.ndarray:
        """Map every pixel to its palette index, giving an (H, W) int array."""
        image = np.asarray(image)
        pixels = _pixel_rows(image)
        shape = image.shape[:2]
        if len(pixels) == 0:
            return np.zeros(shape, dtype=np.int64)

        unique, inverse = np.unique(pixels, axis=0, return_inverse=True)
        try:
            mapping = np.array([self._lookup[tuple(c.tolist())] for c in unique], dtype=np.int64)
        except KeyError as exc:
            raise ValueError(f"Image colour {exc.args[0]} is not in the palette") from exc
        return mapping[inverse.reshape(-1)].reshape(shape)

    def as_array(self) -> np.ndarray:
        """Colours as an (n_colours, channels) float array."""
        if not self.colours:
            return np.zeros((0, 0), dtype=np.float64)
        return np.asarray(self.colours, dtype=np.float64)
