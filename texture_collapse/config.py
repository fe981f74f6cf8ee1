"""Synthesis configuration: grid/kernel shapes and engine policies."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from .engine import Neighbourhood, QueueOrder
from .kernel import validate_kernel_shape

DEFAULT_GRID_SHAPE = (32, 32)
DEFAULT_KERNEL_SHAPE = (3, 3)
DEFAULT_PREVIEW_SCALE = 8


def parse_shape(value: Union[str, int, Tuple[int, int], list]) -> Tuple[int, int]:
    """Parse ``"32x24"``, ``"16"``, ``16`` or ``(32, 24)`` into ``(width, height)``."""
    if isinstance(value, int):
        return value, value
    if isinstance(value, str):
        parts = value.lower().replace(" ", "").split("x")
        if len(parts) == 1:
            return int(parts[0]), int(parts[0])
        if len(parts) == 2:
            return int(parts[0]), int(parts[1])
        raise ValueError(f"Cannot parse shape {value!r}; expected WxH")
    width, height = value
    return int(width), int(height)


@dataclass
class SynthesisConfig:
    """Everything needed to turn a sample into a collapsed grid."""

    # --- Model ---
    kernel_shape: Tuple[int, int] = DEFAULT_KERNEL_SHAPE
    keep_alpha: bool = False    # learn RGBA colours instead of RGB

    # --- Grid / engine ---
    grid_shape: Tuple[int, int] = DEFAULT_GRID_SHAPE
    seed: Optional[int] = None
    queue_order: QueueOrder = QueueOrder.LOWEST_PEAK_FIRST
    neighbourhood: Neighbourhood = Neighbourhood.FORWARD
    max_steps: Optional[int] = None  # None runs until every cell is collapsed
    reseed: bool = True              # restart from a random cell when the queue empties

    # --- Preview ---
    scale: int = DEFAULT_PREVIEW_SCALE
    grid_lines: bool = False

    def validate(self) -> "SynthesisConfig":
        self.kernel_shape = validate_kernel_shape(parse_shape(self.kernel_shape))
        self.grid_shape = parse_shape(self.grid_shape)
        if min(self.grid_shape) < 1:
            raise ValueError(f"Grid shape must be positive, got {self.grid_shape}")
        if self.scale < 1:
            raise ValueError(f"Preview scale must be >= 1, got {self.scale}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.max_steps}")
        self.queue_order = QueueOrder(self.queue_order)
        self.neighbourhood = Neighbourhood(self.neighbourhood)
        return self

    def to_dict(self) -> dict:
        d = {}
        for k, v in self.__dict__.items():
            if isinstance(v, Enum):
                d[k] = v.value
            elif isinstance(v, tuple):
                d[k] = list(v)
            else:
                d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "SynthesisConfig":
        cfg = cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
        return cfg.validate()

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "SynthesisConfig":
        with open(path) as f:
            return cls.from_dict(json.load(f))
