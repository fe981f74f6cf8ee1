"""Public interface for the texture-collapse synthesis toolkit."""

from __future__ import annotations

from .engine import CollapseEngine, Neighbourhood, QueueOrder, StepResult, StepStatus
from .errors import CellAlreadyCollapsed, CollapseError, InvalidKernelShape, InvalidModel
from .grid import ProbabilityGrid
from .kernel import Kernel
from .learner import Statistics, learn_statistics, wrap
from .palette import Palette

__all__ = [
    "CellAlreadyCollapsed",
    "CollapseEngine",
    "CollapseError",
    "InvalidKernelShape",
    "InvalidModel",
    "Kernel",
    "Neighbourhood",
    "Palette",
    "ProbabilityGrid",
    "QueueOrder",
    "Statistics",
    "StepResult",
    "StepStatus",
    "learn_statistics",
    "wrap",
]
