"""Greedy collapse loop over a :class:`ProbabilityGrid`.

Each step pops the lowest-scored candidate, commits it to its most probable
colour, then replaces the whole candidate queue with the still-uncollapsed
neighbours of that cell. Learned conditionals are carried on the engine but
do not yet feed back into neighbour distributions.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from .grid import Cell, ProbabilityGrid
from .kernel import validate_kernel_shape, window_offsets
from .learner import Statistics, wrap

logger = logging.getLogger(__name__)


class QueueOrder(str, Enum):
    LOWEST_PEAK_FIRST = "lowest_peak"    # least confident cell dequeues first
    HIGHEST_PEAK_FIRST = "highest_peak"  # most confident cell dequeues first


class Neighbourhood(str, Enum):
    FORWARD = "forward"  # offsets [0, kw // 2) x [0, kh // 2)
    WINDOW = "window"    # full kernel window minus its centre


class StepStatus(str, Enum):
    COLLAPSED = "collapsed"
    QUEUE_EXHAUSTED = "queue_exhausted"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one :meth:`CollapseEngine.do_step` call."""
    status: StepStatus
    cell: Optional[Cell] = None
    colour_index: Optional[int] = None
    enqueued: int = 0

    @property
    def exhausted(self) -> bool:
        return self.status is StepStatus.QUEUE_EXHAUSTED


@dataclass(order=True)
class _Candidate:
    priority: float
    sequence: int
    cell: Cell = field(compare=False)


class CollapseEngine:
    """Drives synthesis one externally triggered step at a time."""

    def __init__(
        self,
        grid: ProbabilityGrid,
        statistics: Statistics,
        *,
        queue_order: QueueOrder = QueueOrder.LOWEST_PEAK_FIRST,
        neighbourhood: Neighbourhood = Neighbourhood.FORWARD,
        seed: Optional[int] = None,
        initial_cell: Optional[Cell] = None,
    ):
        if grid.n_colours != statistics.n_colours:
            raise ValueError(
                f"Grid tracks {grid.n_colours} colours, statistics have {statistics.n_colours}"
            )
        self.grid = grid
        self.statistics = statistics
        self.kernel_shape = validate_kernel_shape(statistics.kernel_shape)
        self.queue_order = QueueOrder(queue_order)
        self.neighbourhood = Neighbourhood(neighbourhood)
        self.rng = np.random.default_rng(seed)
        self.progress_callback: Optional[Callable[[StepResult], None]] = None
        self.steps_taken = 0

        self._queue: List[_Candidate] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self._offsets = self._neighbour_offsets()

        if initial_cell is None:
            initial_cell = (
                int(self.rng.integers(0, grid.width)),
                int(self.rng.integers(0, grid.height)),
            )
        initial_cell = grid.check_cell(initial_cell)
        self._push(initial_cell, 0.0)
        logger.debug("Engine seeded at %s", initial_cell)

    def _neighbour_offsets(self) -> List[Tuple[int, int]]:
        if self.neighbourhood is Neighbourhood.WINDOW:
            return window_offsets(self.kernel_shape)
        kw, kh = self.kernel_shape
        return [(dx, dy) for dx in range(kw // 2) for dy in range(kh // 2)]

    # ------------------------- queue ---------------------------

    def _push(self, cell: Cell, priority: float) -> None:
        heapq.heappush(self._queue, _Candidate(priority, next(self._counter), cell))

    def _score(self, cell: Cell) -> float:
        peak = self.grid.peak_probability(cell)
        if self.queue_order is QueueOrder.HIGHEST_PEAK_FIRST:
            return -peak
        return peak

    @property
    def queue(self) -> List[Tuple[Cell, float]]:
        """Pending ``(cell, priority)`` pairs, lowest priority first."""
        return [(c.cell, c.priority) for c in sorted(self._queue)]

    def __len__(self) -> int:
        return len(self._queue)

    # ------------------------- stepping ---------------------------

    def seed(self, cell: Optional[Cell] = None) -> Optional[Cell]:
        """Queue ``cell`` (or a random uncollapsed cell) at priority 0.

        Returns the seeded cell, or None when the grid is already complete.
        """
        with self._lock:
            if cell is None:
                remaining = list(self.grid.uncollapsed_cells())
                if not remaining:
                    return None
                cell = remaining[int(self.rng.integers(0, len(remaining)))]
            elif self.grid.is_collapsed(cell):
                return None
            self._push(cell, 0.0)
            return cell

    def do_step(self) -> StepResult:
        """Collapse the next candidate and requeue its neighbours."""
        with self._lock:
            result = self._step()
        self._report(result)
        return result

    def _step(self) -> StepResult:
        grid = self.grid
        while self._queue:
            cell = heapq.heappop(self._queue).cell
            if not grid.is_collapsed(cell):
                break
        else:
            logger.debug("Candidate queue exhausted after %d steps", self.steps_taken)
            return StepResult(StepStatus.QUEUE_EXHAUSTED)

        colour_index = grid.argmax_colour(cell)
        grid.collapse(cell, colour_index)
        self.steps_taken += 1

        self._queue.clear()
        x, y = cell
        queued = set()
        for dx, dy in self._offsets:
            neighbour = (wrap(x + dx, 0, grid.width), wrap(y + dy, 0, grid.height))
            if neighbour in queued or grid.is_collapsed(neighbour):
                continue
            queued.add(neighbour)
            self._push(neighbour, self._score(neighbour))

        logger.debug("Collapsed %s -> colour %d, %d candidates", cell, colour_index, len(queued))
        return StepResult(StepStatus.COLLAPSED, cell, colour_index, len(queued))

    def run(self, max_steps: Optional[int] = None, reseed: bool = True) -> int:
        """Step until the grid is complete, ``max_steps`` collapses, or the queue stalls.

        With ``reseed`` an exhausted queue is refilled with a random
        uncollapsed cell. Returns the number of cells collapsed.
        """
        collapsed = 0
        while max_steps is None or collapsed < max_steps:
            result = self.do_step()
            if not result.exhausted:
                collapsed += 1
                continue
            if not reseed or self.seed() is None:
                break
        logger.info(
            "Run finished: %d collapsed this run, %d/%d cells total",
            collapsed, self.grid.collapsed_count, self.grid.width * self.grid.height,
        )
        return collapsed

    def _report(self, result: StepResult) -> None:
        if not self.progress_callback:
            return
        try:
            self.progress_callback(result)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Progress callback failed: %s", exc)
