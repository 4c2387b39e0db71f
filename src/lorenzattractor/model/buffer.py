"""
Trajectory Buffer
=================
Bounded, insertion-ordered history of trajectory points and the immutable
snapshots published from it.

Why is this file needed?
------------------------
1. Retention: It keeps only the most recent `capacity` points (FIFO eviction).
2. Publishing: It produces read-only snapshots for the renderer so that the
   consumer never sees a buffer mid-mutation.
3. Update function: `advance` threads the simulation state through one tick
   explicitly instead of relying on shared closures.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

import numpy as np

from lorenzattractor.model.lorenz import (
    LorenzParameters, NumericOverflowFault, SimulationState, generate
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

SEGMENT_COUNT = 3


def center_of_mass(points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Arithmetic mean of all points; the origin for an empty array."""
    if len(points) == 0:
        return np.zeros(3, dtype=np.float64)
    return points.mean(axis=0)


def split_into_segments(points: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], ...]:
    """
    Partition points into three contiguous slices by index.

    The first two slices hold floor(N / 3) points each, the last one holds the
    remainder. Concatenating the slices reconstructs the input exactly.
    """
    third = len(points) // SEGMENT_COUNT
    return points[:third], points[third:2 * third], points[2 * third:]


class TrajectoryBuffer:
    """Ordered point history with a maximum length."""

    def __init__(self, capacity: int = 5000) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._points: npt.NDArray[np.float64] = np.empty((0, 3), dtype=np.float64)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> npt.NDArray[np.float64]:
        """Read-only view of the current contents."""
        view = self._points.view()
        view.flags.writeable = False
        return view

    @property
    def last_point(self) -> Optional[npt.NDArray[np.float64]]:
        if len(self._points) == 0:
            return None
        return self._points[-1].copy()

    def extend(self, new_points: npt.NDArray[np.float64]) -> bool:
        """
        Append points and drop the oldest overflow.

        Returns:
            True if the buffer had to be truncated.
        """
        if len(new_points) == 0:
            return False
        combined = np.concatenate((self._points, np.asarray(new_points, dtype=np.float64).reshape(-1, 3)))
        truncated = len(combined) > self.capacity
        if truncated:
            dropped = len(combined) - self.capacity
            combined = combined[-self.capacity:]
            logger.debug(f"Buffer truncated: dropped {dropped} oldest points.")
        self._points = combined
        return truncated

    def clear(self) -> None:
        self._points = np.empty((0, 3), dtype=np.float64)

    def center_of_mass(self) -> npt.NDArray[np.float64]:
        return center_of_mass(self._points)

    def snapshot(self, sequence: int, center: Optional[npt.NDArray[np.float64]] = None) -> PublishedSnapshot:
        """Copy the buffer into an immutable snapshot."""
        points = self._points.copy()
        points.flags.writeable = False
        if center is None:
            center = center_of_mass(points)
        center = np.array(center, dtype=np.float64)
        center.flags.writeable = False
        return PublishedSnapshot(points=points, center=center, sequence=sequence)


@dataclass(frozen=True)
class PublishedSnapshot:
    """Point-in-time copy of the buffer handed to consumers."""
    points: npt.NDArray[np.float64]
    center: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.points)

    @property
    def segments(self) -> tuple[npt.NDArray[np.float64], ...]:
        return split_into_segments(self.points)

    def segment(self, index: int) -> npt.NDArray[np.float64]:
        """Return segment 1, 2 or 3."""
        if index not in (1, 2, 3):
            raise ValueError(f"Segment index must be 1, 2 or 3, got {index}")
        return self.segments[index - 1]


@dataclass(frozen=True)
class TickResult:
    state: SimulationState
    appended: int
    truncated: bool


def advance(
    state: SimulationState,
    buffer: TrajectoryBuffer,
    params: LorenzParameters,
) -> TickResult:
    """
    Run one update tick: generate, append, truncate, reseed.

    The valid prefix of a faulted run is still appended before
    `NumericOverflowFault` is raised, so the buffer ends on the last finite point.
    The exception carries `truncated` so callers can refresh derived data.

    Args:
        state: Seed for this tick.
        buffer: Buffer owned by the caller; mutated in place.
        params: Integration parameters.

    Returns:
        TickResult with the new seed (the buffer's last point).

    Raises:
        NumericOverflowFault: If a non-finite coordinate was produced.
    """
    trajectory = generate(state, params)
    truncated = buffer.extend(trajectory.points)
    trajectory.raise_for_fault(truncated=truncated)

    new_state = trajectory.last_state or state
    return TickResult(state=new_state, appended=len(trajectory), truncated=truncated)
