"""
Lorenz System (Trajectory Generator)
====================================
Fixed-step Euler integration of the Lorenz equations.

Why is this file needed?
------------------------
1. Physics: It is the only place where the differential equations live.
2. Safety: It detects non-finite coordinates eagerly so a diverging run never
   pushes NaN/inf points into the buffer.

Classes:
    LorenzParameters: Immutable integration settings.
    SimulationState: Current position in phase space.
    FaultCondition: Where and from which state integration broke down.
    Trajectory: Points produced by one generator call.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class LorenzParameters:
    sigma: float = 10.0
    rho: float = 28.0
    beta: float = 8.0 / 3.0
    dt: float = 0.01
    steps: int = 10  # integration steps per generator call

    def __post_init__(self) -> None:
        if int(self.steps) != self.steps or self.steps < 1:
            raise ValueError(f"steps must be a positive integer, got {self.steps!r}")


@dataclass(frozen=True)
class SimulationState:
    """Position (x, y, z) in phase space."""
    x: float = 0.1
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_point(cls, point: npt.NDArray[np.float64]) -> SimulationState:
        return cls(float(point[0]), float(point[1]), float(point[2]))

    def as_tuple(self) -> tuple[float, float, float]:
        return self.x, self.y, self.z

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)


@dataclass(frozen=True)
class FaultCondition:
    """
    Numeric overflow report.

    Attributes:
        step: Zero-based index of the iteration that produced a non-finite value.
        last_valid_state: Last finite state (the seed if step 0 failed).
    """
    step: int
    last_valid_state: SimulationState


class NumericOverflowFault(ArithmeticError):
    """Raised when the integration produced a non-finite coordinate."""

    def __init__(self, condition: FaultCondition, truncated: bool = False) -> None:
        self.condition = condition
        # Set by `advance` when the valid prefix pushed the buffer over capacity
        self.truncated = truncated
        state = condition.last_valid_state
        super().__init__(
            f"Non-finite coordinate at step {condition.step} "
            f"(last valid state: x={state.x!r}, y={state.y!r}, z={state.z!r})"
        )


@dataclass(frozen=True)
class Trajectory:
    """Output of one generator call."""
    points: npt.NDArray[np.float64]  # (N, 3) array
    fault: Optional[FaultCondition] = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def last_state(self) -> Optional[SimulationState]:
        if len(self.points) == 0:
            return None
        return SimulationState.from_point(self.points[-1])

    def raise_for_fault(self, truncated: bool = False) -> None:
        if self.fault is not None:
            raise NumericOverflowFault(self.fault, truncated=truncated)


def calculate_lorenz(
    x0: float,
    y0: float,
    z0: float,
    sigma: float,
    rho: float,
    beta: float,
    dt: float,
    steps: int,
) -> Trajectory:
    """
    Advance the Lorenz system by a fixed number of Euler steps.

    Each iteration stores the *updated* point. Integration stops at the first
    non-finite coordinate; that point is dropped and reported as a fault.

    Args:
        x0, y0, z0: Seed state.
        sigma, rho, beta: Lorenz constants.
        dt: Integration step size.
        steps: Number of integration steps.

    Returns:
        Trajectory with up to `steps` points and an optional fault.
    """
    x, y, z = float(x0), float(y0), float(z0)
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        return Trajectory(_as_points([]), FaultCondition(0, SimulationState(x, y, z)))

    points: list[tuple[float, float, float]] = []
    fault: Optional[FaultCondition] = None

    for i in range(steps):
        dx = sigma * (y - x)
        dy = x * (rho - z) - y
        dz = x * y - beta * z

        nx = x + dx * dt
        ny = y + dy * dt
        nz = z + dz * dt

        if not (math.isfinite(nx) and math.isfinite(ny) and math.isfinite(nz)):
            fault = FaultCondition(step=i, last_valid_state=SimulationState(x, y, z))
            break

        x, y, z = nx, ny, nz
        points.append((x, y, z))

    return Trajectory(_as_points(points), fault)


def generate(state: SimulationState, params: LorenzParameters) -> Trajectory:
    """Run `calculate_lorenz` from `state` with the given parameters."""
    return calculate_lorenz(
        state.x, state.y, state.z,
        params.sigma, params.rho, params.beta,
        params.dt, params.steps,
    )


def _as_points(points: list[tuple[float, float, float]]) -> npt.NDArray[np.float64]:
    return np.asarray(points, dtype=np.float64).reshape(-1, 3)
