"""
Background Workers (Threading)
==============================
QThread variant of the trajectory generator loop.

Why is this file needed?
------------------------
1. Placement: Large `steps` values or short intervals can be moved off the GUI
   thread. The algorithm is the same `advance` used by the main-thread manager,
   which drives this worker when `threaded` is enabled in the settings.
2. Signals: The worker owns its buffer and seed exclusively and hands the GUI
   only immutable snapshots through queued signals.

Classes:
    WorkerRequest: Start message (seed, parameters, interval).
    TrajectoryWorker: Runs generate/append/publish until stopped or faulted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
from PySide6.QtCore import QThread, Signal

from lorenzattractor import config
from lorenzattractor.model.buffer import TrajectoryBuffer, advance
from lorenzattractor.model.lorenz import LorenzParameters, NumericOverflowFault, SimulationState

if TYPE_CHECKING:
    import numpy.typing as npt

    from lorenzattractor.config import ViewerSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerRequest:
    x: float = config.DEFAULT_SEED[0]
    y: float = config.DEFAULT_SEED[1]
    z: float = config.DEFAULT_SEED[2]
    sigma: float = config.DEFAULT_SIGMA
    rho: float = config.DEFAULT_RHO
    beta: float = config.DEFAULT_BETA
    dt: float = config.DEFAULT_DT
    steps: int = config.DEFAULT_STEPS_PER_TICK
    update_interval: int = config.UPDATE_INTERVAL_MS  # ms

    @classmethod
    def from_settings(cls, settings: ViewerSettings) -> WorkerRequest:
        p = settings.params
        return cls(
            x=settings.seed.x, y=settings.seed.y, z=settings.seed.z,
            sigma=p.sigma, rho=p.rho, beta=p.beta, dt=p.dt, steps=p.steps,
            update_interval=settings.update_interval_ms,
        )

    @property
    def seed(self) -> SimulationState:
        return SimulationState(self.x, self.y, self.z)

    @property
    def params(self) -> LorenzParameters:
        return LorenzParameters(self.sigma, self.rho, self.beta, self.dt, self.steps)


class TrajectoryWorker(QThread):
    # Signals to update the UI from the background
    points_ready = Signal(object)  # PublishedSnapshot
    fault_occurred = Signal(object)  # FaultCondition
    error_occurred = Signal(str)

    def __init__(
        self,
        request: WorkerRequest,
        capacity: int = config.BUFFER_CAPACITY,
        max_ticks: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.request = request
        self.params = request.params
        self.buffer = TrajectoryBuffer(capacity)
        self.state = request.seed
        self.center: npt.NDArray[np.float64] = np.zeros(3)
        self.max_ticks = max_ticks
        self.ticks = 0
        self.sequence = 0
        self.is_running = True

    def run(self) -> None:
        try:
            logger.info("Starting trajectory worker in background thread...")
            while self.is_running:
                if self.max_ticks is not None and self.ticks >= self.max_ticks:
                    break

                try:
                    result = advance(self.state, self.buffer, self.params)
                except NumericOverflowFault as e:
                    logger.error(f"Worker halted: {e}")
                    self.state = e.condition.last_valid_state
                    if e.truncated:
                        self._refresh_center()
                    # The finite prefix of the faulted tick is still published
                    if e.condition.step > 0:
                        self._emit_snapshot()
                    self.fault_occurred.emit(e.condition)
                    break

                self.state = result.state
                self.ticks += 1
                if result.truncated:
                    self._refresh_center()
                self._emit_snapshot()

                if self.request.update_interval > 0:
                    self.msleep(self.request.update_interval)

            logger.info(f"Trajectory worker finished after {self.ticks} ticks.")

        except Exception as e:
            logger.error(f"Error in TrajectoryWorker: {e}")
            self.error_occurred.emit(str(e))

    def stop(self) -> None:
        self.is_running = False

    def _refresh_center(self) -> None:
        self.center = self.buffer.center_of_mass()

    def _emit_snapshot(self) -> None:
        self.sequence += 1
        self.points_ready.emit(self.buffer.snapshot(self.sequence, center=self.center))
