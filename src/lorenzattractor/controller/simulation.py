"""
Trajectory Buffer Manager
=========================
Drives the Lorenz generator on the Qt event loop and publishes snapshots.

Why is this file needed?
------------------------
1. Scheduling: One QTimer advances the simulation, a second, slower one
   publishes snapshots, so the renderer refresh rate is independent of the
   simulation rate.
2. Ownership: The manager is the single writer of the buffer and the seed.
   Consumers only receive immutable snapshots (single-slot mailbox).
3. Lifecycle: It enforces the Idle -> Running -> Faulted/Stopped state machine
   and cancels both timers on teardown.
4. Placement: With `settings.threaded` the generation loop runs on a
   TrajectoryWorker; the manager then only stores the newest worker snapshot
   and publishes it on its own timer.

Classes:
    TrajectoryBufferManager: The QObject owning buffer, seed and timers.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, TYPE_CHECKING

import numpy as np
from PySide6.QtCore import QObject, Signal

from lorenzattractor.config import ViewerSettings
from lorenzattractor.controller.scheduler import RecurringTimer, schedule_recurring
from lorenzattractor.controller.workers import TrajectoryWorker, WorkerRequest
from lorenzattractor.model.buffer import PublishedSnapshot, TrajectoryBuffer, advance
from lorenzattractor.model.lorenz import FaultCondition, NumericOverflowFault, SimulationState
from lorenzattractor.model.state import RunState

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class TrajectoryBufferManager(QObject):
    # Signals to update the view
    snapshot_published = Signal(object)  # PublishedSnapshot
    faulted = Signal(object)  # FaultCondition
    center_changed = Signal(object)  # (3,) ndarray
    state_changed = Signal(object)  # RunState

    def __init__(self, settings: Optional[ViewerSettings] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.settings = settings or ViewerSettings()
        self.params = self.settings.params

        self._state = self.settings.seed
        self._buffer = TrajectoryBuffer(self.settings.capacity)
        self._center: npt.NDArray[np.float64] = np.zeros(3)
        self._snapshot: Optional[PublishedSnapshot] = None
        self._sequence = 0
        self._dirty = False  # buffer changed since the last publish
        self._fault: Optional[FaultCondition] = None
        self._run_state = RunState.IDLE

        self._update_timer: Optional[RecurringTimer] = None
        self._publish_timer: Optional[RecurringTimer] = None

        # Threaded mode only
        self._worker: Optional[TrajectoryWorker] = None
        self._pending: Optional[PublishedSnapshot] = None

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def threaded(self) -> bool:
        return self.settings.threaded

    @property
    def simulation_state(self) -> SimulationState:
        """Current seed. In threaded mode the worker owns it until it has finished."""
        return self._state

    @property
    def buffer(self) -> TrajectoryBuffer:
        """Main-thread buffer. Stays empty in threaded mode (the worker owns its own)."""
        return self._buffer

    @property
    def center(self) -> npt.NDArray[np.float64]:
        return self._center.copy()

    @property
    def latest_snapshot(self) -> Optional[PublishedSnapshot]:
        """Last published snapshot (polling alternative to the signal)."""
        return self._snapshot

    @property
    def fault(self) -> Optional[FaultCondition]:
        return self._fault

    @property
    def timers(self) -> tuple[Optional[RecurringTimer], Optional[RecurringTimer]]:
        return self._update_timer, self._publish_timer

    @property
    def worker(self) -> Optional[TrajectoryWorker]:
        return self._worker

    def start(self) -> None:
        """Schedule the update and publish ticks (or launch the worker thread)."""
        if self._run_state is not RunState.IDLE:
            raise RuntimeError(f"Cannot start from state {self._run_state.name}; call reset() first.")

        logger.info(
            f"Starting simulation: sigma={self.params.sigma}, rho={self.params.rho}, "
            f"beta={self.params.beta:.4f}, dt={self.params.dt}, steps={self.params.steps}, "
            f"threaded={self.threaded}"
        )
        if self.threaded:
            self._start_worker()
        else:
            self._update_timer = schedule_recurring(
                self.settings.update_interval_ms, self.update_tick, parent=self, name="update timer"
            )
        self._publish_timer = schedule_recurring(
            self.settings.publish_interval_ms, self.publish_tick, parent=self, name="publish timer"
        )
        self._set_run_state(RunState.RUNNING)

    def stop(self) -> None:
        """Cancel all pending ticks. The last snapshot stays available."""
        self._cancel_timers()
        self._stop_worker()
        if self._run_state.is_terminal:
            return
        logger.info(f"Simulation stopped with {self._point_count()} buffered points.")
        self._set_run_state(RunState.STOPPED)

    def reset(self) -> None:
        """Return to Idle with the initial seed and an empty buffer."""
        self._cancel_timers()
        self._stop_worker()
        self._worker = None
        self._pending = None
        self._state = self.settings.seed
        self._buffer.clear()
        self._center = np.zeros(3)
        self._snapshot = None
        self._sequence = 0
        self._dirty = False
        self._fault = None
        logger.info("Simulation reset.")
        self._set_run_state(RunState.IDLE)

    # ------------------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------------------

    def update_tick(self) -> None:
        """Generate, append, truncate and reseed. Never yields mid-update."""
        if self._run_state is not RunState.RUNNING or self.threaded:
            return

        try:
            result = advance(self._state, self._buffer, self.params)
        except NumericOverflowFault as e:
            if e.condition.step > 0:
                self._dirty = True
            if e.truncated:
                self._set_center(self._buffer.center_of_mass())
            self._on_fault(e.condition, flush=self._dirty)
            return

        self._state = result.state
        self._dirty = True
        if result.truncated:
            self._set_center(self._buffer.center_of_mass())

    def publish_tick(self) -> None:
        """Swap a fresh snapshot into the mailbox and notify consumers."""
        if self._run_state is not RunState.RUNNING:
            return
        self._publish()

    # ------------------------------------------------------------------------------
    # Worker slots (queued from the worker thread)
    # ------------------------------------------------------------------------------

    def _on_worker_snapshot(self, snapshot: PublishedSnapshot) -> None:
        self._pending = snapshot
        if not np.array_equal(snapshot.center, self._center):
            self._set_center(snapshot.center)

    def _on_worker_fault(self, condition: FaultCondition) -> None:
        if self._run_state is RunState.RUNNING:
            self._on_fault(condition, flush=True)

    def _on_worker_error(self, message: str) -> None:
        logger.error(f"Trajectory worker failed: {message}")
        self.stop()

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _publish(self) -> None:
        if self.threaded:
            snapshot, self._pending = self._pending, None
            if snapshot is None:
                return
            self._sequence += 1
            self._snapshot = replace(snapshot, sequence=self._sequence)
        else:
            if len(self._buffer) == 0:
                return
            self._sequence += 1
            self._snapshot = self._buffer.snapshot(self._sequence, center=self._center)
            self._dirty = False
        logger.debug(f"Published snapshot #{self._sequence} ({len(self._snapshot)} points).")
        self.snapshot_published.emit(self._snapshot)

    def _on_fault(self, condition: FaultCondition, flush: bool) -> None:
        self._cancel_timers()
        self._fault = condition
        self._state = condition.last_valid_state
        # The finite prefix of the faulted tick is the last good data
        if flush:
            self._publish()
        logger.error(
            f"Numeric overflow at step {condition.step}; simulation halted with "
            f"{self._point_count()} valid points (dt={self.params.dt})."
        )
        self._set_run_state(RunState.FAULTED)
        self.faulted.emit(condition)

    def _set_center(self, center: npt.NDArray[np.float64]) -> None:
        self._center = np.array(center, dtype=np.float64)
        self.center_changed.emit(self._center.copy())

    def _point_count(self) -> int:
        if self.threaded:
            return len(self._snapshot) if self._snapshot is not None else 0
        return len(self._buffer)

    def _start_worker(self) -> None:
        worker = TrajectoryWorker(WorkerRequest.from_settings(self.settings), capacity=self.settings.capacity)
        worker.points_ready.connect(self._on_worker_snapshot)
        worker.fault_occurred.connect(self._on_worker_fault)
        worker.error_occurred.connect(self._on_worker_error)
        self._worker = worker
        worker.start()

    def _stop_worker(self) -> None:
        if self._worker is not None and self._worker.isRunning():
            self._worker.stop()
            self._worker.wait()

    def _cancel_timers(self) -> None:
        for timer in (self._update_timer, self._publish_timer):
            if timer is not None:
                timer.cancel()

    def _set_run_state(self, state: RunState) -> None:
        if state is self._run_state:
            return
        logger.debug(f"Run state: {self._run_state.name} -> {state.name}")
        self._run_state = state
        self.state_changed.emit(state)
