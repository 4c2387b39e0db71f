import numpy as np

from lorenzattractor.config import ViewerSettings
from lorenzattractor.controller.workers import TrajectoryWorker, WorkerRequest
from lorenzattractor.model.lorenz import LorenzParameters, SimulationState, calculate_lorenz


def test_request_defaults():
    req = WorkerRequest()
    assert req.seed == SimulationState(0.1, 0.0, 0.0)
    assert req.params.steps == 10
    assert req.update_interval == 100


def test_run_streams_bounded_snapshots(qapp):
    worker = TrajectoryWorker(WorkerRequest(update_interval=0), capacity=25, max_ticks=4)
    snapshots = []
    worker.points_ready.connect(snapshots.append)

    worker.run()

    assert worker.ticks == 4
    assert [len(s) for s in snapshots] == [10, 20, 25, 25]
    reference = calculate_lorenz(0.1, 0.0, 0.0, 10.0, 28.0, 8.0 / 3.0, 0.01, 40)
    np.testing.assert_array_equal(snapshots[-1].points, reference.points[-25:])
    assert worker.state == SimulationState.from_point(reference.points[-1])


def test_run_stops_on_fault(qapp):
    worker = TrajectoryWorker(WorkerRequest(dt=1000.0, steps=2, update_interval=0), max_ticks=100)
    faults = []
    snapshots = []
    worker.fault_occurred.connect(faults.append)
    worker.points_ready.connect(snapshots.append)

    worker.run()

    assert len(faults) == 1
    assert worker.ticks < 100
    assert np.all(np.isfinite(worker.buffer.points))
    assert worker.state == faults[0].last_valid_state


def test_stop_before_run(qapp):
    worker = TrajectoryWorker(WorkerRequest(update_interval=0))
    worker.stop()
    worker.run()
    assert worker.ticks == 0


def test_runs_in_background_thread(qapp):
    worker = TrajectoryWorker(WorkerRequest(update_interval=1), max_ticks=3)
    snapshots = []
    worker.points_ready.connect(snapshots.append)

    worker.start()
    assert worker.wait(5000)
    qapp.processEvents()

    assert worker.ticks == 3
    assert len(snapshots) == 3


def test_request_from_settings():
    settings = ViewerSettings(
        params=LorenzParameters(rho=99.0, dt=0.005, steps=4),
        seed=SimulationState(1.0, 2.0, 3.0),
        update_interval_ms=25,
    )
    req = WorkerRequest.from_settings(settings)
    assert req.seed == settings.seed
    assert req.params == settings.params
    assert req.update_interval == 25


def test_center_only_moves_on_truncation(qapp):
    worker = TrajectoryWorker(WorkerRequest(update_interval=0), capacity=25, max_ticks=4)
    snapshots = []
    worker.points_ready.connect(snapshots.append)

    worker.run()

    np.testing.assert_array_equal(snapshots[0].center, np.zeros(3))
    np.testing.assert_array_equal(snapshots[1].center, np.zeros(3))
    np.testing.assert_allclose(snapshots[2].center, snapshots[2].points.mean(axis=0))
    np.testing.assert_allclose(snapshots[3].center, snapshots[3].points.mean(axis=0))
    assert [s.sequence for s in snapshots] == [1, 2, 3, 4]


def test_fault_publishes_valid_prefix(qapp):
    worker = TrajectoryWorker(WorkerRequest(dt=1000.0, steps=50, update_interval=0), capacity=100)
    snapshots = []
    faults = []
    worker.points_ready.connect(snapshots.append)
    worker.fault_occurred.connect(faults.append)

    worker.run()

    assert worker.ticks == 0
    assert len(faults) == 1
    assert len(snapshots) == 1
    assert len(snapshots[0]) == faults[0].step
    np.testing.assert_array_equal(snapshots[0].points, worker.buffer.points)


def test_fault_on_full_buffer_refreshes_center(qapp):
    worker = TrajectoryWorker(WorkerRequest(dt=0.05, steps=3, update_interval=0), capacity=3, max_ticks=200)
    snapshots = []
    faults = []
    worker.points_ready.connect(snapshots.append)
    worker.fault_occurred.connect(faults.append)

    worker.run()

    assert len(faults) == 1
    np.testing.assert_allclose(worker.center, worker.buffer.points.mean(axis=0))
    np.testing.assert_array_equal(snapshots[-1].points, worker.buffer.points)
    np.testing.assert_array_equal(snapshots[-1].center, worker.center)
