"""
Main Application Window
=======================
The primary GUI container: camera/follow buttons above the 3D view.

Why is this file needed?
------------------------
1. Layout: It organizes the button row and the PyVista widget.
2. Routing: It connects the simulation signals to the widget and the
   buttons to the ViewerController, and runs the per-frame timer.
"""
from __future__ import annotations

import logging

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QMessageBox
)

from lorenzattractor import config
from lorenzattractor.controller.scheduler import RecurringTimer, schedule_recurring
from lorenzattractor.controller.simulation import TrajectoryBufferManager
from lorenzattractor.controller.viewer import ViewerController
from lorenzattractor.model.camera import CameraPreset, FollowMode
from lorenzattractor.model.lorenz import FaultCondition
from lorenzattractor.model.state import RunState
from lorenzattractor.view.widgets.plot_3d import AttractorWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Lorenz Attractor"


class MainWindow(QMainWindow):
    def __init__(
        self,
        manager: TrajectoryBufferManager,
        viewer: ViewerController,
        frame_interval_ms: int = config.FRAME_INTERVAL_MS,
    ) -> None:
        super().__init__()
        self.manager = manager
        self.viewer = viewer

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1200, 800)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # --- 1. BUTTON ROW ---
        buttons = QHBoxLayout()
        buttons.setContentsMargins(10, 10, 10, 10)
        for preset in CameraPreset:
            btn = QPushButton(preset.name.capitalize())
            btn.clicked.connect(lambda _checked=False, p=preset: self.on_camera_clicked(p))
            buttons.addWidget(btn)
        for segment, color in enumerate(config.SEGMENT_COLORS, start=1):
            btn = QPushButton(f"Follow {color.capitalize()}")
            btn.clicked.connect(lambda _checked=False, s=segment: self.on_follow_clicked(s))
            buttons.addWidget(btn)

        btn_free = QPushButton("Free Camera")
        btn_free.clicked.connect(lambda _checked=False: self.viewer.stop_following())
        buttons.addWidget(btn_free)

        self.btn_track = QPushButton("Track")
        self.btn_track.setCheckable(True)
        self.btn_track.setToolTip("Move along with the followed point instead of orbiting it")
        self.btn_track.toggled.connect(self.on_track_toggled)
        buttons.addWidget(self.btn_track)

        self.btn_restart = QPushButton("Restart")
        self.btn_restart.setEnabled(False)
        self.btn_restart.clicked.connect(self.on_restart_clicked)
        buttons.addWidget(self.btn_restart)
        buttons.addStretch()

        self.lbl_status = QLabel("Status: -")
        buttons.addWidget(self.lbl_status)
        main_layout.addLayout(buttons)

        # --- 2. 3D VIEW ---
        self.visualizer = AttractorWidget()
        main_layout.addWidget(self.visualizer)

        # --- SIGNAL CONNECTIONS ---
        self.manager.snapshot_published.connect(self.viewer.on_snapshot)
        self.manager.snapshot_published.connect(self.visualizer.update_trajectory)
        self.manager.center_changed.connect(self.viewer.on_center_changed)
        self.manager.state_changed.connect(self.on_run_state_changed)
        self.manager.faulted.connect(self.on_fault)
        self.viewer.directive_changed.connect(self.visualizer.apply_directive)

        self.on_run_state_changed(self.manager.run_state)

        # Frame callback (camera follow)
        self._frame_timer: RecurringTimer = schedule_recurring(
            frame_interval_ms, self.on_frame, parent=self, name="frame timer"
        )

    # --- SLOTS ---

    def on_camera_clicked(self, preset: CameraPreset) -> None:
        self.viewer.switch_camera(preset)

    def on_follow_clicked(self, segment: int) -> None:
        self.viewer.start_following(segment, mode=self._follow_mode())

    def on_track_toggled(self, checked: bool) -> None:
        self.viewer.set_follow_mode(self._follow_mode())

    def on_restart_clicked(self) -> None:
        """Start a new run from the initial seed after a fault or stop."""
        self.manager.reset()
        self.viewer.reset()
        self.manager.start()

    def on_frame(self) -> None:
        directive = self.viewer.poll_frame()
        if directive is not None:
            self.visualizer.apply_directive(directive, move_camera=self.viewer.state.following)

    def on_run_state_changed(self, state: RunState) -> None:
        self.lbl_status.setText(f"Status: {state.value}")
        self.btn_restart.setEnabled(state.is_terminal)

    def on_fault(self, condition: FaultCondition) -> None:
        QMessageBox.critical(
            self,
            "Numeric overflow",
            f"The integration produced a non-finite value at step {condition.step}.\n"
            f"The last valid trajectory stays on screen.",
        )

    def _follow_mode(self) -> FollowMode:
        return FollowMode.TRACK if self.btn_track.isChecked() else FollowMode.ORBIT

    def closeEvent(self, event, /) -> None:
        """Cancel all timers before the window goes away."""
        self._frame_timer.cancel()
        self.manager.stop()
        if self.visualizer and self.visualizer.plotter:
            self.visualizer.close_plotter()
        event.accept()
