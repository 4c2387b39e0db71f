"""
Viewer State (Data Model)
=========================
This module defines the mutable state of the running viewer.

Why is this file needed?
------------------------
1. State Management: It holds the camera and follow selection in one place.
2. Decoupling: Controllers write to these objects; the view only reads
   `FrameDirective` objects derived from them.

Classes:
    RunState: Lifecycle of the trajectory simulation.
    ViewerState: Camera / follow selection.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

import numpy as np

from lorenzattractor import config
from lorenzattractor.model.camera import CameraPreset, FollowMode

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAULTED = "faulted"
    STOPPED = "stopped"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.FAULTED, RunState.STOPPED)


def _default_camera() -> npt.NDArray[np.float64]:
    return CameraPreset.STANDARD.position


@dataclass
class ViewerState:
    """
    Camera and follow selection.
    `orbit_angle` grows monotonically; sin/cos take care of wrapping.
    """
    camera_position: npt.NDArray[np.float64] = field(default_factory=_default_camera)
    target: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    center: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))

    following: bool = False
    follow_segment: Optional[int] = None
    follow_mode: FollowMode = FollowMode.ORBIT
    orbit_angle: float = 0.0
    orbit_radius: float = config.ORBIT_RADIUS

    def reset(self) -> None:
        """Back to the standard view, not following."""
        self.camera_position = _default_camera()
        self.target = np.zeros(3)
        self.center = np.zeros(3)
        self.following = False
        self.follow_segment = None
        self.follow_mode = FollowMode.ORBIT
        self.orbit_angle = 0.0
        logger.info("Viewer state has been reset.")
