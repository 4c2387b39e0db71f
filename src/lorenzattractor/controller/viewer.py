"""
Viewer Controller
=================
Turns button actions and rendered frames into FrameDirective objects.

Why is this file needed?
------------------------
1. Routing: Camera preset / follow buttons land here, not in the widget.
2. Per-frame logic: While following, the look-at target and orbit position are
   recomputed every frame from the latest published snapshot.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
from PySide6.QtCore import QObject, Signal

from lorenzattractor import config
from lorenzattractor.model.camera import (
    CameraPreset, FollowMode, FrameDirective, follow_target, orbit_camera_position,
    segment_styles, track_camera_position
)
from lorenzattractor.model.state import ViewerState

if TYPE_CHECKING:
    import numpy.typing as npt

    from lorenzattractor.model.buffer import PublishedSnapshot

logger = logging.getLogger(__name__)


class ViewerController(QObject):
    # Emitted when a button action moved the camera outside of a frame tick
    directive_changed = Signal(object)  # FrameDirective

    def __init__(
        self,
        state: Optional[ViewerState] = None,
        angle_step: float = config.ORBIT_ANGLE_STEP,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.state = state or ViewerState()
        self.angle_step = angle_step
        self._snapshot: Optional[PublishedSnapshot] = None
        self._delivered: Optional[FrameDirective] = None

    # --- Slots ---

    def on_snapshot(self, snapshot: PublishedSnapshot) -> None:
        self._snapshot = snapshot

    def on_center_changed(self, center: npt.NDArray[np.float64]) -> None:
        self.state.center = np.asarray(center, dtype=np.float64).copy()

    # --- Actions ---

    def switch_camera(self, preset: CameraPreset) -> FrameDirective:
        """Jump to a preset viewpoint looking at the trajectory center. Stops following."""
        self.state.following = False
        self.state.camera_position = preset.position
        self.state.target = self.state.center.copy()
        logger.info(f"Camera switched to {preset.name.lower()} view.")
        return self._emit_directive()

    def start_following(self, segment: int, mode: FollowMode = FollowMode.ORBIT) -> None:
        if segment not in (1, 2, 3):
            raise ValueError(f"Segment must be 1, 2 or 3, got {segment}")
        self.state.follow_segment = segment
        self.state.follow_mode = mode
        self.state.following = True
        logger.info(f"Following segment {segment} ({config.SEGMENT_COLORS[segment - 1]}, {mode.value}).")

    def stop_following(self) -> FrameDirective:
        """Leave the camera where it is and restore full opacity and axes."""
        if self.state.following:
            logger.info("Follow mode disabled.")
        self.state.following = False
        return self._emit_directive()

    def set_follow_mode(self, mode: FollowMode) -> None:
        """Switch between orbit and track; applies to the current follow as well."""
        self.state.follow_mode = mode
        logger.info(f"Follow mode set to {mode.value}.")

    def reset(self) -> FrameDirective:
        """Forget the trajectory and return to the standard view."""
        self._snapshot = None
        self.state.reset()
        return self._emit_directive()

    # --- Frame ---

    def advance_frame(self) -> FrameDirective:
        """
        Called once per rendered frame.
        Moves the camera when following and there is a point to follow.
        """
        state = self.state
        if state.following and state.follow_segment is not None:
            target = follow_target(self._snapshot, state.follow_segment)
            if target is not None:
                if state.follow_mode is FollowMode.ORBIT:
                    state.orbit_angle += self.angle_step
                    state.camera_position = orbit_camera_position(target, state.orbit_angle, state.orbit_radius)
                else:
                    state.camera_position = track_camera_position(state.camera_position, state.target, target)
                state.target = target
        return self.directive()

    def poll_frame(self) -> Optional[FrameDirective]:
        """
        Advance one frame and return the directive only if it has to be rendered:
        while following, or when opacities / axes changed since the last delivery.
        """
        directive = self.advance_frame()
        last = self._delivered
        if (
            self.state.following
            or last is None
            or last.segment_styles != directive.segment_styles
            or last.axes_visible != directive.axes_visible
        ):
            self._delivered = directive
            return directive
        return None

    def _emit_directive(self) -> FrameDirective:
        directive = self.directive()
        self._delivered = directive
        self.directive_changed.emit(directive)
        return directive

    def directive(self) -> FrameDirective:
        state = self.state
        return FrameDirective(
            camera_position=np.array(state.camera_position, dtype=np.float64),
            target=np.array(state.target, dtype=np.float64),
            segment_styles=segment_styles(state.following, state.follow_segment),
            axes_visible=not state.following,
        )
