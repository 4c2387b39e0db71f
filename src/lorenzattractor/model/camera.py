"""
Camera Directives
=================
Pure functions computing what the renderer needs each frame: camera position,
look-at target, segment colors/opacities and axis visibility.

Nothing here touches PyVista. The view layer only applies the results.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

import numpy as np

from lorenzattractor import config

if TYPE_CHECKING:
    import numpy.typing as npt

    from lorenzattractor.model.buffer import PublishedSnapshot


class CameraPreset(Enum):
    """Fixed viewpoints, all looking at the trajectory center."""
    STANDARD = config.CAMERA_PRESETS["standard"]
    SIDE = config.CAMERA_PRESETS["side"]
    TOP = config.CAMERA_PRESETS["top"]

    @property
    def position(self) -> npt.NDArray[np.float64]:
        return np.array(self.value, dtype=np.float64)


class FollowMode(Enum):
    ORBIT = "orbit"  # circle the target at a fixed radius
    TRACK = "track"  # keep the current offset, translate with the target


@dataclass(frozen=True)
class SegmentStyle:
    color: str
    opacity: float


@dataclass(frozen=True)
class FrameDirective:
    camera_position: npt.NDArray[np.float64]
    target: npt.NDArray[np.float64]
    segment_styles: tuple[SegmentStyle, ...]
    axes_visible: bool


def orbit_camera_position(
    target: npt.NDArray[np.float64],
    angle: float,
    radius: float = config.ORBIT_RADIUS,
) -> npt.NDArray[np.float64]:
    """Point on a horizontal circle of `radius` around `target` at `angle` (radians)."""
    tx, ty, tz = (float(v) for v in target)
    return np.array(
        [tx + radius * math.cos(angle), ty, tz + radius * math.sin(angle)],
        dtype=np.float64,
    )


def track_camera_position(
    camera_position: npt.NDArray[np.float64],
    previous_target: npt.NDArray[np.float64],
    target: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Shift the camera by the distance the target moved since the last frame."""
    return np.asarray(camera_position, dtype=np.float64) + (
        np.asarray(target, dtype=np.float64) - np.asarray(previous_target, dtype=np.float64)
    )


def follow_target(snapshot: Optional[PublishedSnapshot], segment: int) -> Optional[npt.NDArray[np.float64]]:
    """Last point of the selected segment, or None when there is nothing to follow."""
    if snapshot is None:
        return None
    points = snapshot.segment(segment)
    if len(points) == 0:
        return None
    return np.array(points[-1], dtype=np.float64)


def segment_styles(following: bool, segment: Optional[int] = None) -> tuple[SegmentStyle, ...]:
    """
    Colors and opacities of the three segments.

    While following, every segment except the followed one is dimmed.
    """
    styles = []
    for index, color in enumerate(config.SEGMENT_COLORS, start=1):
        if following and index != segment:
            opacity = config.DIMMED_OPACITY
        else:
            opacity = 1.0
        styles.append(SegmentStyle(color=color, opacity=opacity))
    return tuple(styles)
