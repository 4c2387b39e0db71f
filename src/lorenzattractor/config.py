"""
Configuration & Constants
=========================
This module serves as the central registry for global constants and the
optional settings file.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (intervals, capacity, colors)
   scattered throughout the code.
2. Overrides: It reads an optional INI file through QSettings so the
   simulation can be tuned without editing code.
3. Deployment: It resolves the settings path for dev and for PyInstaller
   (sys._MEIPASS) builds.

Exports:
    SETTINGS_PATH (str): Absolute path to the default INI file.
    ViewerSettings: Dataclass with the effective simulation settings.
    load_settings: Build ViewerSettings from defaults + INI overrides.
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QSettings

from lorenzattractor.model.lorenz import LorenzParameters, SimulationState

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # config.py is in src/lorenzattractor/
    project_root: Path = Path(__file__).parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# --- Simulation ---
DEFAULT_SEED: tuple[float, float, float] = (0.1, 0.0, 0.0)
DEFAULT_SIGMA: float = 10.0
DEFAULT_RHO: float = 28.0
DEFAULT_BETA: float = 8.0 / 3.0
DEFAULT_DT: float = 0.01
DEFAULT_STEPS_PER_TICK: int = 10
BUFFER_CAPACITY: int = 5000

# --- Scheduling (milliseconds) ---
UPDATE_INTERVAL_MS: int = 100
PUBLISH_INTERVAL_MS: int = 200
FRAME_INTERVAL_MS: int = 16

# --- Camera ---
ORBIT_RADIUS: float = 50.0
ORBIT_ANGLE_STEP: float = 0.01  # radians per rendered frame
CAMERA_PRESETS: dict[str, tuple[float, float, float]] = {
    "standard": (0.0, 0.0, 100.0),
    "side": (100.0, 0.0, 0.0),
    "top": (0.0, 100.0, 0.0),
}

# --- Rendering ---
SEGMENT_COLORS: tuple[str, str, str] = ("blue", "red", "green")
DIMMED_OPACITY: float = 0.2
AXIS_SIZE: float = 900.0
AXIS_LABEL_OFFSET: float = 950.0
AXIS_COLOR: str = "#2d2d2d"
SPLINE_RESOLUTION_FACTOR: int = 10  # rendered spline points per trajectory point

SETTINGS_PATH: str = get_resource_path("lorenzattractor.ini")


@dataclass
class ViewerSettings:
    params: LorenzParameters = field(default_factory=LorenzParameters)
    seed: SimulationState = field(default_factory=lambda: SimulationState(*DEFAULT_SEED))
    capacity: int = BUFFER_CAPACITY
    update_interval_ms: int = UPDATE_INTERVAL_MS
    publish_interval_ms: int = PUBLISH_INTERVAL_MS
    frame_interval_ms: int = FRAME_INTERVAL_MS
    threaded: bool = False  # run the generator on a QThread

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be positive, got {self.capacity}")
        for name in ("update_interval_ms", "publish_interval_ms", "frame_interval_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


def load_settings(path: Optional[str] = None) -> ViewerSettings:
    """
    Load settings from an INI file, falling back to the defaults.

    Expected layout:

        [lorenz]
        sigma=10
        rho=28
        beta=2.6667
        dt=0.01
        steps=10

        [seed]
        x=0.1
        y=0
        z=0

        [buffer]
        capacity=5000

        [timing]
        update_interval_ms=100
        publish_interval_ms=200
        frame_interval_ms=16
        threaded=false

    Args:
        path: INI file. Defaults to SETTINGS_PATH.

    Returns:
        ViewerSettings; defaults only if the file does not exist.
    """
    path = path or SETTINGS_PATH
    if not os.path.exists(path):
        logger.debug(f"No settings file at {path}, using defaults.")
        return ViewerSettings()

    logger.info(f"Loading settings from: {path}")
    s = QSettings(path, QSettings.Format.IniFormat)

    params = LorenzParameters(
        sigma=float(s.value("lorenz/sigma", DEFAULT_SIGMA)),
        rho=float(s.value("lorenz/rho", DEFAULT_RHO)),
        beta=float(s.value("lorenz/beta", DEFAULT_BETA)),
        dt=float(s.value("lorenz/dt", DEFAULT_DT)),
        steps=int(s.value("lorenz/steps", DEFAULT_STEPS_PER_TICK)),
    )
    seed = SimulationState(
        x=float(s.value("seed/x", DEFAULT_SEED[0])),
        y=float(s.value("seed/y", DEFAULT_SEED[1])),
        z=float(s.value("seed/z", DEFAULT_SEED[2])),
    )
    return ViewerSettings(
        params=params,
        seed=seed,
        capacity=int(s.value("buffer/capacity", BUFFER_CAPACITY)),
        update_interval_ms=int(s.value("timing/update_interval_ms", UPDATE_INTERVAL_MS)),
        publish_interval_ms=int(s.value("timing/publish_interval_ms", PUBLISH_INTERVAL_MS)),
        frame_interval_ms=int(s.value("timing/frame_interval_ms", FRAME_INTERVAL_MS)),
        threaded=s.value("timing/threaded", False, type=bool),
    )
