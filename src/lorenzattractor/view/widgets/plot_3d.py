"""
3D Visualization Widget (PyVista Wrapper)
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
import pyvista as pv
from PySide6.QtWidgets import QWidget, QVBoxLayout
from pyvistaqt import QtInteractor

from lorenzattractor import config
from lorenzattractor.model.camera import FrameDirective, SegmentStyle, segment_styles

if TYPE_CHECKING:
    import numpy.typing as npt

    from lorenzattractor.model.buffer import PublishedSnapshot

logger = logging.getLogger(__name__)

AXIS_LABELS = (
    ((1, 0, 0), "X"), ((-1, 0, 0), "-X"),
    ((0, 1, 0), "Y"), ((0, -1, 0), "-Y"),
    ((0, 0, 1), "Z"), ((0, 0, -1), "-Z"),
)


class AttractorWidget(QWidget):
    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)
        self.plotter.set_background("white")

        # --- Actors state ---
        self._segment_actors: list[Optional[pv.Actor]] = [None] * len(config.SEGMENT_COLORS)
        self._styles: tuple[SegmentStyle, ...] = segment_styles(following=False)
        self._axis_actors: list = []
        self._axes_visible: bool = True

        self._init_axes()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def update_trajectory(self, snapshot: PublishedSnapshot) -> None:
        """Redraw the three segments from a published snapshot."""
        for index, points in enumerate(snapshot.segments):
            self._update_segment(index, points)
        self.plotter.render()

    def apply_directive(self, directive: FrameDirective, move_camera: bool = True) -> None:
        """Apply segment opacities, axis visibility and (optionally) the camera."""
        if directive.segment_styles != self._styles:
            self._styles = directive.segment_styles
            for actor, style in zip(self._segment_actors, self._styles):
                if actor is not None:
                    actor.prop.opacity = style.opacity

        if directive.axes_visible != self._axes_visible:
            self._axes_visible = directive.axes_visible
            for actor in self._axis_actors:
                actor.SetVisibility(self._axes_visible)

        if move_camera:
            self._set_camera(directive.camera_position, directive.target)

        self.plotter.render()

    def close_plotter(self) -> None:
        self.plotter.close()

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _update_segment(self, index: int, points: npt.NDArray[np.float64]) -> None:
        actor = self._segment_actors[index]
        if len(points) < 2:
            if actor is not None:
                actor.SetVisibility(False)
            return

        # Smooth curve through the samples
        curve = pv.Spline(points, n_points=len(points) * config.SPLINE_RESOLUTION_FACTOR)

        if actor is None:
            style = self._styles[index]
            self._segment_actors[index] = self.plotter.add_mesh(
                curve,
                color=style.color,
                opacity=style.opacity,
                line_width=2,
                pickable=False,
                show_scalar_bar=False,
                reset_camera=False,
            )
        else:
            # Update existing data in-place to prevent blinking
            actor.mapper.dataset.copy_from(curve)
            actor.SetVisibility(True)

    def _init_axes(self) -> None:
        size = config.AXIS_SIZE
        for direction in np.eye(3):
            line = pv.Line(-size * direction, size * direction)
            actor = self.plotter.add_mesh(
                line, color=config.AXIS_COLOR, line_width=5, pickable=False, reset_camera=False
            )
            self._axis_actors.append(actor)

        offset = config.AXIS_LABEL_OFFSET
        positions = np.array([d for d, _ in AXIS_LABELS], dtype=float) * offset
        labels = [text for _, text in AXIS_LABELS]
        label_actor = self.plotter.add_point_labels(
            positions,
            labels,
            font_size=20,
            text_color="black",
            shape=None,
            show_points=False,
            always_visible=True,
        )
        self._axis_actors.append(label_actor)

    def _set_camera(self, position: npt.NDArray[np.float64], target: npt.NDArray[np.float64]) -> None:
        direction = np.asarray(position, dtype=float) - np.asarray(target, dtype=float)
        norm = np.linalg.norm(direction)
        view_up = (0.0, 1.0, 0.0)
        # Looking straight down the Y axis needs a different up vector
        if norm > 0 and abs(direction[1]) / norm > 0.99:
            view_up = (0.0, 0.0, -1.0)
        self.plotter.camera_position = [tuple(position), tuple(target), view_up]
