"""
Application Initialization
==========================
This module wires the simulation, the viewer controller and the main window,
then starts the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Loads the settings (defaults + optional INI file).
2. Instantiates the simulation manager (Model owner).
3. Instantiates the Main Window (View), passing the controllers in.
4. Prevents circular import errors by being the orchestrator.
"""
import argparse
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtCore import QCoreApplication
from PySide6.QtWidgets import QApplication

from lorenzattractor.config import load_settings
from lorenzattractor.controller.simulation import TrajectoryBufferManager
from lorenzattractor.controller.viewer import ViewerController
from lorenzattractor.logging_config import setup_logging
from lorenzattractor.view.main_window import MainWindow

logger = logging.getLogger(__name__)

APP_ID = "lorenz-attractor"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Animated Lorenz attractor viewer.")
    parser.add_argument("--settings", default=None, help="Path to an INI settings file")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-file", default=None, help="Optional log file")
    parser.add_argument(
        "--threaded", action="store_true", help="Run the generator on a background thread"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=args.log_level, log_file=args.log_file)

    # 2. Create the Qt Application
    QCoreApplication.setApplicationName(APP_ID)
    app = QApplication(sys.argv[:1])
    app.setApplicationDisplayName("Lorenz Attractor")

    # 3. Initialize the simulation and the camera controller
    settings = load_settings(args.settings)
    if args.threaded:
        settings = dataclasses.replace(settings, threaded=True)
    manager = TrajectoryBufferManager(settings)
    viewer = ViewerController()

    # 4. Initialize the Main Window, passing the controllers
    window = MainWindow(manager, viewer, frame_interval_ms=settings.frame_interval_ms)
    window.show()

    # 5. Start simulation + Event Loop
    manager.start()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
