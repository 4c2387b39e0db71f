"""
Logging Configuration
Sets up the package logger for the viewer.
"""
import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "lorenzattractor"
LOG_LEVEL_ENV = "LORENZ_LOG_LEVEL"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Turn a level name or number into a logging level.
    Falls back to the LORENZ_LOG_LEVEL environment variable, then INFO.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, logging.INFO)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        return resolved
    return int(level)


def setup_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the 'lorenzattractor' namespace logger.

    Args:
        level: Logging level (e.g. logging.DEBUG or "debug"). None reads LORENZ_LOG_LEVEL.
        log_file: Optional path to save logs to a file.

    Returns:
        The configured package logger.
    """
    level = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Avoid duplicate handlers when the window is reopened
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
