"""
Recurring Callbacks
===================
Thin cancellation handle around QTimer.

Why is this file needed?
------------------------
Every recurring registration must be cancellable. Holding the QTimer behind a
handle makes teardown an explicit call (`cancel()`) that tests can assert on,
instead of relying on whoever created the timer to remember to stop it.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class RecurringTimer:
    """Handle for a callback repeated every `interval_ms` on the Qt event loop."""

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[[], None],
        parent: Optional[QObject] = None,
        name: str = "timer",
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.name = name
        self._timer = QTimer(parent)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(callback)
        self._cancelled = False

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> RecurringTimer:
        if self._cancelled:
            raise RuntimeError(f"Cannot restart cancelled {self.name}.")
        self._timer.start()
        logger.debug(f"Started {self.name} ({self.interval_ms} ms).")
        return self

    def cancel(self) -> None:
        """Stop the timer for good. Safe to call more than once."""
        if self._cancelled:
            return
        self._timer.stop()
        self._cancelled = True
        logger.debug(f"Cancelled {self.name}.")


def schedule_recurring(
    interval_ms: int,
    callback: Callable[[], None],
    parent: Optional[QObject] = None,
    name: str = "timer",
) -> RecurringTimer:
    """Start `callback` every `interval_ms` and return its cancellation handle."""
    return RecurringTimer(interval_ms, callback, parent=parent, name=name).start()
