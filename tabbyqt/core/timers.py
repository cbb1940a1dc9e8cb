"""Single-slot debounce timers built on ``QTimer``."""
from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


class DebounceTimer(QObject):
    """A single-shot timer where arming always replaces the previous arm.

    At most one callback is pending per instance; ``arm`` restarts the idle
    window and ``cancel`` drops whatever was pending.
    """

    def __init__(self, interval_ms: int, callback: Callable[[], None], parent=None) -> None:
        super().__init__(parent)
        self.interval_ms = max(0, int(interval_ms))
        self._callback = callback
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(self.interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    def arm(self, interval_ms: int | None = None) -> None:
        if self._timer.isActive():
            self._timer.stop()
        if interval_ms is not None:
            self.interval_ms = max(0, int(interval_ms))
            self._timer.setInterval(self.interval_ms)
        self._timer.start()

    def cancel(self) -> None:
        if self._timer.isActive():
            self._timer.stop()

    def is_armed(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self) -> None:
        try:
            self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
