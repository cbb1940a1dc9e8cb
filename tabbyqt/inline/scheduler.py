"""Debounced triggering of inline completion requests."""
from __future__ import annotations

from enum import IntEnum
from typing import Callable

from tabbyqt.core.timers import DebounceTimer


class TriggerKind(IntEnum):
    """``InlineCompletionTriggerKind`` values on the wire."""

    INVOKED = 1
    AUTOMATIC = 2


class CompletionScheduler:
    def __init__(
        self,
        idle_ms: int,
        request: Callable[[TriggerKind], object],
        auto_trigger: bool = True,
    ) -> None:
        self.auto_trigger = auto_trigger
        self._request = request
        self._timer = DebounceTimer(idle_ms, self._on_idle)

    def on_activity(self) -> None:
        """Restart the idle window after an edit."""
        if not self.auto_trigger:
            return
        self._timer.arm()

    def trigger(self) -> object:
        """Explicit request, bypassing the idle window."""
        self._timer.cancel()
        return self._request(TriggerKind.INVOKED)

    def cancel(self) -> None:
        self._timer.cancel()

    def is_armed(self) -> bool:
        return self._timer.is_armed()

    def _on_idle(self) -> None:
        self._request(TriggerKind.AUTOMATIC)
