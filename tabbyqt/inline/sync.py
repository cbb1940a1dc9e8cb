"""Buffered incremental document synchronization."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from tabbyqt.core.timers import DebounceTimer
from tabbyqt.lang.lsp_client import TransportError
from tabbyqt.lang.positions import Range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeRecord:
    """One incremental edit; ``range`` addresses the text before this edit."""

    range: Range | None
    text: str

    def to_lsp(self) -> dict[str, Any]:
        if self.range is None:
            return {"text": self.text}
        return {"range": self.range.to_lsp(), "text": self.text}


class DocumentSyncTracker:
    """Collects edits since the last flush and sends them as one ``didChange``.

    The version starts at the value announced by ``didOpen`` and grows by one
    for every batch the transport accepted. A failed send keeps the batch so the
    next flush resends it.
    """

    def __init__(
        self,
        uri: str,
        transport,
        idle_ms: int,
        reopen: Callable[[], bool] | None = None,
    ) -> None:
        self.uri = uri
        self.transport = transport
        self.reopen = reopen
        self.version = 0
        self.opened = False
        self._pending: list[ChangeRecord] = []
        self._flush_timer = DebounceTimer(idle_ms, self.flush)

    @property
    def pending(self) -> tuple[ChangeRecord, ...]:
        return tuple(self._pending)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def is_flush_scheduled(self) -> bool:
        return self._flush_timer.is_armed()

    def record_change(self, edit_range: Range | None, new_text: str) -> None:
        self._pending.append(ChangeRecord(range=edit_range, text=new_text))
        self.schedule_flush()

    def schedule_flush(self) -> None:
        self._flush_timer.arm()

    def flush(self) -> bool:
        """Send pending changes; returns ``True`` when the agent is up to date.

        A document the agent has not opened is never up to date. When ``reopen``
        is set it is retried here, and its full text replaces the pending edits.
        """
        self._flush_timer.cancel()
        if not self.opened and not self._retry_open():
            logger.debug("Skipping flush of %s, not open on the agent", self.uri)
            return False
        if not self._pending:
            return True
        if not self.transport.is_connected():
            logger.debug("Skipping flush of %s, agent not available", self.uri)
            return False
        batch = list(self._pending)
        version = self.version + 1
        params = {
            "textDocument": {"uri": self.uri, "version": version},
            "contentChanges": [change.to_lsp() for change in batch],
        }
        try:
            self.transport.send_notification("textDocument/didChange", params)
        except TransportError as exc:
            logger.warning("Failed to sync %d change(s) for %s: %s", len(batch), self.uri, exc)
            return False
        self.version = version
        del self._pending[: len(batch)]
        return True

    def _retry_open(self) -> bool:
        if self.reopen is None or not self.transport.is_connected():
            return False
        return bool(self.reopen()) and self.opened

    def open(self, text: str, language_id: str) -> bool:
        """Announce the full document text; buffered edits are covered by it."""
        self._flush_timer.cancel()
        if not self.transport.is_connected():
            return False
        params = {
            "textDocument": {
                "uri": self.uri,
                "languageId": language_id,
                "version": self.version,
                "text": text,
            }
        }
        try:
            self.transport.send_notification("textDocument/didOpen", params)
        except TransportError as exc:
            logger.warning("Failed to open %s on the agent: %s", self.uri, exc)
            return False
        self._pending.clear()
        self.opened = True
        return True

    def close(self) -> None:
        self._flush_timer.cancel()
        self._pending.clear()
        if not (self.opened and self.transport.is_connected()):
            self.opened = False
            return
        self.opened = False
        try:
            self.transport.send_notification("textDocument/didClose", {"textDocument": {"uri": self.uri}})
        except TransportError as exc:
            logger.debug("Failed to close %s on the agent: %s", self.uri, exc)
