"""Per-document wiring of sync, scheduling, requests and ghost text."""
from __future__ import annotations

import logging

from tabbyqt.core.config import InlineSettings
from tabbyqt.inline.ghost_text import GhostTextController
from tabbyqt.inline.pipeline import CompletionPipeline, CompletionSession
from tabbyqt.inline.scheduler import CompletionScheduler, TriggerKind
from tabbyqt.inline.sync import DocumentSyncTracker
from tabbyqt.lang.paths import normalize_path, path_basename
from tabbyqt.lang.positions import Range, to_protocol_position

logger = logging.getLogger(__name__)


class DocumentSession:
    """Everything tabbyqt knows about one open document.

    Created by ``open`` and torn down by ``close``; no state is shared between
    documents.
    """

    def __init__(
        self,
        uri: str,
        language_id: str,
        editor,
        transport,
        settings: InlineSettings | None = None,
    ) -> None:
        settings = settings or InlineSettings()
        self.uri = uri
        self.language_id = language_id
        self.name = path_basename(normalize_path(uri))
        self.editor = editor
        self.transport = transport
        self.tracker = DocumentSyncTracker(uri, transport, settings.sync_idle_ms, reopen=self.open)
        self.ghost = GhostTextController(editor)
        self.pipeline = CompletionPipeline(uri, editor, transport, self.tracker, self.ghost)
        self.scheduler = CompletionScheduler(
            settings.trigger_idle_ms,
            self.request_completion,
            auto_trigger=settings.auto_trigger,
        )
        self.ghost.resolved.connect(self._on_resolved)
        self._text = ""
        self.closed = False

    def open(self) -> bool:
        if self.closed:
            return False
        self._text = self.editor.text()
        opened = self.tracker.open(self._text, self.language_id)
        if opened:
            logger.info("Opened %s as %s (version %d)", self.name, self.language_id, self.tracker.version)
        return opened

    def close(self) -> None:
        self.scheduler.cancel()
        self.ghost.supersede()
        self.pipeline.invalidate()
        self.tracker.close()
        self.closed = True
        logger.info("Closed %s", self.name)

    def on_edit(self, start: int, end: int, text: str) -> None:
        """Record an edit given as native offsets into the text before it."""
        if self.closed:
            return
        old = self._text
        edit_range = Range(to_protocol_position(old, start), to_protocol_position(old, end))
        self._text = old[:start] + text + old[end:]

        self.ghost.on_edit()
        self.pipeline.invalidate()
        self.tracker.record_change(edit_range, text)
        self.scheduler.on_activity()

    def request_completion(self, trigger_kind: TriggerKind) -> CompletionSession | None:
        if self.closed:
            return None
        return self.pipeline.request_completion(trigger_kind)

    def trigger(self) -> CompletionSession | None:
        return self.scheduler.trigger()

    def accept(self) -> bool:
        return self.ghost.accept()

    def cancel(self) -> bool:
        return self.ghost.cancel()

    def cycle(self, step: int = 1) -> bool:
        return self.ghost.cycle(step)

    def _on_resolved(self, session, _outcome: str) -> None:
        if session is not None:
            self.pipeline.release(session)
