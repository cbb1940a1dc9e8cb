"""Inline completion requests and the staleness guard on their responses."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tabbyqt.inline.items import Candidate, parse_items
from tabbyqt.inline.scheduler import TriggerKind
from tabbyqt.inline.sync import DocumentSyncTracker
from tabbyqt.lang.lsp_client import TransportError
from tabbyqt.lang.positions import Position, to_protocol_position

logger = logging.getLogger(__name__)

INLINE_COMPLETION_METHOD = "textDocument/inlineCompletion"


@dataclass(eq=False)
class CompletionSession:
    """State captured when a request is dispatched; compared by identity."""

    version: int
    position: Position
    anchor: int
    trigger_kind: TriggerKind
    candidates: list[Candidate] = field(default_factory=list)
    index: int = 0
    request_id: int | None = None

    @property
    def current(self) -> Candidate | None:
        if not self.candidates:
            return None
        return self.candidates[self.index % len(self.candidates)]


class CompletionPipeline:
    def __init__(self, uri: str, editor, transport, tracker: DocumentSyncTracker, ghost) -> None:
        self.uri = uri
        self.editor = editor
        self.transport = transport
        self.tracker = tracker
        self.ghost = ghost
        self._current: CompletionSession | None = None

    @property
    def current(self) -> CompletionSession | None:
        return self._current

    def request_completion(self, trigger_kind: TriggerKind) -> CompletionSession | None:
        if not self.transport.is_connected():
            logger.debug("Completion request skipped, agent not connected")
            return None
        if not self.tracker.flush():
            # The agent would answer against text it has not seen yet.
            logger.debug("Completion request skipped, %s has unsynced edits", self.uri)
            return None

        text = self.editor.text()
        anchor = self.editor.cursor_offset()
        session = CompletionSession(
            version=self.tracker.version,
            position=to_protocol_position(text, anchor),
            anchor=anchor,
            trigger_kind=TriggerKind(trigger_kind),
        )
        self.ghost.supersede()
        self._current = session

        params = {
            "textDocument": {"uri": self.uri},
            "position": session.position.to_lsp(),
            "context": {"triggerKind": int(session.trigger_kind)},
        }
        try:
            session.request_id = self.transport.send_request(
                INLINE_COMPLETION_METHOD,
                params,
                callback=lambda message: self._handle_response(session, message),
            )
        except TransportError as exc:
            logger.debug("Completion request for %s failed: %s", self.uri, exc)
            self._current = None
            return None
        return session

    def invalidate(self) -> None:
        """Forget the live session so its response, if any, is discarded."""
        self._current = None

    def release(self, session: CompletionSession) -> None:
        if self._current is session:
            self._current = None

    def _handle_response(self, session: CompletionSession, message: dict) -> None:
        if session is not self._current:
            logger.debug("Discarding stale completion response %s", session.request_id)
            return
        if not isinstance(message, dict) or "error" in message:
            logger.debug("Completion request %s failed: %s", session.request_id, message)
            self._current = None
            return
        if (
            self.tracker.version != session.version
            or self.tracker.has_pending
            or self.editor.cursor_offset() != session.anchor
        ):
            logger.debug("Discarding completion computed for an outdated document state")
            self._current = None
            return

        session.candidates = parse_items(message.get("result"))
        if not session.candidates:
            self._current = None
            return
        session.index = 0
        self.ghost.display(session)
