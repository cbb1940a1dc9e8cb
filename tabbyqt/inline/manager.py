"""Coordinator for documents attached to the completion agent."""
from __future__ import annotations

import logging
from typing import Any

from PySide6.QtCore import QObject, Signal

from tabbyqt.core.config import ConfigManager, InlineSettings
from tabbyqt.inline.document import DocumentSession
from tabbyqt.lang.paths import language_for_path, uri_for_path

logger = logging.getLogger(__name__)


class InlineCompletionManager(QObject):
    """Own one ``DocumentSession`` per open document and route agent readiness."""

    document_opened = Signal(str)
    document_closed = Signal(str)

    def __init__(self, config: ConfigManager | None, transport, parent=None) -> None:
        super().__init__(parent)
        self.config = config
        self.settings = InlineSettings.from_config(config)
        self.transport = transport
        self._documents: dict[str, DocumentSession] = {}
        ready = getattr(transport, "ready", None)
        if ready is not None:
            ready.connect(self._on_transport_ready)

    def open_document(self, editor, path: Any) -> DocumentSession | None:
        uri = uri_for_path(path)
        if not uri:
            return None
        if uri in self._documents:
            self.close_document(path)
        language = language_for_path(path, self.settings.language_map)
        session = DocumentSession(uri, language, editor, self.transport, self.settings)
        editor.edited.connect(session.on_edit)
        if hasattr(editor, "attach_session"):
            editor.attach_session(session)
        self._documents[uri] = session
        if not session.open():
            logger.info("Agent not ready, deferring open of %s", session.name)
        self.document_opened.emit(uri)
        return session

    def close_document(self, path: Any) -> None:
        uri = uri_for_path(path)
        session = self._documents.pop(uri, None) if uri else None
        if session is None:
            return
        try:
            session.editor.edited.disconnect(session.on_edit)
        except (RuntimeError, TypeError):
            logger.debug("Editor for %s already disconnected", session.name)
        if hasattr(session.editor, "attach_session"):
            session.editor.attach_session(None)
        session.close()
        self.document_closed.emit(uri)

    def document(self, path: Any) -> DocumentSession | None:
        uri = uri_for_path(path)
        return self._documents.get(uri) if uri else None

    def documents(self) -> list[DocumentSession]:
        return list(self._documents.values())

    def shutdown(self) -> None:
        for session in list(self._documents.values()):
            self.close_document(session.uri)
        stop = getattr(self.transport, "stop", None)
        if stop:
            stop()

    def _on_transport_ready(self) -> None:
        for session in self._documents.values():
            session.open()
