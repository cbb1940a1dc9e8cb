"""Plain text editor widget that hosts inline completion ghost text."""
from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QFont, QKeyEvent, QPainter, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from tabbyqt.lang.positions import index_to_utf16, utf16_to_index

logger = logging.getLogger(__name__)


def _diff(old: str, new: str) -> tuple[int, int, str]:
    prefix = 0
    limit = min(len(old), len(new))
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit - prefix and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]:
        suffix += 1
    return prefix, len(old) - suffix, new[prefix : len(new) - suffix]


class InlineEditor(QPlainTextEdit):
    """Editor collaborator for a ``DocumentSession``.

    Offsets exposed to the session are string indices into ``text()``; Qt's own
    positions count UTF-16 code units and are converted at this boundary.
    """

    # start, end (in the text before the edit), inserted text
    edited = Signal(int, int, str)

    def __init__(self, path: Path | None = None, parent=None, *, config=None) -> None:
        super().__init__(parent)
        self.path = path
        self.config = config
        self.session = None
        self._snapshot = ""
        self._loading = False
        self._ghost: tuple[int, str] | None = None

        editor_config = (config.get("editor", {}) if config else {}) or {}
        font_family = editor_config.get("font_family", "Monospace")
        font_size = editor_config.get("font_size", 11)
        self.setFont(QFont(font_family, font_size))
        self.setLineWrapMode(QPlainTextEdit.NoWrap)

        self.document().contentsChange.connect(self._on_contents_change)
        if path and path.exists():
            self.load_file(path)

    # Document collaborator
    def text(self) -> str:
        return self._snapshot

    def cursor_offset(self) -> int:
        return utf16_to_index(self._snapshot, self.textCursor().position())

    def set_cursor_offset(self, offset: int) -> None:
        cursor = self.textCursor()
        cursor.setPosition(index_to_utf16(self._snapshot, offset))
        self.setTextCursor(cursor)

    def insert_text(self, offset: int, text: str) -> None:
        self.replace_text(offset, offset, text)

    def replace_text(self, start: int, end: int, text: str) -> None:
        cursor = QTextCursor(self.document())
        cursor.beginEditBlock()
        cursor.setPosition(index_to_utf16(self._snapshot, start))
        cursor.setPosition(index_to_utf16(self._snapshot, end), QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(text)
        cursor.endEditBlock()

    def show_ghost_text(self, offset: int, text: str) -> None:
        self._ghost = (offset, text)
        self.viewport().update()

    def hide_ghost_text(self) -> None:
        if self._ghost is not None:
            self._ghost = None
            self.viewport().update()

    @property
    def ghost_text(self) -> str:
        return self._ghost[1] if self._ghost else ""

    def attach_session(self, session) -> None:
        self.session = session

    def load_file(self, path: Path) -> None:
        self._loading = True
        try:
            self.setPlainText(path.read_text(encoding="utf-8"))
        finally:
            self._loading = False
        self._snapshot = self.toPlainText()
        self.path = path
        logger.debug("Loaded %s (%d characters)", path, len(self._snapshot))

    # Qt plumbing
    def _on_contents_change(self, position: int, removed: int, added: int) -> None:
        old = self._snapshot
        new = self.toPlainText()
        self._snapshot = new
        if self._loading or old == new:
            return
        start = utf16_to_index(old, position)
        end = utf16_to_index(old, position + removed)
        inserted_len = len(new) - len(old) + (end - start)
        if inserted_len < 0 or new[:start] != old[:start] or new[start + inserted_len :] != old[end:]:
            start, end, inserted = _diff(old, new)
        else:
            inserted = new[start : start + inserted_len]
        self.edited.emit(start, end, inserted)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        session = self.session
        if session is not None:
            if event.modifiers() == Qt.ControlModifier and event.key() == Qt.Key_Space:
                session.trigger()
                return
            if session.ghost.is_displayed:
                if event.key() == Qt.Key_Tab and session.accept():
                    return
                if event.key() == Qt.Key_Escape and session.cancel():
                    return
                if event.modifiers() == Qt.AltModifier and event.key() == Qt.Key_BracketRight:
                    session.cycle(1)
                    return
                if event.modifiers() == Qt.AltModifier and event.key() == Qt.Key_BracketLeft:
                    session.cycle(-1)
                    return
        super().keyPressEvent(event)

    def paintEvent(self, event) -> None:  # type: ignore[override]
        super().paintEvent(event)
        if self._ghost:
            self._paint_ghost_text()

    def _paint_ghost_text(self) -> None:
        offset, text = self._ghost
        if not text:
            return
        cursor = QTextCursor(self.document())
        cursor.setPosition(index_to_utf16(self._snapshot, offset))
        rect = self.cursorRect(cursor)
        metrics = self.fontMetrics()
        left = int(self.contentOffset().x() + self.document().documentMargin())

        painter = QPainter(self.viewport())
        painter.setPen(QColor(150, 150, 150, 160))
        x, y = rect.left(), rect.top() + metrics.ascent()
        for line in text.split("\n"):
            painter.drawText(x, y, line)
            x, y = left, y + metrics.lineSpacing()
        painter.end()
