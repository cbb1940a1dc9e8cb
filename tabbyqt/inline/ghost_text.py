"""Ghost text state machine for the active completion session."""
from __future__ import annotations

import logging
from enum import Enum

from PySide6.QtCore import QObject, Signal

from tabbyqt.inline.items import Candidate
from tabbyqt.lang.positions import to_native_offset

logger = logging.getLogger(__name__)


class GhostState(Enum):
    IDLE = "idle"
    DISPLAYED = "displayed"


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    CANCELED = "canceled"
    SUPERSEDED = "superseded"


class GhostTextController(QObject):
    """Renders the session's current candidate as an inert annotation.

    The annotation lives only in the editor's rendering layer; the document is
    touched exclusively by ``accept``.
    """

    resolved = Signal(object, str)

    def __init__(self, editor, parent=None) -> None:
        super().__init__(parent)
        self.editor = editor
        self.state = GhostState.IDLE
        self.session = None

    @property
    def is_displayed(self) -> bool:
        return self.state is GhostState.DISPLAYED

    def display(self, session) -> None:
        if self.is_displayed:
            self._finish(Outcome.SUPERSEDED)
        if session.current is None:
            return
        self.session = session
        self.state = GhostState.DISPLAYED
        self._render()

    def accept(self) -> bool:
        if not self.is_displayed:
            return False
        session = self.session
        candidate: Candidate = session.current
        self._finish(Outcome.ACCEPTED)

        if candidate.range is not None:
            text = self.editor.text()
            start = to_native_offset(text, candidate.range.start)
            end = max(start, to_native_offset(text, candidate.range.end))
            self.editor.replace_text(start, end, candidate.insert_text)
        else:
            start = session.anchor
            self.editor.insert_text(start, candidate.insert_text)
        self.editor.set_cursor_offset(start + len(candidate.insert_text))
        return True

    def cancel(self) -> bool:
        if not self.is_displayed:
            return False
        anchor = self.session.anchor
        self._finish(Outcome.CANCELED)
        self.editor.set_cursor_offset(anchor)
        return True

    def supersede(self) -> None:
        if self.is_displayed:
            self._finish(Outcome.SUPERSEDED)

    def on_edit(self) -> None:
        """Edits made while ghost text is shown dismiss it where the user left the cursor."""
        if self.is_displayed:
            self._finish(Outcome.CANCELED)

    def cycle(self, step: int = 1) -> bool:
        if not self.is_displayed or len(self.session.candidates) < 2:
            return False
        self.session.index = (self.session.index + step) % len(self.session.candidates)
        self._render()
        return True

    def visible_text(self) -> str:
        """Text shown after the anchor for the current candidate."""
        if not self.is_displayed:
            return ""
        session = self.session
        candidate = session.current
        if candidate.range is None:
            return candidate.insert_text
        text = self.editor.text()
        start = to_native_offset(text, candidate.range.start)
        typed = text[start:session.anchor] if start < session.anchor else ""
        if typed and candidate.insert_text.startswith(typed):
            return candidate.insert_text[len(typed):]
        return candidate.insert_text

    def _render(self) -> None:
        self.editor.hide_ghost_text()
        self.editor.show_ghost_text(self.session.anchor, self.visible_text())

    def _finish(self, outcome: Outcome) -> None:
        session = self.session
        self.editor.hide_ghost_text()
        self.state = GhostState.IDLE
        self.session = None
        logger.debug("Ghost text %s", outcome.value)
        self.resolved.emit(session, outcome.value)
