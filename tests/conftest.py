"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QObject, Signal  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from tabbyqt.lang.lsp_client import TransportError  # noqa: E402

_qt_app = QApplication.instance() or QApplication([])


@pytest.fixture(scope="session")
def qt_app():
    """Provide a shared QApplication instance for timer and widget tests."""

    return _qt_app


@dataclass
class SentRequest:
    id: int
    method: str
    params: dict[str, Any]
    callback: Callable[[dict], None] | None


class FakeTransport(QObject):
    """In-memory stand-in for the agent connection."""

    ready = Signal()

    def __init__(self) -> None:
        super().__init__()
        self.connected = True
        self.fail_notifications = False
        self.notifications: list[tuple[str, dict]] = []
        self.requests: list[SentRequest] = []
        self.stopped = False
        self._next_id = 0

    def is_connected(self) -> bool:
        return self.connected

    def send_notification(self, method: str, params: dict | None = None) -> None:
        if self.fail_notifications:
            raise TransportError("pipe closed")
        self.notifications.append((method, params))

    def send_request(self, method: str, params: dict | None = None, callback=None) -> int:
        self._next_id += 1
        self.requests.append(SentRequest(self._next_id, method, params, callback))
        return self._next_id

    def respond(self, request: SentRequest, result: Any) -> None:
        request.callback({"jsonrpc": "2.0", "id": request.id, "result": result})

    def methods(self) -> list[str]:
        return [method for method, _ in self.notifications]

    def stop(self) -> None:
        self.stopped = True
        self.connected = False


class FakeEditor(QObject):
    """Editor collaborator holding text in a plain string."""

    edited = Signal(int, int, str)

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        super().__init__()
        self._text = text
        self.cursor = len(text) if cursor is None else cursor
        self.ghost: tuple[int, str] | None = None
        self.ghost_history: list[str] = []

    def text(self) -> str:
        return self._text

    def cursor_offset(self) -> int:
        return self.cursor

    def set_cursor_offset(self, offset: int) -> None:
        self.cursor = offset

    def insert_text(self, offset: int, text: str) -> None:
        self.replace_text(offset, offset, text)

    def replace_text(self, start: int, end: int, text: str) -> None:
        self._text = self._text[:start] + text + self._text[end:]
        if self.cursor >= end:
            self.cursor += len(text) - (end - start)
        self.edited.emit(start, end, text)

    def type(self, text: str) -> None:
        self.insert_text(self.cursor, text)

    def show_ghost_text(self, offset: int, text: str) -> None:
        self.ghost = (offset, text)
        self.ghost_history.append(text)

    def hide_ghost_text(self) -> None:
        self.ghost = None


@pytest.fixture
def transport(qt_app) -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_editor(qt_app) -> Callable[..., FakeEditor]:
    def _make(text: str = "", cursor: int | None = None) -> FakeEditor:
        return FakeEditor(text, cursor)

    return _make
