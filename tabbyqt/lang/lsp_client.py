"""JSON-RPC client for talking to the completion agent over stdio."""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable

from PySide6.QtCore import QObject, QProcess, QByteArray, Signal
from shiboken6 import isValid

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[dict], None]


class TransportError(RuntimeError):
    """Raised when a message cannot be handed to the agent process."""


class LSPClient(QObject):
    """Starts the agent process, performs the LSP handshake and routes replies."""

    ready = Signal()
    notification_received = Signal(dict)
    stopped = Signal()

    def __init__(self, command: list[str], workdir: str | None = None, parent=None) -> None:
        super().__init__(parent)
        self.command = command
        self.workdir = workdir
        self.process = QProcess(self)
        self.server_info: dict[str, Any] = {}
        self._id_counter = 0
        self._buffer = b""
        self._pending: dict[int, ResponseCallback] = {}
        self._initialized = False

        self.process.readyReadStandardOutput.connect(self._on_ready_read)
        self.process.started.connect(self._on_started)
        self.process.errorOccurred.connect(self._on_error)
        self.process.finished.connect(self._on_finished)

    def start(self) -> None:
        if not self.command:
            raise RuntimeError("No command configured for the completion agent")
        program, *args = self.command
        self.process.setWorkingDirectory(self.workdir or "")
        logger.info("Starting completion agent: %r %r", program, args)
        self.process.start(program, args)

    def stop(self) -> None:
        if not isValid(self.process):
            return
        if self.process.state() == QProcess.Running:
            try:
                self.send_request("shutdown", None)
                self.send_notification("exit", None)
            except TransportError:
                logger.debug("Failed to send shutdown sequence", exc_info=True)
            self.process.terminate()
            finished = self.process.waitForFinished(2000)
            if not finished and self.process.state() != QProcess.NotRunning:
                logger.warning("Completion agent did not terminate gracefully; killing process")
                self.process.kill()
                self.process.waitForFinished(1000)
        self._initialized = False
        self._pending.clear()

    def is_running(self) -> bool:
        return isValid(self.process) and self.process.state() == QProcess.Running

    def is_connected(self) -> bool:
        return self._initialized and self.is_running()

    def send_request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        callback: ResponseCallback | None = None,
    ) -> int:
        self._id_counter += 1
        request_id = self._id_counter
        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            payload["params"] = params
        if callback:
            self._pending[request_id] = callback
        try:
            self._send_payload(payload)
        except TransportError:
            self._pending.pop(request_id, None)
            raise
        return request_id

    def send_notification(self, method: str, params: dict[str, Any] | None = None) -> None:
        payload: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            payload["params"] = params
        self._send_payload(payload)

    # JSON-RPC plumbing
    def _send_payload(self, payload: dict[str, Any]) -> None:
        if not self.is_running():
            raise TransportError("Completion agent is not running")
        message = encode_message(payload)
        if self.process.write(QByteArray(message)) < 0:
            raise TransportError(self.process.errorString() or "Write to completion agent failed")
        logger.debug("LSP -> %s", payload)

    def _on_started(self) -> None:  # pragma: no cover - Qt started callback
        logger.info("Completion agent started")
        self._initialize()

    def _initialize(self) -> None:
        params = {
            "processId": os.getpid(),
            "clientInfo": {"name": "tabbyqt"},
            "rootUri": None,
            "capabilities": {
                "textDocument": {
                    "synchronization": {"dynamicRegistration": False},
                    "inlineCompletion": {"dynamicRegistration": False},
                }
            },
        }
        self.send_request("initialize", params, callback=self._handle_initialize)

    def _handle_initialize(self, message: dict) -> None:
        if "error" in message:
            logger.error("Completion agent rejected initialize: %s", message["error"])
            return
        result = message.get("result") or {}
        self.server_info = result.get("serverInfo", {}) if isinstance(result, dict) else {}
        self.send_notification("initialized", {})
        self._initialized = True
        logger.info("Completion agent ready: %s", self.server_info.get("name", "unknown"))
        self.ready.emit()

    def _on_ready_read(self) -> None:
        if not isValid(self.process):
            logger.warning("Received data from invalid agent process")
            return
        try:
            self.feed(bytes(self.process.readAllStandardOutput()))
        except Exception:
            logger.exception("Error reading agent output")

    def feed(self, data: bytes) -> None:
        """Consume raw bytes from the agent and dispatch every complete message."""
        self._buffer += data
        while True:
            message, rest = extract_message(self._buffer)
            if len(rest) == len(self._buffer):
                break
            self._buffer = rest
            if message is not None:
                self._handle_message(message)

    def _handle_message(self, message: dict[str, Any]) -> None:
        logger.debug("LSP <- %s", message)
        if "id" in message and "method" not in message:
            callback = self._pending.pop(message.get("id"), None)
            if callback:
                callback(message)
        elif "method" in message:
            self.notification_received.emit(message)

    def _on_error(self, error) -> None:  # pragma: no cover - Qt error callback
        if error == QProcess.ProcessError.FailedToStart:
            logger.error(
                "Completion agent failed to start: %r. Check that the configured command exists.",
                self.command,
            )
        else:
            logger.error("Completion agent process error: %s", error)

    def _on_finished(self, code, _status=None) -> None:  # pragma: no cover - Qt finished callback
        logger.info("Completion agent exited with code %s", code)
        self._initialized = False
        self._pending.clear()
        self.stopped.emit()


def encode_message(payload: dict[str, Any]) -> bytes:
    data = json.dumps(payload).encode("utf-8")
    return f"Content-Length: {len(data)}\r\n\r\n".encode("utf-8") + data


def extract_message(data: bytes) -> tuple[dict[str, Any] | None, bytes]:
    """Split one framed message off ``data``.

    Returns ``(None, data)`` while the frame is incomplete. A frame with an
    undecodable body is dropped and ``(None, rest)`` is returned.
    """
    header_end = data.find(b"\r\n\r\n")
    if header_end == -1:
        return None, data
    headers = data[:header_end].decode("utf-8", errors="ignore")
    content_length = 0
    for line in headers.split("\r\n"):
        if line.lower().startswith("content-length"):
            try:
                content_length = int(line.split(":")[1].strip())
            except (ValueError, IndexError):
                pass
    body_start = header_end + 4
    if len(data) < body_start + content_length:
        return None, data
    body = data[body_start : body_start + content_length]
    try:
        return json.loads(body.decode("utf-8")), data[body_start + content_length :]
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Failed to decode agent message: %s", body)
        return None, data[body_start + content_length :]
