"""Application bootstrap for the tabbyqt editor."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMainWindow

from tabbyqt.core.config import ConfigManager, InlineSettings
from tabbyqt.core.logging import configure_logging, level_from_config
from tabbyqt.editor.inline_editor import InlineEditor
from tabbyqt.inline.manager import InlineCompletionManager
from tabbyqt.lang.lsp_client import LSPClient
from tabbyqt.lang.paths import path_basename

logger = logging.getLogger(__name__)


class TabbyApplication:
    """Owns the Qt application, the agent connection and the editor window."""

    def __init__(self, argv: list[str] | None = None) -> None:
        self.args = self._parse_args(argv)
        self.config = ConfigManager()
        configure_logging(level_from_config(self.config))
        self.qt_app = QApplication.instance() or QApplication(sys.argv)
        settings = InlineSettings.from_config(self.config)
        workdir = str(Path(self.args.path).resolve().parent) if self.args.path else None
        self.client = LSPClient(settings.server_command, workdir=workdir)
        self.manager = InlineCompletionManager(self.config, self.client)
        self.window = QMainWindow()
        self.editor = InlineEditor(config=self.config)
        self.window.setCentralWidget(self.editor)
        self.manager.document_opened.connect(self._update_status)
        self.manager.document_closed.connect(self._update_status)
        self.client.ready.connect(lambda: self._update_status(""))
        self.client.stopped.connect(lambda: self._update_status(""))

    def _parse_args(self, argv: list[str] | None) -> argparse.Namespace:
        parser = argparse.ArgumentParser(description="Editor with inline completions from a Tabby agent")
        parser.add_argument("path", nargs="?", help="File to open")
        return parser.parse_args(argv)

    def _update_status(self, _uri: str) -> None:
        state = "connected" if self.client.is_connected() else "offline"
        title = path_basename(self.editor.path) if self.editor.path else "untitled"
        self.window.setWindowTitle(f"{title} - tabbyqt")
        self.window.statusBar().showMessage(f"Agent {state}")

    def run(self) -> int:
        try:
            path = Path(self.args.path) if self.args.path else None
            if path and path.is_file():
                self.editor.load_file(path)
            self.manager.open_document(self.editor, path or Path.cwd() / "untitled.txt")
            try:
                self.client.start()
            except RuntimeError:
                logger.exception("Could not start the completion agent")
            self.window.resize(960, 720)
            self.window.show()
            return self.qt_app.exec()
        except Exception:
            logger.exception("Unhandled exception in main loop")
            return 1
        finally:
            self.manager.shutdown()
