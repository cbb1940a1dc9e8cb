"""Central logging configuration."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from pathlib import Path
from typing import Any

LOG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "tabbyqt" / "logs"
LOG_FILE = LOG_DIR / "tabbyqt.log"


def level_from_config(config: Any | None, default: int = logging.INFO) -> int:
    """Resolve the ``logging.level`` setting to a numeric level."""

    section = (config.get("logging", {}) if config else {}) or {}
    value = section.get("level", default)
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: int = logging.INFO, log_file: Path | None = None) -> None:
    """Attach console and rotating file handlers to the root logger once."""

    target = log_file or LOG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(target, maxBytes=512_000, backupCount=3)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:
        root_logger.addHandler(console_handler)
        root_logger.addHandler(file_handler)
