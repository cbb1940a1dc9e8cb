"""Configuration management for tabbyqt."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "tabbyqt"
DEFAULTS_PATH = Path(__file__).resolve().parent.parent / "settings" / "defaults.yaml"
USER_SETTINGS_PATH = CONFIG_DIR / "settings.yaml"


class ConfigManager:
    """Loads default and user configuration and provides helpers to query values."""

    def __init__(self) -> None:
        self.defaults = self._load_yaml(DEFAULTS_PATH)
        if USER_SETTINGS_PATH.exists():
            self.user_settings = self._load_yaml(USER_SETTINGS_PATH)
        else:
            self.user_settings = {}
        self.settings = self._deep_merge(self.defaults, self.user_settings)

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    def get(self, key: str, default: Any | None = None) -> Any:
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.settings[key] = value

    def save(self) -> None:
        USER_SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
        with USER_SETTINGS_PATH.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self.settings, handle)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged


@dataclass(frozen=True)
class InlineSettings:
    """Options recognised by the inline completion runtime."""

    sync_idle_ms: int = 200
    trigger_idle_ms: int = 500
    auto_trigger: bool = True
    language_map: dict[str, str] = field(default_factory=dict)
    server_command: list[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: ConfigManager | None) -> "InlineSettings":
        section = (config.get("tabby", {}) if config else {}) or {}
        server = section.get("server", {}) or {}
        command = [str(server["command"])] if server.get("command") else []
        command += [str(arg) for arg in server.get("args", [])]
        language_map = {
            f".{str(k).lstrip('.').lower()}": str(v)
            for k, v in (section.get("language_map", {}) or {}).items()
        }
        return cls(
            sync_idle_ms=int(section.get("sync_idle_ms", cls.sync_idle_ms)),
            trigger_idle_ms=int(section.get("trigger_idle_ms", cls.trigger_idle_ms)),
            auto_trigger=bool(section.get("auto_trigger", cls.auto_trigger)),
            language_map=language_map,
            server_command=command,
        )
