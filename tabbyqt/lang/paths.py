"""Path helpers shared by the document manager and the editor."""
from __future__ import annotations

import os
from typing import Any, Mapping
from urllib.parse import quote, unquote, urlparse

DEFAULT_LANGUAGE_ID = "plaintext"


def path_basename(path: Any) -> str:
    """Return the trailing component of ``path``, ignoring trailing separators.

    ``"/home/user/test.py"`` gives ``"test.py"`` and ``"/home/user/"`` gives
    ``"user"``.
    """
    text = os.fspath(path) if path is not None else ""
    stripped = text.rstrip("/\\")
    if not stripped:
        return ""
    return stripped.replace("\\", "/").rsplit("/", 1)[-1]


def normalize_path(path: Any) -> str | None:
    """Convert path-like objects and ``file:`` URIs into an absolute path string."""
    if path is None:
        return None
    path_str = os.fspath(path)
    if not path_str:
        return None
    if path_str.startswith("file:"):
        parsed = urlparse(path_str)
        if parsed.scheme == "file" and parsed.path:
            path_str = unquote(parsed.path)
    return os.path.abspath(path_str)


def uri_for_path(path: Any) -> str | None:
    normalized = normalize_path(path)
    if not normalized:
        return None
    return "file://" + quote(normalized.replace(os.sep, "/"), safe="/:")


def language_for_path(path: Any, language_map: Mapping[str, str]) -> str:
    """Look up the protocol language id for ``path`` by its extension."""
    name = path_basename(path)
    _, ext = os.path.splitext(name)
    if not ext:
        return DEFAULT_LANGUAGE_ID
    return language_map.get(ext.lower(), DEFAULT_LANGUAGE_ID)
