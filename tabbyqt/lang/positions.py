"""Translation between native string offsets and LSP positions.

Native offsets index Python strings (code points). The protocol addresses text
by zero-based line and a character column counted in UTF-16 code units. Lines
are delimited by ``"\\n"`` only.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Position:
    line: int
    character: int

    def to_lsp(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}

    @classmethod
    def from_lsp(cls, payload: Any) -> "Position | None":
        if not isinstance(payload, dict):
            return None
        line, character = payload.get("line"), payload.get("character")
        if not isinstance(line, int) or not isinstance(character, int):
            return None
        return cls(line=line, character=character)


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    def to_lsp(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_lsp(), "end": self.end.to_lsp()}

    @classmethod
    def from_lsp(cls, payload: Any) -> "Range | None":
        if not isinstance(payload, dict):
            return None
        start = Position.from_lsp(payload.get("start"))
        end = Position.from_lsp(payload.get("end"))
        if start is None or end is None:
            return None
        return cls(start=start, end=end)


def _units(char: str) -> int:
    return 2 if ord(char) > 0xFFFF else 1


def utf16_length(text: str) -> int:
    """Number of UTF-16 code units needed to encode ``text``."""
    return len(text) + sum(1 for char in text if ord(char) > 0xFFFF)


def utf16_to_index(text: str, units: int) -> int:
    """Convert an absolute UTF-16 offset into a string index, clamping to the text."""
    if units <= 0:
        return 0
    consumed = 0
    for index, char in enumerate(text):
        width = _units(char)
        if consumed + width > units:
            return index
        consumed += width
    return len(text)


def index_to_utf16(text: str, index: int) -> int:
    index = max(0, min(index, len(text)))
    return utf16_length(text[:index])


def to_protocol_position(text: str, offset: int) -> Position:
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return Position(line=line, character=utf16_length(text[line_start:offset]))


def to_native_offset(text: str, position: Position) -> int:
    if position.line < 0:
        return 0
    line_start = 0
    for _ in range(position.line):
        newline = text.find("\n", line_start)
        if newline == -1:
            return len(text)
        line_start = newline + 1
    line_end = text.find("\n", line_start)
    if line_end == -1:
        line_end = len(text)
    column = utf16_to_index(text[line_start:line_end], position.character)
    return line_start + column
