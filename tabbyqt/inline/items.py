"""Completion candidates and normalization of inline completion responses."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from tabbyqt.lang.positions import Range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    insert_text: str
    range: Range | None = None


def _insert_text(value: Any) -> str | None:
    # InlineCompletionItem.insertText is either a plain string or a StringValue.
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("value"), str):
        return value["value"]
    return None


def parse_item(item: Any) -> Candidate | None:
    if not isinstance(item, dict):
        return None
    text = _insert_text(item.get("insertText"))
    if text is None:
        return None
    return Candidate(insert_text=text, range=Range.from_lsp(item.get("range")))


def parse_items(result: Any) -> list[Candidate]:
    """Normalize any response payload into an ordered list of candidates.

    ``None`` means no completions, a mapping carries an ``items`` list, a list is
    the flat form. Anything else is treated as no results.
    """
    if result is None:
        return []
    if isinstance(result, dict):
        items = result.get("items")
        if not isinstance(items, list):
            logger.info("Unknown inline completion list -- %s", type(items).__name__)
            return []
    elif isinstance(result, list):
        items = result
    else:
        logger.info("Unknown inline completion response -- %s", type(result).__name__)
        return []
    return [candidate for candidate in map(parse_item, items) if candidate is not None]
