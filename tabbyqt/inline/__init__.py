"""Inline completion runtime exports."""

from tabbyqt.inline.document import DocumentSession
from tabbyqt.inline.ghost_text import GhostState, GhostTextController
from tabbyqt.inline.items import Candidate, parse_items
from tabbyqt.inline.manager import InlineCompletionManager
from tabbyqt.inline.pipeline import CompletionPipeline, CompletionSession
from tabbyqt.inline.scheduler import CompletionScheduler, TriggerKind
from tabbyqt.inline.sync import ChangeRecord, DocumentSyncTracker

__all__ = [
    "Candidate",
    "ChangeRecord",
    "CompletionPipeline",
    "CompletionScheduler",
    "CompletionSession",
    "DocumentSession",
    "DocumentSyncTracker",
    "GhostState",
    "GhostTextController",
    "InlineCompletionManager",
    "TriggerKind",
    "parse_items",
]
