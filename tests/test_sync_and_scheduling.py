from __future__ import annotations

import pytest
from PySide6.QtTest import QTest

from tabbyqt.core.timers import DebounceTimer
from tabbyqt.inline.scheduler import CompletionScheduler, TriggerKind
from tabbyqt.inline.sync import ChangeRecord, DocumentSyncTracker
from tabbyqt.lang.positions import Position, Range

URI = "file:///work/main.py"


def _range(line: int, start: int, end: int) -> Range:
    return Range(Position(line, start), Position(line, end))


@pytest.fixture
def tracker(transport) -> DocumentSyncTracker:
    tracker = DocumentSyncTracker(URI, transport, idle_ms=50)
    assert tracker.open("", "python")
    return tracker


def _changes(transport) -> list[dict]:
    return [params for method, params in transport.notifications if method == "textDocument/didChange"]


def test_open_announces_full_text_at_version_zero(transport) -> None:
    tracker = DocumentSyncTracker(URI, transport, idle_ms=30)
    tracker.record_change(None, "stale")

    assert tracker.open("def main():", "python")

    assert transport.notifications == [
        (
            "textDocument/didOpen",
            {"textDocument": {"uri": URI, "languageId": "python", "version": 0, "text": "def main():"}},
        )
    ]
    assert not tracker.has_pending
    assert not tracker.is_flush_scheduled()


def test_flush_sends_buffered_changes_as_one_batch(tracker, transport) -> None:
    tracker.record_change(_range(0, 0, 0), "d")
    tracker.record_change(_range(0, 1, 1), "e")
    tracker.record_change(_range(0, 2, 2), "f")

    assert tracker.flush()

    changes = _changes(transport)
    assert len(changes) == 1
    assert changes[0]["textDocument"] == {"uri": URI, "version": 1}
    assert [change["text"] for change in changes[0]["contentChanges"]] == ["d", "e", "f"]
    assert changes[0]["contentChanges"][1]["range"] == {
        "start": {"line": 0, "character": 1},
        "end": {"line": 0, "character": 1},
    }
    assert tracker.version == 1
    assert tracker.pending == ()
    assert not tracker.is_flush_scheduled()


def test_flush_without_changes_is_a_no_op(tracker, transport) -> None:
    assert tracker.flush()
    assert _changes(transport) == []
    assert tracker.version == 0


def test_versions_increase_once_per_batch(tracker) -> None:
    for expected, text in enumerate(["a", "b", "c"], start=1):
        tracker.record_change(None, text)
        tracker.flush()
        assert tracker.version == expected


def test_rapid_edits_produce_a_single_debounced_flush(tracker, transport) -> None:
    for text in "abc":
        tracker.record_change(None, text)
        QTest.qWait(5)
    assert tracker.is_flush_scheduled()

    QTest.qWait(300)

    changes = _changes(transport)
    assert len(changes) == 1
    assert len(changes[0]["contentChanges"]) == 3
    assert tracker.version == 1


def test_failed_flush_keeps_changes_and_version(tracker, transport) -> None:
    tracker.record_change(_range(0, 0, 0), "x")
    transport.fail_notifications = True

    assert not tracker.flush()
    assert tracker.version == 0
    assert tracker.pending == (ChangeRecord(_range(0, 0, 0), "x"),)

    transport.fail_notifications = False
    assert tracker.flush()
    assert tracker.version == 1
    assert _changes(transport)[0]["contentChanges"] == [
        {"range": {"start": {"line": 0, "character": 0}, "end": {"line": 0, "character": 0}}, "text": "x"}
    ]


def test_flush_before_open_keeps_changes(transport) -> None:
    tracker = DocumentSyncTracker(URI, transport, idle_ms=30)
    tracker.record_change(None, "x")

    assert not tracker.flush()
    assert tracker.has_pending
    assert transport.notifications == []


def test_unopened_document_is_never_in_sync(transport) -> None:
    tracker = DocumentSyncTracker(URI, transport, idle_ms=30)

    assert not tracker.flush()


def test_flush_retries_open_through_hook(transport) -> None:
    attempts: list[bool] = []

    def reopen() -> bool:
        attempts.append(True)
        return tracker.open("x", "python")

    tracker = DocumentSyncTracker(URI, transport, idle_ms=30, reopen=reopen)
    tracker.record_change(None, "x")

    transport.connected = False
    assert not tracker.flush()
    assert attempts == []

    transport.connected = True
    assert tracker.flush()
    assert attempts == [True]
    assert transport.methods() == ["textDocument/didOpen"]
    assert not tracker.has_pending


def test_flush_while_disconnected_keeps_changes(tracker, transport) -> None:
    transport.connected = False
    tracker.record_change(None, "x")

    assert not tracker.flush()
    assert tracker.has_pending


def test_close_cancels_pending_flush(tracker, transport) -> None:
    tracker.record_change(None, "x")
    tracker.close()
    QTest.qWait(100)

    assert transport.methods() == ["textDocument/didOpen", "textDocument/didClose"]
    assert transport.notifications[-1][1] == {"textDocument": {"uri": URI}}
    assert not tracker.opened
    assert not tracker.has_pending


def test_change_without_range_is_full_text() -> None:
    assert ChangeRecord(None, "all").to_lsp() == {"text": "all"}


def test_idle_scheduler_requests_automatic_completion(qt_app) -> None:
    calls: list[TriggerKind] = []
    scheduler = CompletionScheduler(30, calls.append)

    scheduler.on_activity()
    QTest.qWait(10)
    scheduler.on_activity()
    assert scheduler.is_armed()

    QTest.qWait(200)

    assert calls == [TriggerKind.AUTOMATIC]
    assert not scheduler.is_armed()


def test_explicit_trigger_bypasses_idle_window(qt_app) -> None:
    calls: list[TriggerKind] = []
    scheduler = CompletionScheduler(30, calls.append)

    scheduler.on_activity()
    scheduler.trigger()
    QTest.qWait(100)

    assert calls == [TriggerKind.INVOKED]
    assert int(TriggerKind.INVOKED) == 1
    assert int(TriggerKind.AUTOMATIC) == 2


def test_disabled_auto_trigger_ignores_activity(qt_app) -> None:
    calls: list[TriggerKind] = []
    scheduler = CompletionScheduler(10, calls.append, auto_trigger=False)

    scheduler.on_activity()
    QTest.qWait(60)

    assert calls == []
    assert not scheduler.is_armed()


def test_cancelled_scheduler_never_fires(qt_app) -> None:
    calls: list[TriggerKind] = []
    scheduler = CompletionScheduler(20, calls.append)

    scheduler.on_activity()
    scheduler.cancel()
    QTest.qWait(80)

    assert calls == []


def test_debounce_timer_logs_callback_failures(qt_app, caplog) -> None:
    def explode() -> None:
        raise ValueError("boom")

    timer = DebounceTimer(5, explode)
    timer.arm()
    QTest.qWait(60)

    assert "Debounced callback failed" in caplog.text

