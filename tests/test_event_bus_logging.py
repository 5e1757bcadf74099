from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from macro_core.event_bus import Event, EventBus
from macro_core.event_types import EventType, as_event_type
from macro_core.events.payloads import DirtyStateChangedPayload
from macro_core.logging_context import collection_var, log_context, macro_var
from macro_core.logging_setup import ContextFilter, setup_logging


# ---------- EventBus ----------

def test_post_builds_typed_payload_and_dispatches_fifo() -> None:
    bus = EventBus()
    got = []
    bus.subscribe(EventType.DIRTY_STATE_CHANGED, got.append)

    bus.post(EventType.DIRTY_STATE_CHANGED, dirty=True)
    bus.post("DIRTY_STATE_CHANGED", dirty=False)
    assert got == []  # 只在 dispatch_pending 时投递

    assert bus.dispatch_pending() == 2
    assert [e.payload for e in got] == [DirtyStateChangedPayload(dirty=True), DirtyStateChangedPayload(dirty=False)]


def test_post_validation() -> None:
    bus = EventBus()
    with pytest.raises(TypeError):
        bus.post(EventType.RECORD_UPDATED, name="x")  # 缺 record_type
    with pytest.raises(TypeError):
        bus.publish(Event(type=EventType.RECORD_UPDATED, payload={"name": "x"}))
    with pytest.raises(ValueError):
        as_event_type("NOPE")
    assert bus.pending_count() == 0


def test_handler_errors_propagate_or_go_to_on_error() -> None:
    bus = EventBus()

    def bad(_ev: Event) -> None:
        raise RuntimeError("handler failed")

    bus.subscribe(EventType.ANY, bad)
    bus.post(EventType.DIRTY_STATE_CHANGED, dirty=True)
    with pytest.raises(RuntimeError):
        bus.dispatch_pending()

    errors = []
    bus.post(EventType.DIRTY_STATE_CHANGED, dirty=True)
    bus.post(EventType.DIRTY_STATE_CHANGED, dirty=False)
    assert bus.dispatch_pending(on_error=lambda ev, e: errors.append(str(e))) == 2
    assert errors == ["handler failed", "handler failed"]

    bus.unsubscribe(EventType.ANY, bad)
    bus.post(EventType.DIRTY_STATE_CHANGED, dirty=True)
    assert bus.dispatch_pending() == 1


# ---------- logging ----------

def test_log_context_sets_and_restores() -> None:
    with log_context(collection="Default", macro="Foo"):
        assert collection_var.get() == "Default"
        with log_context(macro="Bar"):
            assert macro_var.get() == "Bar"
        assert macro_var.get() == "Foo"
    assert collection_var.get() == "-"


def test_context_filter_injects_fields() -> None:
    rec = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    with log_context(collection="Default", action="macro_add"):
        assert ContextFilter().filter(rec) is True
    assert rec.collection == "Default"
    assert rec.action == "macro_add"
    assert rec.macro == "-"


def test_setup_logging_writes_app_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)

    rt = setup_logging(app_data_dir=tmp_path, level="INFO")
    try:
        with log_context(collection="Default"):
            logging.getLogger("macro_core.test").info("hello from test")
    finally:
        rt.stop()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    text = (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")
    assert "hello from test" in text
    assert "Default" in text
