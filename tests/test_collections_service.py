from __future__ import annotations

from typing import List

import pytest

from macro_core.app.services import CollectionsService
from macro_core.app.session import MacroDataSession
from macro_core.errors import DuplicateName, NotFound, PersistenceFailure
from macro_core.event_bus import EventBus
from macro_core.event_types import EventType
from macro_core.events.payloads import RecordDeletedPayload, RecordUpdatedPayload
from macro_core.models.actions import Delay, KeyPressEvent
from macro_core.models.macro import Collection, Macro, MacroData
from macro_core.models.settings import EditorSettings, IOConfig
from macro_core.sequence.store import SequenceStore


class RecordingPersist:
    """
    持久化回调替身：记录每次写入的集合名列表，可设置为失败。
    """
    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.fail = False

    def __call__(self, collections: List[Collection]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.calls.append([c.name for c in collections])


@pytest.fixture
def persist() -> RecordingPersist:
    return RecordingPersist()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def svc(persist: RecordingPersist, bus: EventBus) -> CollectionsService:
    data = MacroData.new_default()
    data.collections[0].macros.append(Macro(name="Foo", sequence=SequenceStore([Delay(duration_ms=10)])))
    session = MacroDataSession(data, persist=persist)
    return CollectionsService(session=session, bus=bus)


def test_add_macro_with_duplicate_name_fails(svc: CollectionsService, persist: RecordingPersist) -> None:
    with pytest.raises(DuplicateName) as ei:
        svc.add_macro("Default", Macro(name="Foo"))
    assert ei.value.scope == "macro"
    assert len(svc.find_collection("Default").macros) == 1
    assert persist.calls == []


def test_add_collection_unique_and_persisted(svc: CollectionsService, persist: RecordingPersist) -> None:
    c = svc.add_collection("Work", icon="w")
    assert c.icon == "w"
    assert svc.collection_names() == ["Default", "Work"]
    assert persist.calls == [["Default", "Work"]]
    assert not svc.session.is_dirty()

    with pytest.raises(DuplicateName):
        svc.add_collection("Work")
    assert svc.collection_names() == ["Default", "Work"]


def test_add_collection_default_names(svc: CollectionsService) -> None:
    assert svc.add_collection().name == "New Collection"
    assert svc.add_collection("  ").name == "New Collection 2"


def test_delete_and_rename_collection(svc: CollectionsService) -> None:
    svc.add_collection("Work")
    assert svc.rename_collection("Work", "Games") is True
    assert svc.find_collection("Work") is None

    with pytest.raises(DuplicateName):
        svc.rename_collection("Games", "Default")
    assert svc.rename_collection("Games", "") is False
    assert svc.rename_collection("Missing", "X") is False

    assert svc.delete_collection("Games") is True
    assert svc.delete_collection("Games") is False
    assert svc.collection_names() == ["Default"]


def test_toggles_flip_flags_and_persist(svc: CollectionsService, persist: RecordingPersist) -> None:
    assert svc.toggle_collection("Default") is False
    assert svc.find_collection("Default").active is False
    assert svc.toggle_macro("Default", "Foo") is False
    assert svc.toggle_macro("Default", "Foo") is True
    assert svc.toggle_macro("Default", "Nope") is None
    assert len(persist.calls) == 3


def test_set_collection_icon(svc: CollectionsService) -> None:
    assert svc.set_collection_icon("Default", "k") is True
    assert svc.find_collection("Default").icon == "k"
    assert svc.set_collection_icon("Default", "k") is False


def test_create_rename_delete_macro(svc: CollectionsService) -> None:
    m = svc.create_macro("Default")
    assert m.name == "New Macro"
    assert m.macro_type == "Single"

    with pytest.raises(ValueError):
        svc.create_macro("Default", "Bad", macro_type="Toggle")

    assert svc.rename_macro("Default", "New Macro", "Bar") is True
    with pytest.raises(DuplicateName):
        svc.rename_macro("Default", "Bar", "Foo")

    assert svc.delete_macro("Default", "Bar") is True
    assert svc.find_collection("Default").macro_names() == ["Foo"]


def test_duplicate_macro_deep_copies(svc: CollectionsService) -> None:
    copy1 = svc.duplicate_macro("Default", "Foo")
    copy2 = svc.duplicate_macro("Default", "Foo")
    assert copy1.name == "Foo (copy)"
    assert copy2.name == "Foo (copy) 2"

    src = svc.find_macro("Default", "Foo")
    copy1.sequence.add(KeyPressEvent(keypress=4))
    assert len(src.sequence) == 1
    assert copy1.sequence.events()[0] == src.sequence.events()[0]


def test_move_macro(svc: CollectionsService) -> None:
    svc.add_collection("Work")
    assert svc.move_macro("Default", "Foo", "Work") is True
    assert svc.find_macro("Work", "Foo") is not None
    assert svc.find_macro("Default", "Foo") is None

    svc.add_macro("Default", Macro(name="Foo"))
    with pytest.raises(DuplicateName):
        svc.move_macro("Default", "Foo", "Work")
    assert svc.find_macro("Default", "Foo") is not None


def test_save_macro_replace_and_append(svc: CollectionsService) -> None:
    edited = Macro(name="Foo2", macro_type="Repeating")
    svc.save_macro("Default", edited, original_name="Foo")
    assert svc.find_collection("Default").macro_names() == ["Foo2"]

    svc.save_macro("Default", Macro(name="Other"))
    assert svc.find_collection("Default").macro_names() == ["Foo2", "Other"]

    with pytest.raises(DuplicateName):
        svc.save_macro("Default", Macro(name="Other"), original_name="Foo2")
    with pytest.raises(NotFound):
        svc.save_macro("Missing", Macro(name="X"))


def test_persistence_failure_propagates_without_rollback(svc: CollectionsService, persist: RecordingPersist) -> None:
    persist.fail = True
    with pytest.raises(PersistenceFailure) as ei:
        svc.add_collection("Work")
    assert isinstance(ei.value.cause, OSError)

    # 内存修改保留，仍然是脏的
    assert "Work" in svc.collection_names()
    assert svc.session.is_dirty()

    # 服务仍可用，重试保存成功
    persist.fail = False
    assert svc.save() is True
    assert not svc.session.is_dirty()


def test_auto_save_off_only_marks_dirty(persist: RecordingPersist) -> None:
    settings = EditorSettings(io=IOConfig(auto_save=False))
    session = MacroDataSession(MacroData.new_default(), persist=persist, settings=settings)
    svc = CollectionsService(session=session)

    svc.add_collection("Work")
    assert persist.calls == []
    assert session.is_dirty()

    assert svc.save() is True
    assert persist.calls == [["Default", "Work"]]


def test_bus_receives_record_events(svc: CollectionsService, bus: EventBus) -> None:
    seen = []
    bus.subscribe(EventType.RECORD_UPDATED, seen.append)
    bus.subscribe(EventType.RECORD_DELETED, seen.append)

    svc.add_collection("Work")
    svc.delete_macro("Default", "Foo")
    bus.dispatch_pending()

    assert [e.type for e in seen] == [EventType.RECORD_UPDATED, EventType.RECORD_DELETED]
    first, second = seen[0].payload, seen[1].payload
    assert isinstance(first, RecordUpdatedPayload)
    assert first.record_type == "collection" and first.name == "Work" and first.saved is True
    assert isinstance(second, RecordDeletedPayload)
    assert second.collection == "Default" and second.name == "Foo"


def test_bus_receives_dirty_transitions(svc: CollectionsService, bus: EventBus) -> None:
    dirty_states = []
    bus.subscribe(EventType.DIRTY_STATE_CHANGED, lambda ev: dirty_states.append(ev.payload.dirty))

    svc.add_collection("Work")
    bus.dispatch_pending()

    # 修改 -> 脏；自动保存 -> 干净
    assert dirty_states == [True, False]
