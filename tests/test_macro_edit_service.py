from __future__ import annotations

import pytest

from macro_core.app.services import CollectionsService, MacroEditService
from macro_core.app.session import MacroDataSession
from macro_core.display import IconClass
from macro_core.errors import DuplicateName, IndexOutOfRange, PersistenceFailure
from macro_core.models.actions import (
    Clipboard,
    ClipboardAction,
    Delay,
    Keypress,
    KeyPressEvent,
    SystemEvent,
    UnknownEvent,
)
from macro_core.models.macro import Macro, MacroData, Trigger
from macro_core.sequence.store import SequenceStore


@pytest.fixture
def collections() -> CollectionsService:
    data = MacroData.new_default()
    data.collections[0].macros.append(
        Macro(
            name="Greeting",
            trigger=Trigger(keys=[Keypress(keypress=224), Keypress(keypress=11)]),
            sequence=SequenceStore([KeyPressEvent(keypress=11), Delay(duration_ms=30)]),
        )
    )
    saved = []
    return CollectionsService(session=MacroDataSession(data, persist=saved.append))


@pytest.fixture
def editor(collections: CollectionsService) -> MacroEditService:
    return MacroEditService(collections=collections)


def test_requires_open_macro(editor: MacroEditService) -> None:
    assert not editor.is_open
    with pytest.raises(RuntimeError):
        editor.add_element(Delay(duration_ms=1))


def test_open_missing_macro_returns_false(editor: MacroEditService) -> None:
    assert editor.open_macro("Default", "Nope") is False
    assert editor.open_macro("Nope", "Greeting") is False
    assert editor.new_macro("Nope") is False


def test_open_is_a_working_copy(editor: MacroEditService, collections: CollectionsService) -> None:
    assert editor.open_macro("Default", "Greeting")
    editor.add_element(Delay(duration_ms=99))

    assert editor.is_dirty()
    assert len(collections.find_macro("Default", "Greeting").sequence) == 2


def test_rows_project_display_and_selection(editor: MacroEditService) -> None:
    editor.open_macro("Default", "Greeting")
    editor.add_element(SystemEvent(data=Clipboard(action=ClipboardAction(type="Sarcasm"))))
    editor.select_element(1)

    rows = editor.rows()
    assert [r.index for r in rows] == [0, 1, 2]
    assert [r.display.label for r in rows] == ["H", "30 ms", "Sarcasm Text"]
    assert rows[1].display.icon is IconClass.TIME
    assert rows[2].display.editable is False
    assert [r.selected for r in rows] == [False, True, False]
    assert len({r.id for r in rows}) == 3


def test_trigger_label(editor: MacroEditService) -> None:
    editor.open_macro("Default", "Greeting")
    assert editor.trigger_label() == "Left Ctrl + H"

    editor.update_trigger_keys([Keypress(keypress=5)])
    assert editor.trigger_label() == "B"
    with pytest.raises(TypeError):
        editor.update_trigger_keys([5])  # type: ignore[list-item]


def test_element_ops_delegate_to_store(editor: MacroEditService) -> None:
    editor.open_macro("Default", "Greeting")
    editor.select_element(1)

    editor.delete_element(0)
    assert editor.sequence.selected_index == 0

    assert editor.update_selected_element(Delay(duration_ms=45)) is True
    assert editor.sequence.events() == [Delay(duration_ms=45)]

    editor.duplicate_element(0)
    editor.insert_element(KeyPressEvent(keypress=4), 0)
    editor.move_element(0, 2)
    assert editor.sequence.events() == [Delay(duration_ms=45), Delay(duration_ms=45), KeyPressEvent(keypress=4)]

    with pytest.raises(IndexOutOfRange):
        editor.update_element(Delay(duration_ms=1), 3)

    editor.overwrite_sequence([])
    assert editor.rows() == []
    assert editor.update_selected_element(Delay(duration_ms=1)) is False


def test_save_replaces_existing_macro(editor: MacroEditService, collections: CollectionsService) -> None:
    editor.open_macro("Default", "Greeting")
    editor.update_macro_name("Hello")
    editor.update_macro_type("OnHold")
    editor.update_allow_while_other_keys(True)
    editor.add_element(Delay(duration_ms=5))

    saved = editor.save()

    assert collections.find_collection("Default").macro_names() == ["Hello"]
    stored = collections.find_macro("Default", "Hello")
    assert stored is saved
    assert stored.macro_type == "OnHold"
    assert stored.trigger.allow_while_other_keys is True
    assert stored.sequence.events()[-1] == Delay(duration_ms=5)
    assert not editor.is_dirty()

    # 保存后继续编辑不影响已保存的宏
    editor.add_element(Delay(duration_ms=6))
    assert len(stored.sequence) == 3


def test_save_new_macro(editor: MacroEditService, collections: CollectionsService) -> None:
    assert editor.new_macro("Default")
    assert editor.is_new

    with pytest.raises(ValueError):
        editor.save()

    editor.update_macro_name("Greeting")
    with pytest.raises(DuplicateName):
        editor.save()
    assert collections.find_collection("Default").macro_names() == ["Greeting"]

    editor.update_macro_name("Second")
    editor.save()
    assert collections.find_collection("Default").macro_names() == ["Greeting", "Second"]
    assert not editor.is_new


def test_invalid_macro_type(editor: MacroEditService) -> None:
    editor.open_macro("Default", "Greeting")
    with pytest.raises(ValueError):
        editor.update_macro_type("Toggle")
    assert editor.macro_type == "Single"


def test_save_retry_after_persist_failure_keeps_renamed_macro() -> None:
    state = {"fail": True, "writes": 0}

    def flaky(_cols) -> None:
        if state["fail"]:
            raise OSError("disk full")
        state["writes"] += 1

    data = MacroData.new_default()
    data.collections[0].macros.append(Macro(name="A"))
    collections = CollectionsService(session=MacroDataSession(data, persist=flaky))
    editor = MacroEditService(collections=collections)

    editor.open_macro("Default", "A")
    editor.update_macro_name("B")
    with pytest.raises(PersistenceFailure):
        editor.save()
    # 内存中已替换为 B，不回滚
    assert collections.find_collection("Default").macro_names() == ["B"]

    state["fail"] = False
    editor.add_element(Delay(duration_ms=8))
    editor.save()

    assert collections.find_collection("Default").macro_names() == ["B"]
    assert collections.find_macro("Default", "B").sequence.events() == [Delay(duration_ms=8)]
    assert state["writes"] == 1
    assert not collections.session.is_dirty()


def test_saved_macro_does_not_share_events_with_editor(editor: MacroEditService, collections: CollectionsService) -> None:
    editor.open_macro("Default", "Greeting")
    editor.add_element(UnknownEvent(type="OBS", raw={"type": "OBS", "data": {"scene": 1}}))

    saved = editor.save()

    mine = editor.sequence.events()[-1]
    stored = saved.sequence.events()[-1]
    assert stored == mine
    assert stored is not mine
    assert stored.raw is not mine.raw

    mine.raw["data"]["scene"] = 2
    assert stored.raw["data"]["scene"] == 1
