from __future__ import annotations

import pytest

from macro_core.models.actions import (
    Brightness,
    Clipboard,
    ClipboardAction,
    Delay,
    KeyPressEvent,
    MousePressEvent,
    Mute,
    Open,
    SetVolume,
    SystemEvent,
    UnknownEvent,
    UnknownSystemAction,
    Volume,
)
from macro_core.models.action_codec import copy_event, decode_event, decode_sequence, encode_event


# ---------- 构造时的形状校验 ----------

def test_delay_rejects_negative_and_non_int() -> None:
    with pytest.raises(ValueError):
        Delay(duration_ms=-1)
    with pytest.raises(TypeError):
        Delay(duration_ms=1.5)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Delay(duration_ms=True)  # type: ignore[arg-type]


def test_mouse_duration_present_iff_downup() -> None:
    MousePressEvent(subtype="DownUp", button=1, duration=10)
    MousePressEvent(subtype="Down", button=1)
    with pytest.raises(ValueError):
        MousePressEvent(subtype="DownUp", button=1)
    with pytest.raises(ValueError):
        MousePressEvent(subtype="Up", button=1, duration=10)


def test_clipboard_payload_shape() -> None:
    with pytest.raises(ValueError):
        ClipboardAction(type="PasteUserDefinedString")
    with pytest.raises(ValueError):
        ClipboardAction(type="Sarcasm", data="x")
    assert ClipboardAction(type="Translate").data is None


def test_keypress_rejects_unknown_keytype() -> None:
    with pytest.raises(ValueError):
        KeyPressEvent(keypress=4, keytype="Hold")


def test_volume_level_range() -> None:
    with pytest.raises(ValueError):
        SetVolume(level=101)
    with pytest.raises(TypeError):
        Mute(flag=1)  # type: ignore[arg-type]


def test_events_are_immutable() -> None:
    ev = Delay(duration_ms=5)
    with pytest.raises(AttributeError):
        ev.duration_ms = 6  # type: ignore[misc]


# ---------- JSON 编解码 ----------

def test_encode_persisted_layout() -> None:
    assert encode_event(KeyPressEvent(keypress=4, press_duration=15, keytype="Down")) == {
        "type": "KeyPressEvent",
        "data": {"keypress": 4, "press_duration": 15, "keytype": "Down"},
    }
    assert encode_event(Delay(duration_ms=40)) == {"type": "Delay", "data": 40}
    assert encode_event(MousePressEvent(subtype="DownUp", button=1, duration=20)) == {
        "type": "MousePressEvent",
        "data": {"type": "Press", "data": {"type": "DownUp", "button": 1, "duration": 20}},
    }
    assert encode_event(MousePressEvent(subtype="Up", button=3)) == {
        "type": "MousePressEvent",
        "data": {"type": "Press", "data": {"type": "Up", "button": 3}},
    }
    assert encode_event(SystemEvent(data=Volume(action=SetVolume(level=30)))) == {
        "type": "SystemEvent",
        "data": {"type": "Volume", "action": {"type": "SetVolume", "data": 30}},
    }
    assert encode_event(SystemEvent(data=Clipboard(action=ClipboardAction(type="Copy")))) == {
        "type": "SystemEvent",
        "data": {"type": "Clipboard", "action": {"type": "Copy"}},
    }


def test_decode_system_variants() -> None:
    cases = [
        ({"type": "Open", "path": "a.exe"}, Open(path="a.exe")),
        ({"type": "Volume", "action": {"type": "Mute", "data": True}}, Volume(action=Mute(flag=True))),
        ({"type": "Brightness"}, Brightness()),
        (
            {"type": "Clipboard", "action": {"type": "SetClipboard", "data": "txt"}},
            Clipboard(action=ClipboardAction(type="SetClipboard", data="txt")),
        ),
    ]
    for raw, expected in cases:
        ev, diags = decode_event({"type": "SystemEvent", "data": raw})
        assert ev == SystemEvent(data=expected)
        assert diags == []


def test_decode_unknown_variants_are_preserved() -> None:
    raw = {"type": "PhillipsHueCommand", "data": {"bulb": 3}}
    ev, diags = decode_event(raw)
    assert isinstance(ev, UnknownEvent)
    assert encode_event(ev) == raw
    assert [d.code for d in diags] == ["event.type.unknown"]

    sys_raw = {"type": "SystemEvent", "data": {"type": "Lights", "on": True}}
    ev, diags = decode_event(sys_raw)
    assert isinstance(ev, SystemEvent)
    assert isinstance(ev.data, UnknownSystemAction)
    assert encode_event(ev) == sys_raw


def test_decode_normalizes_with_diagnostics() -> None:
    ev, diags = decode_event({"type": "Delay", "data": -5})
    assert ev == Delay(duration_ms=0)
    assert diags and diags[0].level == "warning"

    ev, diags = decode_event({"type": "KeyPressEvent", "data": {"keypress": 4, "keytype": "down"}})
    assert ev == KeyPressEvent(keypress=4, keytype="Down")
    assert diags == []

    ev, diags = decode_event({"type": "MousePressEvent", "data": {"type": "Press", "data": {"type": "Down", "button": 2, "duration": 9}}})
    assert ev == MousePressEvent(subtype="Down", button=2)
    assert [d.code for d in diags] == ["mouse.duration.dropped"]


def test_decode_rejects_malformed_entries() -> None:
    ev, diags = decode_event("Delay")
    assert ev is None
    assert diags[0].is_error()

    ev, diags = decode_event({"data": 5})
    assert ev is None
    assert diags[0].code == "event.type.missing"


def test_decode_sequence_skips_bad_items_and_keeps_order() -> None:
    events, diags = decode_sequence(
        [{"type": "Delay", "data": 1}, 17, {"type": "Delay", "data": 2}],
        path="$.sequence",
    )
    assert events == [Delay(duration_ms=1), Delay(duration_ms=2)]
    assert diags[0].path == "$.sequence[1]"


def test_copy_event_is_equal_but_distinct() -> None:
    ev = SystemEvent(data=Open(path="x"))
    c = copy_event(ev)
    assert c == ev
    assert c is not ev
