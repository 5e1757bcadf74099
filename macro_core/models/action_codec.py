from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional, Tuple

from macro_core.models.common import as_bool, as_dict, as_int, as_str, clamp_int, is_int
from macro_core.models.diagnostics import Diagnostic, err, pjoin, warn
from macro_core.models.actions import (
    CLIPBOARD_PLAIN_TYPES,
    CLIPBOARD_TEXT_TYPES,
    DEFAULT_PRESS_DURATION_MS,
    KEY_TYPES,
    MOUSE_SUBTYPES,
    ActionEvent,
    Brightness,
    Clipboard,
    ClipboardAction,
    Delay,
    Keypress,
    KeyPressEvent,
    MousePressEvent,
    Mute,
    Open,
    SetVolume,
    SystemAction,
    SystemEvent,
    UnknownEvent,
    UnknownSystemAction,
    Volume,
)


_MAX_MS = 10**9


def _norm_choice(v: Any, choices: Tuple[str, ...]) -> Optional[str]:
    """
    按大小写不敏感匹配 choices；匹配不到返回 None，调用方决定回落值并记录诊断。
    """
    s = as_str(v, "").strip()
    if not s:
        return None
    for c in choices:
        if c.lower() == s.lower():
            return c
    return None


def _ms(v: Any, default: int, *, diags: List[Diagnostic], path: str, name: str) -> int:
    clamped = clamp_int(as_int(v, default), 0, _MAX_MS)
    if v is not None and (not is_int(v) or clamped != v):
        diags.append(warn(f"{name}.normalized", path, f"{name} 已被修正", detail=repr(v)))
    return clamped


# ---------------- keypress ----------------

def decode_keypress(obj: Any, *, diags: List[Diagnostic], path: str) -> Keypress:
    d = as_dict(obj)
    if not isinstance(obj, dict):
        diags.append(warn("keypress.not_object", path, "按键必须是对象(dict)"))

    code = as_int(d.get("keypress", 0), 0)
    if code < 0:
        diags.append(warn("keypress.code.negative", pjoin(path, ".keypress"), "按键码不能为负", detail=str(code)))
        code = 0

    duration = _ms(
        d.get("press_duration", DEFAULT_PRESS_DURATION_MS),
        DEFAULT_PRESS_DURATION_MS,
        diags=diags,
        path=pjoin(path, ".press_duration"),
        name="press_duration",
    )

    keytype = _norm_choice(d.get("keytype", "DownUp"), KEY_TYPES)
    if keytype is None:
        diags.append(warn("keypress.keytype.invalid", pjoin(path, ".keytype"), "未知 keytype，按 DownUp 处理", detail=repr(d.get("keytype"))))
        keytype = "DownUp"

    return Keypress(keypress=code, press_duration=duration, keytype=keytype)


def encode_keypress(k: Keypress) -> Dict[str, Any]:
    return {
        "keypress": int(k.keypress),
        "press_duration": int(k.press_duration),
        "keytype": k.keytype,
    }


# ---------------- system actions ----------------

def _decode_volume(d: Dict[str, Any], *, diags: List[Diagnostic], path: str) -> SystemAction:
    action_raw = d.get("action", None)
    a = as_dict(action_raw)
    t = _norm_choice(a.get("type", ""), ("Mute", "SetVolume"))
    apath = pjoin(path, ".action")

    if t == "Mute":
        return Volume(action=Mute(flag=as_bool(a.get("data", False), False)))

    if t == "SetVolume":
        level = as_int(a.get("data", 0), 0)
        if level < 0 or level > 100:
            diags.append(warn("volume.level.clamped", pjoin(apath, ".data"), "音量被裁剪到 0..100", detail=str(level)))
        return Volume(action=SetVolume(level=clamp_int(level, 0, 100)))

    diags.append(warn("system.volume.unknown", apath, "未知音量动作，原样保留", detail=as_str(a.get("type", ""))))
    return UnknownSystemAction(type="Volume", raw=copy.deepcopy(d))


def _decode_clipboard(d: Dict[str, Any], *, diags: List[Diagnostic], path: str) -> SystemAction:
    a = as_dict(d.get("action", None))
    apath = pjoin(path, ".action")
    t = as_str(a.get("type", "")).strip()
    if not t:
        diags.append(warn("system.clipboard.type.missing", apath, "剪贴板动作缺少 type，原样保留"))
        return UnknownSystemAction(type="Clipboard", raw=copy.deepcopy(d))

    data_raw = a.get("data", None)
    data: Optional[str] = None if data_raw is None else as_str(data_raw)

    if t in CLIPBOARD_TEXT_TYPES and data is None:
        diags.append(warn("system.clipboard.data.missing", pjoin(apath, ".data"), "剪贴板文本缺失，按空字符串处理"))
        data = ""
    if t in CLIPBOARD_PLAIN_TYPES and data is not None:
        diags.append(warn("system.clipboard.data.dropped", pjoin(apath, ".data"), "该剪贴板动作不带参数，已忽略 data"))
        data = None

    return Clipboard(action=ClipboardAction(type=t, data=data))


def decode_system_action(obj: Any, *, diags: List[Diagnostic], path: str) -> SystemAction:
    d = as_dict(obj)
    t = as_str(d.get("type", "")).strip()

    if t == "Open":
        return Open(path=as_str(d.get("path", "")))
    if t == "Volume":
        return _decode_volume(d, diags=diags, path=path)
    if t == "Brightness":
        return Brightness()
    if t == "Clipboard":
        return _decode_clipboard(d, diags=diags, path=path)

    diags.append(warn("system.type.unknown", path, "未知系统事件类型，原样保留", detail=t))
    return UnknownSystemAction(type=t, raw=copy.deepcopy(d))


def encode_system_action(a: SystemAction) -> Dict[str, Any]:
    if isinstance(a, Open):
        return {"type": "Open", "path": a.path}
    if isinstance(a, Volume):
        if isinstance(a.action, Mute):
            return {"type": "Volume", "action": {"type": "Mute", "data": bool(a.action.flag)}}
        return {"type": "Volume", "action": {"type": "SetVolume", "data": int(a.action.level)}}
    if isinstance(a, Brightness):
        return {"type": "Brightness"}
    if isinstance(a, Clipboard):
        action: Dict[str, Any] = {"type": a.action.type}
        if a.action.data is not None:
            action["data"] = a.action.data
        return {"type": "Clipboard", "action": action}
    if isinstance(a, UnknownSystemAction):
        out = copy.deepcopy(a.raw)
        out.setdefault("type", a.type)
        return out
    raise TypeError(f"not a system action: {type(a).__name__}")


# ---------------- mouse ----------------

def _decode_mouse(obj: Any, *, diags: List[Diagnostic], path: str) -> MousePressEvent:
    outer = as_dict(obj)
    # {"type": "Press", "data": {...}}；兼容直接给出内层对象的写法
    inner_raw = outer.get("data", None)
    if isinstance(inner_raw, dict):
        inner = inner_raw
        ipath = pjoin(path, ".data")
    else:
        inner = outer
        ipath = path

    subtype = _norm_choice(inner.get("type", "DownUp"), MOUSE_SUBTYPES)
    if subtype is None:
        diags.append(warn("mouse.type.invalid", pjoin(ipath, ".type"), "未知鼠标按下类型，按 DownUp 处理", detail=repr(inner.get("type"))))
        subtype = "DownUp"

    button = as_int(inner.get("button", 1), 1)
    if button < 0:
        diags.append(warn("mouse.button.negative", pjoin(ipath, ".button"), "鼠标按键码不能为负", detail=str(button)))
        button = 0

    duration: Optional[int] = None
    if subtype == "DownUp":
        duration = _ms(
            inner.get("duration", DEFAULT_PRESS_DURATION_MS),
            DEFAULT_PRESS_DURATION_MS,
            diags=diags,
            path=pjoin(ipath, ".duration"),
            name="duration",
        )
    elif inner.get("duration", None) is not None:
        diags.append(warn("mouse.duration.dropped", pjoin(ipath, ".duration"), "非 DownUp 的鼠标事件不带 duration，已忽略"))

    return MousePressEvent(subtype=subtype, button=button, duration=duration)


def _encode_mouse(ev: MousePressEvent) -> Dict[str, Any]:
    inner: Dict[str, Any] = {"type": ev.subtype, "button": int(ev.button)}
    if ev.duration is not None:
        inner["duration"] = int(ev.duration)
    return {"type": "Press", "data": inner}


# ---------------- events ----------------

def decode_event(obj: Any, *, path: str = "$") -> Tuple[Optional[ActionEvent], List[Diagnostic]]:
    diags: List[Diagnostic] = []
    ev = _decode_event_inner(obj, diags=diags, path=path or "$")
    return ev, diags


def _decode_event_inner(obj: Any, *, diags: List[Diagnostic], path: str) -> Optional[ActionEvent]:
    if not isinstance(obj, dict):
        diags.append(err("event.not_object", path, "事件必须是对象(dict)"))
        return None

    t = as_str(obj.get("type", "")).strip()
    if not t:
        diags.append(err("event.type.missing", path, "事件缺少 type 字段"))
        return None

    data = obj.get("data", None)
    dpath = pjoin(path, ".data")

    if t == "KeyPressEvent":
        return KeyPressEvent.from_keypress(decode_keypress(data, diags=diags, path=dpath))

    if t == "Delay":
        return Delay(duration_ms=_ms(data, 0, diags=diags, path=dpath, name="delay"))

    if t == "MousePressEvent":
        return _decode_mouse(data, diags=diags, path=dpath)

    if t == "SystemEvent":
        return SystemEvent(data=decode_system_action(data, diags=diags, path=dpath))

    diags.append(warn("event.type.unknown", path, "未知事件类型，原样保留", detail=t))
    return UnknownEvent(type=t, raw=copy.deepcopy(obj))


def encode_event(ev: ActionEvent) -> Dict[str, Any]:
    """
    把事件编码回 JSON dict（用于存盘 / 深拷贝）。
    """
    if isinstance(ev, KeyPressEvent):
        return {"type": "KeyPressEvent", "data": encode_keypress(ev.to_keypress())}
    if isinstance(ev, Delay):
        return {"type": "Delay", "data": int(ev.duration_ms)}
    if isinstance(ev, MousePressEvent):
        return {"type": "MousePressEvent", "data": _encode_mouse(ev)}
    if isinstance(ev, SystemEvent):
        return {"type": "SystemEvent", "data": encode_system_action(ev.data)}
    if isinstance(ev, UnknownEvent):
        out = copy.deepcopy(ev.raw)
        out.setdefault("type", ev.type)
        return out
    raise TypeError(f"not an action event: {type(ev).__name__}")


def decode_sequence(items: Iterable[Any], *, path: str = "$") -> Tuple[List[ActionEvent], List[Diagnostic]]:
    """
    解码事件列表：无法解析的元素被跳过（并记录诊断），其余保持原顺序。
    """
    events: List[ActionEvent] = []
    diags: List[Diagnostic] = []
    for i, item in enumerate(items):
        ev = _decode_event_inner(item, diags=diags, path=pjoin(path, f"[{i}]"))
        if ev is not None:
            events.append(ev)
    return events, diags


def copy_event(ev: ActionEvent) -> ActionEvent:
    """
    深拷贝：走 encode / decode，保证不与源事件共享任何内部对象。
    """
    out, _ = decode_event(encode_event(ev))
    if out is None:
        raise TypeError(f"cannot copy event of type {type(ev).__name__}")
    return out
