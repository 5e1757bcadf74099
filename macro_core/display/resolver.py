from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Mapping, Optional, Sequence, Tuple

from macro_core.display.tables import LookupTables
from macro_core.models.actions import (
    Clipboard,
    Delay,
    Keypress,
    KeyPressEvent,
    MousePressEvent,
    Open,
    SystemEvent,
    Volume,
)


ERR_LABEL = "err"

# 唯一在表单里可编辑的剪贴板子类型
_EDITABLE_CLIPBOARD_TYPE = "PasteUserDefinedString"


class IconClass(str, Enum):
    DOWN_UP = "down_up"
    DOWN = "down"
    UP = "up"
    TIME = "time"
    NONE = ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DisplayInfo:
    """
    一个序列元素的显示投影：
    - label   : 显示文本；未识别的顶层事件为 None（调用方按空白处理）
    - icon    : 图标分类
    - editable: 是否显示“编辑”入口
    """
    label: Optional[str]
    icon: IconClass
    editable: bool


UNRESOLVED = DisplayInfo(label=None, icon=IconClass.NONE, editable=False)
_SYSTEM_UNRESOLVED = DisplayInfo(label=ERR_LABEL, icon=IconClass.NONE, editable=False)


def _lookup(table: Mapping[Any, str], key: Hashable) -> Optional[str]:
    try:
        return table.get(key)
    except TypeError:
        return None


def _press_icon(kind: str) -> IconClass:
    if kind == "DownUp":
        return IconClass.DOWN_UP
    if kind == "Down":
        return IconClass.DOWN
    return IconClass.UP


# ---------------- 顶层事件 ----------------

def _resolve_keypress(ev: KeyPressEvent, tables: LookupTables) -> DisplayInfo:
    label = _lookup(tables.keys, ev.keypress)
    return DisplayInfo(label=label if label is not None else ERR_LABEL, icon=_press_icon(ev.keytype), editable=True)


def _resolve_delay(ev: Delay, tables: LookupTables) -> DisplayInfo:
    return DisplayInfo(label=f"{ev.duration_ms} ms", icon=IconClass.TIME, editable=True)


def _resolve_mouse(ev: MousePressEvent, tables: LookupTables) -> DisplayInfo:
    label = _lookup(tables.mouse_buttons, ev.button)
    return DisplayInfo(label=label if label is not None else ERR_LABEL, icon=_press_icon(ev.subtype), editable=True)


# ---------------- 系统事件 ----------------
# 查表失败一律降级为 "err" + 不可编辑

def _resolve_open(action: Open, tables: LookupTables) -> DisplayInfo:
    label = _lookup(tables.system_events, "Open")
    if label is None:
        return _SYSTEM_UNRESOLVED
    return DisplayInfo(label=label, icon=IconClass.NONE, editable=True)


def _resolve_volume(action: Volume, tables: LookupTables) -> DisplayInfo:
    label = _lookup(tables.system_events, type(action.action).__name__)
    if label is None:
        return _SYSTEM_UNRESOLVED
    # 音量值不走这个表单编辑
    return DisplayInfo(label=label, icon=IconClass.NONE, editable=False)


def _resolve_clipboard(action: Clipboard, tables: LookupTables) -> DisplayInfo:
    label = _lookup(tables.system_events, action.action.type)
    if label is None:
        return _SYSTEM_UNRESOLVED
    return DisplayInfo(
        label=label,
        icon=IconClass.NONE,
        editable=action.action.type == _EDITABLE_CLIPBOARD_TYPE,
    )


Rule = Tuple[type, Callable[[Any, LookupTables], DisplayInfo]]

_SYSTEM_RULES: Tuple[Rule, ...] = (
    (Open, _resolve_open),
    (Volume, _resolve_volume),
    (Clipboard, _resolve_clipboard),
)


def _resolve_system(ev: SystemEvent, tables: LookupTables) -> DisplayInfo:
    return _dispatch(ev.data, tables, _SYSTEM_RULES, _SYSTEM_UNRESOLVED)


_EVENT_RULES: Tuple[Rule, ...] = (
    (KeyPressEvent, _resolve_keypress),
    (Delay, _resolve_delay),
    (MousePressEvent, _resolve_mouse),
    (SystemEvent, _resolve_system),
)


def _dispatch(value: Any, tables: LookupTables, rules: Sequence[Rule], fallback: DisplayInfo) -> DisplayInfo:
    for kind, handler in rules:
        if isinstance(value, kind):
            return handler(value, tables)
    return fallback


# ---------------- 对外接口 ----------------

def resolve(event: Any, tables: Optional[LookupTables] = None) -> DisplayInfo:
    """
    事件 -> DisplayInfo。纯函数，对任何输入都返回结果、从不抛异常：
    - 查不到的 keycode / 鼠标键显示 "err"
    - 未识别的系统事件子类型显示 "err" 且不可编辑
    - 未识别的顶层事件（包括非事件对象）label 为 None
    """
    return _dispatch(event, tables or LookupTables.default(), _EVENT_RULES, UNRESOLVED)


def key_label(key: Keypress, tables: Optional[LookupTables] = None) -> str:
    label = _lookup((tables or LookupTables.default()).keys, key.keypress)
    return label if label is not None else ERR_LABEL


def format_trigger(keys: Sequence[Keypress], tables: Optional[LookupTables] = None, *, sep: str = " + ") -> str:
    """
    触发键组合的显示文本，例如 "Left Ctrl + A"；查不到的键显示 "err"。
    """
    return sep.join(key_label(k, tables) for k in keys)


class DisplayResolver:
    """
    绑定一组 LookupTables 的解析器，便于在服务层注入自定义表。
    """

    def __init__(self, tables: Optional[LookupTables] = None) -> None:
        self._tables = tables or LookupTables.default()

    @property
    def tables(self) -> LookupTables:
        return self._tables

    def resolve(self, event: Any) -> DisplayInfo:
        return resolve(event, self._tables)

    def key_label(self, key: Keypress) -> str:
        return key_label(key, self._tables)

    def format_trigger(self, keys: Sequence[Keypress], *, sep: str = " + ") -> str:
        return format_trigger(keys, self._tables, sep=sep)
