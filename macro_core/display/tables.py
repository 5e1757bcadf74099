from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from macro_core.display.hid_table import HID_LABELS


MOUSE_BUTTON_LABELS: Mapping[int, str] = MappingProxyType({
    1: "Left Click",
    2: "Right Click",
    3: "Middle Click",
    4: "Mouse 4",
    5: "Mouse 5",
})

# 键为系统事件类型或其子动作类型（Open / Mute / SetVolume / Clipboard 子类型）
SYSTEM_EVENT_LABELS: Mapping[str, str] = MappingProxyType({
    "Open": "Open File/Program",
    "Mute": "Toggle Mute",
    "SetVolume": "Set Volume",
    "Copy": "Copy",
    "Cut": "Cut",
    "Paste": "Paste",
    "SetClipboard": "Set Clipboard",
    "PasteUserDefinedString": "Paste Text",
    "Sarcasm": "Sarcasm Text",
})


@dataclass(frozen=True)
class LookupTables:
    """
    显示层使用的三张只读查找表：
    - keys          : HID keycode -> 显示文本
    - mouse_buttons : 鼠标按键码 -> 显示文本
    - system_events : 系统事件（子）类型 -> 显示文本

    进程启动时构造一次，之后不再修改；传入的 dict 会被复制成只读映射。
    """
    keys: Mapping[int, str]
    mouse_buttons: Mapping[int, str]
    system_events: Mapping[str, str]

    @staticmethod
    def default() -> "LookupTables":
        return _DEFAULT

    @staticmethod
    def from_maps(
        *,
        keys: Optional[Mapping[int, str]] = None,
        mouse_buttons: Optional[Mapping[int, str]] = None,
        system_events: Optional[Mapping[str, str]] = None,
    ) -> "LookupTables":
        """
        用自定义表构造（未提供的表沿用默认表）。
        """
        return LookupTables(
            keys=MappingProxyType(dict(keys)) if keys is not None else HID_LABELS,
            mouse_buttons=MappingProxyType(dict(mouse_buttons)) if mouse_buttons is not None else MOUSE_BUTTON_LABELS,
            system_events=MappingProxyType(dict(system_events)) if system_events is not None else SYSTEM_EVENT_LABELS,
        )


_DEFAULT = LookupTables(
    keys=HID_LABELS,
    mouse_buttons=MOUSE_BUTTON_LABELS,
    system_events=SYSTEM_EVENT_LABELS,
)
