from __future__ import annotations

# 注意：这里不要 import .macro，它依赖 macro_core.sequence，而 sequence 又依赖本包的 actions，会循环导入。
# 宏 / 集合模型请显式从 macro_core.models.macro 导入。

from .diagnostics import Diagnostic, DiagnosticLevel
from .actions import (
    ActionEvent,
    KeyPressEvent,
    Delay,
    MousePressEvent,
    SystemEvent,
    UnknownEvent,
    SystemAction,
    Open,
    Volume,
    Brightness,
    Clipboard,
    UnknownSystemAction,
    Mute,
    SetVolume,
    ClipboardAction,
    Keypress,
    KEY_TYPES,
)
from .action_codec import decode_event, encode_event, decode_sequence, copy_event

__all__ = [
    "Diagnostic",
    "DiagnosticLevel",
    "ActionEvent",
    "KeyPressEvent",
    "Delay",
    "MousePressEvent",
    "SystemEvent",
    "UnknownEvent",
    "SystemAction",
    "Open",
    "Volume",
    "Brightness",
    "Clipboard",
    "UnknownSystemAction",
    "Mute",
    "SetVolume",
    "ClipboardAction",
    "Keypress",
    "KEY_TYPES",
    "decode_event",
    "encode_event",
    "decode_sequence",
    "copy_event",
]
