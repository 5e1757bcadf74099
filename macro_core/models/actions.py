from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple, Union

from macro_core.models.common import is_int


KeyType = Literal["DownUp", "Down", "Up"]
KEY_TYPES: Tuple[str, ...] = ("DownUp", "Down", "Up")

# 鼠标按下类型与 KeyType 同一组取值
MouseSubtype = KeyType
MOUSE_SUBTYPES: Tuple[str, ...] = KEY_TYPES

# 剪贴板子类型：带文本 / 不带任何参数
CLIPBOARD_TEXT_TYPES: Tuple[str, ...] = ("SetClipboard", "PasteUserDefinedString")
CLIPBOARD_PLAIN_TYPES: Tuple[str, ...] = ("Copy", "Cut", "Paste", "Sarcasm")

DEFAULT_PRESS_DURATION_MS = 20


def _require_int(name: str, v: Any, *, lo: int = 0, hi: Optional[int] = None) -> None:
    if not is_int(v):
        raise TypeError(f"{name} must be int, got {type(v).__name__}")
    if v < lo:
        raise ValueError(f"{name} must be >= {lo}, got {v}")
    if hi is not None and v > hi:
        raise ValueError(f"{name} must be <= {hi}, got {v}")


def _require_choice(name: str, v: Any, choices: Tuple[str, ...]) -> None:
    if v not in choices:
        raise ValueError(f"{name} must be one of {choices}, got {v!r}")


# ----------- Keypress (触发键 / 按键事件共用的值) -----------

@dataclass(frozen=True)
class Keypress:
    """
    一个按键：
    - keypress      : HID usage code
    - press_duration: DownUp 时按下到松开的毫秒数
    - keytype       : "DownUp" | "Down" | "Up"
    """
    keypress: int
    press_duration: int = DEFAULT_PRESS_DURATION_MS
    keytype: str = "DownUp"

    def __post_init__(self) -> None:
        _require_int("keypress", self.keypress)
        _require_int("press_duration", self.press_duration)
        _require_choice("keytype", self.keytype, KEY_TYPES)


# ----------- Top-level action events -----------

@dataclass(frozen=True)
class KeyPressEvent:
    keypress: int
    press_duration: int = DEFAULT_PRESS_DURATION_MS
    keytype: str = "DownUp"

    def __post_init__(self) -> None:
        _require_int("keypress", self.keypress)
        _require_int("press_duration", self.press_duration)
        _require_choice("keytype", self.keytype, KEY_TYPES)

    @staticmethod
    def from_keypress(k: Keypress) -> "KeyPressEvent":
        return KeyPressEvent(keypress=k.keypress, press_duration=k.press_duration, keytype=k.keytype)

    def to_keypress(self) -> Keypress:
        return Keypress(keypress=self.keypress, press_duration=self.press_duration, keytype=self.keytype)


@dataclass(frozen=True)
class Delay:
    duration_ms: int

    def __post_init__(self) -> None:
        _require_int("duration_ms", self.duration_ms)


@dataclass(frozen=True)
class MousePressEvent:
    """
    鼠标按键事件。duration 仅在 subtype="DownUp" 时存在，其余情况必须为 None。
    """
    subtype: str
    button: int
    duration: Optional[int] = None

    def __post_init__(self) -> None:
        _require_choice("subtype", self.subtype, MOUSE_SUBTYPES)
        _require_int("button", self.button)
        if self.subtype == "DownUp":
            if self.duration is None:
                raise ValueError("duration is required when subtype is 'DownUp'")
            _require_int("duration", self.duration)
        elif self.duration is not None:
            raise ValueError(f"duration is only allowed when subtype is 'DownUp', got subtype {self.subtype!r}")


# ----------- System actions -----------

@dataclass(frozen=True)
class Mute:
    flag: bool

    def __post_init__(self) -> None:
        if not isinstance(self.flag, bool):
            raise TypeError(f"flag must be bool, got {type(self.flag).__name__}")


@dataclass(frozen=True)
class SetVolume:
    level: int  # 0..100

    def __post_init__(self) -> None:
        _require_int("level", self.level, lo=0, hi=100)


VolumeAction = Union[Mute, SetVolume]


@dataclass(frozen=True)
class ClipboardAction:
    """
    剪贴板动作：
    - type 为 CLIPBOARD_TEXT_TYPES 之一时 data 必须是字符串
    - type 为 CLIPBOARD_PLAIN_TYPES 之一时 data 必须为 None
    - 其它 type 允许构造（显示层会当作不可编辑），data 可选
    """
    type: str
    data: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type:
            raise ValueError("clipboard action type must be a non-empty string")
        if self.data is not None and not isinstance(self.data, str):
            raise TypeError(f"clipboard data must be str, got {type(self.data).__name__}")
        if self.type in CLIPBOARD_TEXT_TYPES and self.data is None:
            raise ValueError(f"clipboard action {self.type!r} requires text data")
        if self.type in CLIPBOARD_PLAIN_TYPES and self.data is not None:
            raise ValueError(f"clipboard action {self.type!r} takes no data")


@dataclass(frozen=True)
class Open:
    path: str

    def __post_init__(self) -> None:
        if not isinstance(self.path, str):
            raise TypeError(f"path must be str, got {type(self.path).__name__}")


@dataclass(frozen=True)
class Volume:
    action: VolumeAction

    def __post_init__(self) -> None:
        if not isinstance(self.action, (Mute, SetVolume)):
            raise TypeError(f"volume action must be Mute or SetVolume, got {type(self.action).__name__}")


@dataclass(frozen=True)
class Brightness:
    pass


@dataclass(frozen=True)
class Clipboard:
    action: ClipboardAction

    def __post_init__(self) -> None:
        if not isinstance(self.action, ClipboardAction):
            raise TypeError(f"clipboard action must be ClipboardAction, got {type(self.action).__name__}")


@dataclass(frozen=True)
class UnknownSystemAction:
    """
    未识别的系统事件子类型：原样保留，保存时写回。
    """
    type: str
    raw: Dict[str, Any] = field(default_factory=dict)


SystemAction = Union[Open, Volume, Brightness, Clipboard, UnknownSystemAction]
SYSTEM_ACTION_TYPES = (Open, Volume, Brightness, Clipboard, UnknownSystemAction)


@dataclass(frozen=True)
class SystemEvent:
    data: SystemAction

    def __post_init__(self) -> None:
        if not isinstance(self.data, SYSTEM_ACTION_TYPES):
            raise TypeError(f"system event data must be a system action, got {type(self.data).__name__}")


@dataclass(frozen=True)
class UnknownEvent:
    """
    未识别的顶层事件（旧数据里的 PhillipsHueCommand / OBS / DiscordCommand 等）。
    raw 为完整的原始 dict，保存时原样写回。
    """
    type: str
    raw: Dict[str, Any] = field(default_factory=dict)


ActionEvent = Union[KeyPressEvent, Delay, MousePressEvent, SystemEvent, UnknownEvent]
ACTION_EVENT_TYPES = (KeyPressEvent, Delay, MousePressEvent, SystemEvent, UnknownEvent)


def is_action_event(v: Any) -> bool:
    return isinstance(v, ACTION_EVENT_TYPES)
