from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping


# USB HID Usage Tables, Keyboard/Keypad page (0x07) -> 显示文本


def _build() -> Dict[int, str]:
    table: Dict[int, str] = {}

    # 4..29: A..Z
    for i in range(26):
        table[4 + i] = chr(ord("A") + i)

    # 30..38: 1..9, 39: 0
    for i in range(9):
        table[30 + i] = str(i + 1)
    table[39] = "0"

    table.update({
        40: "Enter",
        41: "Esc",
        42: "Backspace",
        43: "Tab",
        44: "Space",
        45: "-",
        46: "=",
        47: "[",
        48: "]",
        49: "\\",
        50: "#",
        51: ";",
        52: "'",
        53: "`",
        54: ",",
        55: ".",
        56: "/",
        57: "Caps Lock",
    })

    # 58..69: F1..F12
    for i in range(12):
        table[58 + i] = f"F{i + 1}"

    table.update({
        70: "Print Screen",
        71: "Scroll Lock",
        72: "Pause",
        73: "Insert",
        74: "Home",
        75: "Page Up",
        76: "Delete",
        77: "End",
        78: "Page Down",
        79: "Right",
        80: "Left",
        81: "Down",
        82: "Up",
        83: "Num Lock",
        84: "Num /",
        85: "Num *",
        86: "Num -",
        87: "Num +",
        88: "Num Enter",
    })

    # 89..97: Num 1..Num 9, 98: Num 0
    for i in range(9):
        table[89 + i] = f"Num {i + 1}"
    table[98] = "Num 0"
    table[99] = "Num ."
    table[100] = "\\|"
    table[101] = "Menu"

    # 104..115: F13..F24
    for i in range(12):
        table[104 + i] = f"F{i + 13}"

    table.update({
        127: "Mute",
        128: "Volume Up",
        129: "Volume Down",
        224: "Left Ctrl",
        225: "Left Shift",
        226: "Left Alt",
        227: "Left Meta",
        228: "Right Ctrl",
        229: "Right Shift",
        230: "Right Alt",
        231: "Right Meta",
    })
    return table


HID_LABELS: Mapping[int, str] = MappingProxyType(_build())
