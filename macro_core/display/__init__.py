from __future__ import annotations

from .tables import LookupTables, MOUSE_BUTTON_LABELS, SYSTEM_EVENT_LABELS
from .hid_table import HID_LABELS
from .resolver import (
    ERR_LABEL,
    IconClass,
    DisplayInfo,
    DisplayResolver,
    resolve,
    key_label,
    format_trigger,
)

__all__ = [
    "LookupTables",
    "HID_LABELS",
    "MOUSE_BUTTON_LABELS",
    "SYSTEM_EVENT_LABELS",
    "ERR_LABEL",
    "IconClass",
    "DisplayInfo",
    "DisplayResolver",
    "resolve",
    "key_label",
    "format_trigger",
]
