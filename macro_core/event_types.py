# File: macro_core/event_types.py
from __future__ import annotations

from enum import Enum


class EventType(str, Enum):
    """
    EventBus 事件类型：
    - dirty state
    - 集合 / 宏的增删改（供 UI 刷新列表）
    """

    ANY = "*"

    # dirty state
    DIRTY_STATE_CHANGED = "DIRTY_STATE_CHANGED"

    # records
    RECORD_UPDATED = "RECORD_UPDATED"
    RECORD_DELETED = "RECORD_DELETED"

    def __str__(self) -> str:
        return self.value


def as_event_type(t: "EventType | str") -> EventType:
    if isinstance(t, EventType):
        return t

    s = (t or "").strip()
    if s == "*":
        return EventType.ANY

    try:
        return EventType(s)
    except ValueError as e:
        raise ValueError(f"Unknown event type: {t!r}") from e
