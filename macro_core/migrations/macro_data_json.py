from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from macro_core.models.common import as_int


LATEST_MACRO_DATA_SCHEMA_VERSION = 2


@dataclass(frozen=True)
class MigrationOutcome:
    data: Dict[str, Any]
    changed: bool
    from_version: int
    to_version: int
    notes: str = ""


# 早期前端写出的事件 tag -> 当前 tag
_LEGACY_EVENT_TAGS = {
    "KeyPressEventAction": "KeyPressEvent",
    "DelayEventAction": "Delay",
    "MouseEventAction": "MousePressEvent",
    "SystemEventAction": "SystemEvent",
}


def _migrate_sequence(seq: Any) -> int:
    if not isinstance(seq, list):
        return 0
    renamed = 0
    for item in seq:
        if not isinstance(item, dict):
            continue
        t = item.get("type")
        if isinstance(t, str) and t in _LEGACY_EVENT_TAGS:
            item["type"] = _LEGACY_EVENT_TAGS[t]
            renamed += 1
    return renamed


def _migrate_trigger(macro: Dict[str, Any]) -> bool:
    trig = macro.get("trigger")
    if not isinstance(trig, dict):
        macro["trigger"] = {"type": "KeyPressEvent", "data": [], "allow_while_other_keys": False}
        return True
    if "allow_while_other_keys" not in trig:
        trig["allow_while_other_keys"] = False
        return True
    return False


def migrate_macro_data_json(data: Dict[str, Any]) -> MigrationOutcome:
    """
    data_json.json migrations:

    v1 -> v2:
      - v1 没有 schema_version 字段
      - 事件 tag 统一为 KeyPressEvent / Delay / MousePressEvent / SystemEvent
        （旧前端写的是 KeyPressEventAction 等）
      - trigger 补齐 allow_while_other_keys
    """
    if not isinstance(data, dict):
        data = {}

    from_ver = as_int(data.get("schema_version", 1), 1)

    if from_ver >= LATEST_MACRO_DATA_SCHEMA_VERSION:
        if from_ver != LATEST_MACRO_DATA_SCHEMA_VERSION:
            data["schema_version"] = LATEST_MACRO_DATA_SCHEMA_VERSION
            return MigrationOutcome(data=data, changed=True, from_version=from_ver, to_version=LATEST_MACRO_DATA_SCHEMA_VERSION)
        return MigrationOutcome(data=data, changed=False, from_version=from_ver, to_version=from_ver)

    collections = data.get("data", [])
    if not isinstance(collections, list):
        data["data"] = []
        data["schema_version"] = LATEST_MACRO_DATA_SCHEMA_VERSION
        return MigrationOutcome(
            data=data,
            changed=True,
            from_version=from_ver,
            to_version=LATEST_MACRO_DATA_SCHEMA_VERSION,
            notes="data was not a list",
        )

    notes: List[str] = []
    renamed = 0
    triggers_fixed = 0
    for coll in collections:
        if not isinstance(coll, dict):
            continue
        macros = coll.get("macros", [])
        if not isinstance(macros, list):
            continue
        for m in macros:
            if not isinstance(m, dict):
                continue
            renamed += _migrate_sequence(m.get("sequence"))
            if _migrate_trigger(m):
                triggers_fixed += 1

    if renamed:
        notes.append(f"renamed {renamed} legacy event tags")
    if triggers_fixed:
        notes.append(f"normalized {triggers_fixed} triggers")

    data["schema_version"] = LATEST_MACRO_DATA_SCHEMA_VERSION
    return MigrationOutcome(
        data=data,
        changed=True,
        from_version=from_ver,
        to_version=LATEST_MACRO_DATA_SCHEMA_VERSION,
        notes="; ".join(notes),
    )
