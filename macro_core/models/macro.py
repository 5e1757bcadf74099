from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from macro_core.models.common import as_bool, as_dict, as_list, as_str, as_int
from macro_core.models.diagnostics import Diagnostic, pjoin, warn
from macro_core.models.actions import Keypress
from macro_core.models.action_codec import decode_keypress, decode_sequence, encode_event, encode_keypress
from macro_core.sequence.store import SequenceStore


MACRO_TYPES: Tuple[str, ...] = ("Single", "Repeating", "OnHold", "MultiLevel")

DEFAULT_COLLECTION_NAME = "Default"
DEFAULT_COLLECTION_ICON = "i"


def _collect(diags: Optional[List[Diagnostic]], items: List[Diagnostic]) -> None:
    if diags is not None:
        diags.extend(items)


@dataclass
class Trigger:
    """
    触发条件：按顺序的按键组合 + 是否允许同时按着其它键。
    """
    keys: List[Keypress] = field(default_factory=list)
    allow_while_other_keys: bool = False

    @staticmethod
    def from_dict(d: Dict[str, Any], *, diags: Optional[List[Diagnostic]] = None, path: str = "$") -> "Trigger":
        d = as_dict(d)
        local: List[Diagnostic] = []
        keys: List[Keypress] = []
        for i, item in enumerate(as_list(d.get("data", []))):
            keys.append(decode_keypress(item, diags=local, path=pjoin(path, f".data[{i}]")))
        _collect(diags, local)
        return Trigger(
            keys=keys,
            allow_while_other_keys=as_bool(d.get("allow_while_other_keys", False), False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "KeyPressEvent",
            "data": [encode_keypress(k) for k in self.keys],
            "allow_while_other_keys": bool(self.allow_while_other_keys),
        }


@dataclass
class Macro:
    """
    单个宏：

    - name      : 集合内唯一
    - active    : 是否启用
    - macro_type: MACRO_TYPES 之一
    - trigger   : 触发键
    - sequence  : 独占的 SequenceStore（存盘时不含运行期 id）
    """
    name: str = ""
    active: bool = True
    macro_type: str = "Single"
    trigger: Trigger = field(default_factory=Trigger)
    sequence: SequenceStore = field(default_factory=SequenceStore)

    @staticmethod
    def from_dict(d: Dict[str, Any], *, diags: Optional[List[Diagnostic]] = None, path: str = "$") -> "Macro":
        d = as_dict(d)
        local: List[Diagnostic] = []

        macro_type = as_str(d.get("macro_type", "Single"), "Single").strip()
        if macro_type not in MACRO_TYPES:
            local.append(warn("macro.type.invalid", pjoin(path, ".macro_type"), "未知宏类型，按 Single 处理", detail=macro_type))
            macro_type = "Single"

        trigger = Trigger.from_dict(d.get("trigger", {}) or {}, diags=local, path=pjoin(path, ".trigger"))
        events, seq_diags = decode_sequence(as_list(d.get("sequence", [])), path=pjoin(path, ".sequence"))
        local.extend(seq_diags)

        _collect(diags, local)
        return Macro(
            name=as_str(d.get("name", "")),
            active=as_bool(d.get("active", True), True),
            macro_type=macro_type,
            trigger=trigger,
            sequence=SequenceStore(events),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "active": bool(self.active),
            "macro_type": self.macro_type,
            "trigger": self.trigger.to_dict(),
            "sequence": [encode_event(ev) for ev in self.sequence.events()],
        }

    def clone(self) -> "Macro":
        # 深拷贝：走 to_dict / from_dict，新 SequenceStore 重新分配 id
        return Macro.from_dict(self.to_dict())


@dataclass
class Collection:
    """
    宏集合（顶层持久化单元）：name 全局唯一。
    """
    name: str = ""
    active: bool = True
    icon: str = DEFAULT_COLLECTION_ICON
    macros: List[Macro] = field(default_factory=list)

    def find_macro(self, name: str) -> Optional[Macro]:
        for m in self.macros:
            if m.name == name:
                return m
        return None

    def macro_names(self) -> List[str]:
        return [m.name for m in self.macros]

    @staticmethod
    def from_dict(d: Dict[str, Any], *, diags: Optional[List[Diagnostic]] = None, path: str = "$") -> "Collection":
        d = as_dict(d)
        macros: List[Macro] = []
        for i, item in enumerate(as_list(d.get("macros", []))):
            if isinstance(item, dict):
                mpath = pjoin(path, f".macros[{i}]")
                m = Macro.from_dict(item, diags=diags, path=mpath)
                if any(x.name == m.name for x in macros):
                    # 保留全部条目，但按名称查找时只能找到第一个
                    _collect(diags, [warn("macro.name.duplicate", pjoin(mpath, ".name"), "集合内宏名重复", detail=m.name)])
                macros.append(m)
            else:
                _collect(diags, [warn("macro.not_object", pjoin(path, f".macros[{i}]"), "宏必须是对象(dict)，已忽略")])
        return Collection(
            name=as_str(d.get("name", "")),
            active=as_bool(d.get("active", True), True),
            icon=as_str(d.get("icon", DEFAULT_COLLECTION_ICON), DEFAULT_COLLECTION_ICON),
            macros=macros,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "icon": self.icon,
            "active": bool(self.active),
            "macros": [m.to_dict() for m in self.macros],
        }


@dataclass
class MacroData:
    """
    data_json.json 根对象：有序的集合列表。
    """
    schema_version: int = 2
    collections: List[Collection] = field(default_factory=list)

    @staticmethod
    def new_default() -> "MacroData":
        return MacroData(collections=[Collection(name=DEFAULT_COLLECTION_NAME, icon=DEFAULT_COLLECTION_ICON, active=True)])

    def find_collection(self, name: str) -> Optional[Collection]:
        for c in self.collections:
            if c.name == name:
                return c
        return None

    @staticmethod
    def from_dict(d: Dict[str, Any], *, diags: Optional[List[Diagnostic]] = None) -> "MacroData":
        d = as_dict(d)
        collections: List[Collection] = []
        for i, item in enumerate(as_list(d.get("data", []))):
            if isinstance(item, dict):
                c = Collection.from_dict(item, diags=diags, path=f"$.data[{i}]")
                if any(x.name == c.name for x in collections):
                    _collect(diags, [warn("collection.name.duplicate", f"$.data[{i}].name", "集合名重复", detail=c.name)])
                collections.append(c)
            else:
                _collect(diags, [warn("collection.not_object", f"$.data[{i}]", "集合必须是对象(dict)，已忽略")])
        return MacroData(
            schema_version=as_int(d.get("schema_version", 2), 2),
            collections=collections,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": int(self.schema_version),
            "data": [c.to_dict() for c in self.collections],
        }
