# File: macro_core/events/payloads.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


RecordType = Literal["collection", "macro"]


# -------- dirty --------

@dataclass(frozen=True)
class DirtyStateChangedPayload:
    dirty: bool


# -------- records --------

@dataclass(frozen=True)
class RecordUpdatedPayload:
    """
    - record_type="collection": name 为集合名，collection 为空
    - record_type="macro"     : name 为宏名，collection 为所属集合名
    """
    record_type: RecordType
    name: str
    collection: str = ""
    source: str = ""
    saved: bool = False


@dataclass(frozen=True)
class RecordDeletedPayload:
    record_type: RecordType
    name: str
    collection: str = ""
    source: str = ""
    saved: bool = False
