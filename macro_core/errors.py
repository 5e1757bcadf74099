# macro_core/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class MacroCoreError(Exception):
    """
    macro_core 自己抛出的异常基类。

    所有异常都是可恢复的：抛出后 SequenceStore / CollectionsService 仍然可用。
    """


@dataclass
class IndexOutOfRange(MacroCoreError, IndexError):
    """
    序列操作的位置/索引越界（从不隐式裁剪）。

    - op    : 触发的操作名（"update" / "delete" / "select" ...）
    - index : 调用方给出的索引
    - length: 操作时序列的长度
    """
    op: str
    index: int
    length: int

    def __str__(self) -> str:
        return f"{self.op}: index {self.index} out of range for sequence of length {self.length}"


@dataclass
class DuplicateName(MacroCoreError, ValueError):
    """
    新增/重命名时名称冲突：
    - scope="collection": 全局集合名冲突
    - scope="macro"     : 同一集合内宏名冲突
    """
    scope: str
    name: str

    def __str__(self) -> str:
        return f"{self.scope} name already in use: {self.name!r}"


@dataclass
class PersistenceFailure(MacroCoreError):
    """
    持久化回调失败。内存中的修改不会回滚，调用方自行决定是否重试。
    """
    message: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}; cause={type(self.cause).__name__}: {self.cause}"
        return self.message


@dataclass
class NotFound(MacroCoreError, LookupError):
    """
    需要一个已存在的集合/宏但找不到（kind="collection" / "macro"）。
    """
    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind} not found: {self.name!r}"
