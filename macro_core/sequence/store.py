from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from macro_core.errors import IndexOutOfRange
from macro_core.models.actions import ActionEvent, is_action_event
from macro_core.models.action_codec import copy_event


@dataclass(frozen=True)
class SequenceElement:
    """
    序列中的一个元素：运行期稳定 id + 事件值。
    id 只在本 SequenceStore 内唯一，不写盘。
    """
    id: int
    event: ActionEvent


class SequenceStore:
    """
    宏动作序列的有序存储：

    - _slots   : id -> 事件（按 id 寻址的槽位）
    - _order   : 按位置排列的 id 列表（唯一会随 reorder 改变的东西）
    - _pos     : id -> 位置，每次结构性修改后由 _order 重建
    - _selected: 当前选中元素的 id；对外暴露的 selected_index 由它推导

    约定：
    - id 从 1 开始单调递增，删除/重排/overwrite 后都不会复用
    - 所有索引参数都不裁剪，越界抛 IndexOutOfRange
    - 不检查事件内容，显示相关的推导交给 display.resolver
    - 单写者：调用方负责串行化对同一个实例的修改
    """

    def __init__(self, events: Iterable[ActionEvent] = ()) -> None:
        self._slots: Dict[int, ActionEvent] = {}
        self._order: List[int] = []
        self._pos: Dict[int, int] = {}
        self._next_id = 1
        self._selected: Optional[int] = None

        for ev in events:
            self._append(ev)
        self._reindex()

    # ---------- 内部：工具 ----------

    def _alloc_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def _append(self, event: ActionEvent) -> int:
        self._check_event(event)
        nid = self._alloc_id()
        self._slots[nid] = event
        self._order.append(nid)
        return nid

    def _reindex(self) -> None:
        self._pos = {nid: i for i, nid in enumerate(self._order)}

    def _check_index(self, op: str, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"{op}: index must be int, got {type(index).__name__}")
        if index < 0 or index >= len(self._order):
            raise IndexOutOfRange(op=op, index=index, length=len(self._order))

    @staticmethod
    def _check_event(event: ActionEvent) -> None:
        if not is_action_event(event):
            raise TypeError(f"expected an action event, got {type(event).__name__}")

    # ---------- 读取 ----------

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[SequenceElement]:
        for nid in list(self._order):
            yield SequenceElement(id=nid, event=self._slots[nid])

    def __repr__(self) -> str:
        return f"SequenceStore(len={len(self._order)}, selected_index={self.selected_index})"

    def elements(self) -> List[SequenceElement]:
        return list(self)

    def events(self) -> List[ActionEvent]:
        return [self._slots[nid] for nid in self._order]

    def ids(self) -> List[int]:
        return list(self._order)

    def element_at(self, index: int) -> SequenceElement:
        self._check_index("element_at", index)
        nid = self._order[index]
        return SequenceElement(id=nid, event=self._slots[nid])

    def index_of(self, element_id: int) -> Optional[int]:
        return self._pos.get(element_id)

    @property
    def selected_index(self) -> Optional[int]:
        if self._selected is None:
            return None
        return self._pos.get(self._selected)

    @property
    def selected_element(self) -> Optional[SequenceElement]:
        idx = self.selected_index
        if idx is None:
            return None
        return self.element_at(idx)

    # ---------- 修改 ----------

    def add(self, event: ActionEvent) -> int:
        """
        追加到末尾，返回新 id。不改变选中。
        """
        nid = self._append(event)
        self._pos[nid] = len(self._order) - 1
        return nid

    def insert_at(self, event: ActionEvent, position: int) -> int:
        """
        插入到 position（允许等于长度，即追加）。
        选中元素跟随原逻辑元素（位置 >= position 的自然后移一位）。
        """
        if isinstance(position, bool) or not isinstance(position, int):
            raise TypeError(f"insert_at: position must be int, got {type(position).__name__}")
        if position < 0 or position > len(self._order):
            raise IndexOutOfRange(op="insert_at", index=position, length=len(self._order))
        self._check_event(event)

        nid = self._alloc_id()
        self._slots[nid] = event
        self._order.insert(position, nid)
        self._reindex()
        return nid

    def update(self, event: ActionEvent, index: int) -> None:
        """
        替换 index 处的事件，保留 id，长度不变。
        """
        self._check_index("update", index)
        self._check_event(event)
        self._slots[self._order[index]] = event

    def delete(self, index: int) -> SequenceElement:
        """
        删除 index 处的元素并返回它。

        选中规则：
        - 选中的正是被删元素 -> 清空
        - 选中在其后 -> 位置减一（仍是同一个逻辑元素）
        - 选中在其前 -> 不变
        """
        self._check_index("delete", index)
        nid = self._order.pop(index)
        event = self._slots.pop(nid)
        if self._selected == nid:
            self._selected = None
        self._reindex()
        return SequenceElement(id=nid, event=event)

    def duplicate(self, index: int) -> int:
        """
        深拷贝 index 处的事件，分配新 id 后追加到末尾（不是紧挨源元素）。
        """
        self._check_index("duplicate", index)
        src = self._slots[self._order[index]]
        return self.add(copy_event(src))

    def reorder(self, from_index: int, to_index: int) -> None:
        """
        把 from_index 的元素移动到 to_index，中间的元素顺移一位。
        选中按 id 跟踪，位置随之重算。
        """
        self._check_index("reorder", from_index)
        self._check_index("reorder", to_index)
        if from_index == to_index:
            return
        nid = self._order.pop(from_index)
        self._order.insert(to_index, nid)
        self._reindex()

    def select(self, index: Optional[int]) -> None:
        if index is None:
            self._selected = None
            return
        self._check_index("select", index)
        self._selected = self._order[index]

    def overwrite(self, events: Iterable[ActionEvent]) -> None:
        """
        整体替换（例如从存档恢复）。无条件清空选中；id 继续递增，不与旧 id 重叠。
        """
        new_events = list(events)
        for ev in new_events:
            self._check_event(ev)

        self._slots.clear()
        self._order.clear()
        self._selected = None
        for ev in new_events:
            self._append(ev)
        self._reindex()
