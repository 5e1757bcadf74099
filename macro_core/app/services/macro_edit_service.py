from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from macro_core.app.services.collections_service import CollectionsService
from macro_core.display.resolver import DisplayInfo, DisplayResolver
from macro_core.errors import PersistenceFailure
from macro_core.logging_context import log_context
from macro_core.models.actions import ActionEvent, Keypress
from macro_core.models.action_codec import copy_event
from macro_core.models.macro import MACRO_TYPES, Macro, Trigger
from macro_core.sequence.store import SequenceElement, SequenceStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SequenceRow:
    """
    列表中一行的投影：元素 id / 位置 / 事件 / 显示信息 / 是否选中。
    """
    id: int
    index: int
    event: ActionEvent
    display: DisplayInfo
    selected: bool


class _Draft:
    def __init__(
        self,
        *,
        collection: str,
        original_name: Optional[str],
        name: str,
        macro_type: str,
        active: bool,
        trigger: Trigger,
        sequence: SequenceStore,
    ) -> None:
        self.collection = collection
        self.original_name = original_name
        self.name = name
        self.macro_type = macro_type
        self.active = active
        self.trigger = trigger
        self.sequence = sequence
        self.dirty = False


class MacroEditService:
    """
    单个宏的编辑工作副本（宏编辑页的状态）：

    - open_macro / new_macro 打开一份副本，修改不影响集合中的原宏，直到 save()
    - 元素操作全部委托给副本自己的 SequenceStore（越界抛 IndexOutOfRange）
    - rows() 给出当前序列的显示投影，显示信息只来自 DisplayResolver
    - save() 通过 CollectionsService.save_macro 写回（新增或原位替换），
      名称冲突抛 DuplicateName，持久化失败抛 PersistenceFailure
    - 未打开任何宏时调用编辑方法抛 RuntimeError
    """

    def __init__(
        self,
        *,
        collections: CollectionsService,
        resolver: Optional[DisplayResolver] = None,
        notify_dirty: Optional[Callable[[], None]] = None,
    ) -> None:
        self._collections = collections
        self._resolver = resolver or DisplayResolver()
        self._notify_dirty = notify_dirty or (lambda: None)
        self._draft: Optional[_Draft] = None

    # ---------- 基本属性 ----------

    @property
    def is_open(self) -> bool:
        return self._draft is not None

    def _require(self) -> _Draft:
        if self._draft is None:
            raise RuntimeError("no macro is open for editing")
        return self._draft

    @property
    def collection_name(self) -> str:
        return self._require().collection

    @property
    def name(self) -> str:
        return self._require().name

    @property
    def macro_type(self) -> str:
        return self._require().macro_type

    @property
    def trigger(self) -> Trigger:
        return self._require().trigger

    @property
    def sequence(self) -> SequenceStore:
        return self._require().sequence

    @property
    def is_new(self) -> bool:
        return self._require().original_name is None

    def is_dirty(self) -> bool:
        return self._draft is not None and self._draft.dirty

    def _touch(self) -> None:
        self._require().dirty = True
        self._notify_dirty()

    # ---------- 打开 / 关闭 ----------

    def open_macro(self, collection_name: str, macro_name: str) -> bool:
        """
        打开已有宏的副本；找不到返回 False（当前副本保持不变）。
        """
        m = self._collections.find_macro(collection_name, macro_name)
        if m is None:
            return False

        copy = m.clone()
        self._draft = _Draft(
            collection=collection_name,
            original_name=m.name,
            name=copy.name,
            macro_type=copy.macro_type,
            active=copy.active,
            trigger=copy.trigger,
            sequence=copy.sequence,
        )
        with log_context(collection=collection_name, macro=m.name, action="macro_open"):
            log.debug("macro opened (%d elements)", len(copy.sequence))
        return True

    def new_macro(self, collection_name: str) -> bool:
        """
        在集合中开始一个空白宏（名称为空，保存前必须填写）。
        """
        if self._collections.find_collection(collection_name) is None:
            return False
        self._draft = _Draft(
            collection=collection_name,
            original_name=None,
            name="",
            macro_type="Single",
            active=True,
            trigger=Trigger(),
            sequence=SequenceStore(),
        )
        return True

    def close(self) -> None:
        self._draft = None

    # ---------- 宏属性 ----------

    def update_macro_name(self, name: str) -> None:
        d = self._require()
        nm = (name or "").strip()
        if nm == d.name:
            return
        d.name = nm
        self._touch()

    def update_macro_type(self, macro_type: str) -> None:
        if macro_type not in MACRO_TYPES:
            raise ValueError(f"macro_type must be one of {MACRO_TYPES}, got {macro_type!r}")
        d = self._require()
        if macro_type == d.macro_type:
            return
        d.macro_type = macro_type
        self._touch()

    def update_trigger_keys(self, keys: Iterable[Keypress]) -> None:
        ks = list(keys)
        for k in ks:
            if not isinstance(k, Keypress):
                raise TypeError(f"trigger keys must be Keypress, got {type(k).__name__}")
        d = self._require()
        d.trigger.keys = ks
        self._touch()

    def update_allow_while_other_keys(self, allow: bool) -> None:
        d = self._require()
        d.trigger.allow_while_other_keys = bool(allow)
        self._touch()

    # ---------- 序列元素 ----------

    def add_element(self, event: ActionEvent) -> int:
        nid = self.sequence.add(event)
        self._touch()
        return nid

    def insert_element(self, event: ActionEvent, position: int) -> int:
        nid = self.sequence.insert_at(event, position)
        self._touch()
        return nid

    def update_element(self, event: ActionEvent, index: int) -> None:
        self.sequence.update(event, index)
        self._touch()

    def update_selected_element(self, event: ActionEvent) -> bool:
        """
        替换当前选中元素（编辑表单的“确定”）；没有选中元素返回 False。
        """
        idx = self.sequence.selected_index
        if idx is None:
            return False
        self.update_element(event, idx)
        return True

    def delete_element(self, index: int) -> SequenceElement:
        removed = self.sequence.delete(index)
        self._touch()
        return removed

    def duplicate_element(self, index: int) -> int:
        nid = self.sequence.duplicate(index)
        self._touch()
        return nid

    def move_element(self, from_index: int, to_index: int) -> None:
        self.sequence.reorder(from_index, to_index)
        self._touch()

    def select_element(self, index: Optional[int]) -> None:
        # 选中不算修改
        self.sequence.select(index)

    def overwrite_sequence(self, events: Iterable[ActionEvent]) -> None:
        self.sequence.overwrite(events)
        self._touch()

    # ---------- 显示投影 ----------

    def rows(self) -> List[SequenceRow]:
        seq = self.sequence
        selected = seq.selected_index
        return [
            SequenceRow(
                id=el.id,
                index=i,
                event=el.event,
                display=self._resolver.resolve(el.event),
                selected=(i == selected),
            )
            for i, el in enumerate(seq)
        ]

    def trigger_label(self) -> str:
        return self._resolver.format_trigger(self.trigger.keys)

    # ---------- 保存 ----------

    def to_macro(self) -> Macro:
        d = self._require()
        # 写回集合的是一份独立副本，编辑器继续持有自己的 store
        return Macro(
            name=d.name,
            active=d.active,
            macro_type=d.macro_type,
            trigger=Trigger(keys=list(d.trigger.keys), allow_while_other_keys=d.trigger.allow_while_other_keys),
            sequence=SequenceStore(copy_event(ev) for ev in d.sequence.events()),
        )

    def save(self) -> Macro:
        """
        把副本写回集合。名称为空抛 ValueError；冲突抛 DuplicateName；
        落盘失败抛 PersistenceFailure，之后可以直接再次 save() 重试。
        """
        d = self._require()
        if not d.name:
            raise ValueError("macro name cannot be empty")

        try:
            saved = self._collections.save_macro(d.collection, self.to_macro(), original_name=d.original_name)
        except PersistenceFailure:
            # 宏已写入集合，只是落盘失败；重试时按新名称原位替换
            d.original_name = d.name
            raise
        d.original_name = saved.name
        d.dirty = False
        self._notify_dirty()
        return saved
