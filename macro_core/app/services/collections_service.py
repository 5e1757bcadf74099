from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from macro_core.app.session import MacroDataSession
from macro_core.errors import DuplicateName, NotFound
from macro_core.event_bus import EventBus
from macro_core.event_types import EventType
from macro_core.logging_context import log_context
from macro_core.models.macro import DEFAULT_COLLECTION_ICON, MACRO_TYPES, Collection, Macro

log = logging.getLogger(__name__)

NEW_COLLECTION_NAME = "New Collection"
NEW_MACRO_NAME = "New Macro"


def unique_name(base: str, taken: Iterable[str]) -> str:
    """
    base 未被占用则直接返回，否则依次尝试 "base 2"、"base 3" ...
    """
    used = set(taken)
    if base not in used:
        return base
    n = 2
    while f"{base} {n}" in used:
        n += 1
    return f"{base} {n}"


class CollectionsService:
    """
    集合 / 宏的聚合服务（不涉及序列元素，元素编辑由 MacroEditService + SequenceStore 负责）：

    - 集合：新增 / 删除 / 重命名 / 改图标 / 启用开关，集合名全局唯一
    - 宏  ：新增 / 删除 / 重命名 / 复制 / 移动到其它集合 / 启用开关，宏名在集合内唯一
    - 名称冲突抛 DuplicateName，且不修改任何状态
    - 找不到目标时返回 False / None（save_macro 除外，它抛 NotFound）
    - 给了 bus 时：session 脏状态变化转发为 DIRTY_STATE_CHANGED，记录增删改发 RECORD_UPDATED / RECORD_DELETED
    - 每次成功修改：标记 session 脏；settings.io.auto_save 打开时立即持久化，
      持久化失败的 PersistenceFailure 原样抛给调用方（内存修改保留）
    """

    def __init__(
        self,
        *,
        session: MacroDataSession,
        bus: Optional[EventBus] = None,
        notify_dirty: Optional[Callable[[], None]] = None,
    ) -> None:
        self._session = session
        self._bus = bus
        self._notify_dirty = notify_dirty or (lambda: None)

        if bus is not None:
            session.subscribe_dirty(lambda dirty: bus.post(EventType.DIRTY_STATE_CHANGED, dirty=dirty))

    # ---------- 基本属性 ----------

    @property
    def session(self) -> MacroDataSession:
        return self._session

    @property
    def collections(self) -> List[Collection]:
        return self._session.collections

    # ---------- 查询 ----------

    def collection_names(self) -> List[str]:
        return [c.name for c in self.collections]

    def find_collection(self, name: str) -> Optional[Collection]:
        return self._session.data.find_collection(name)

    def find_macro(self, collection_name: str, macro_name: str) -> Optional[Macro]:
        c = self.find_collection(collection_name)
        if c is None:
            return None
        return c.find_macro(macro_name)

    # ---------- 内部：名称校验 ----------

    def _check_collection_name_free(self, name: str) -> None:
        if self.find_collection(name) is not None:
            raise DuplicateName(scope="collection", name=name)

    @staticmethod
    def _check_macro_name_free(c: Collection, name: str) -> None:
        if c.find_macro(name) is not None:
            raise DuplicateName(scope="macro", name=name)

    # ---------- 内部：修改后的统一处理 ----------

    def _maybe_autosave(self) -> bool:
        if not bool(self._session.settings.io.auto_save):
            return False
        return self._session.commit()

    def _after_change(
        self,
        *,
        record_type: str,
        name: str,
        collection: str = "",
        source: str,
        deleted: bool = False,
    ) -> bool:
        self._session.mark_dirty()
        self._notify_dirty()

        try:
            saved = self._maybe_autosave()
        finally:
            self._notify_dirty()

        if self._bus is not None:
            et = EventType.RECORD_DELETED if deleted else EventType.RECORD_UPDATED
            self._bus.post(et, record_type=record_type, name=name, collection=collection, source=source, saved=saved)
        return saved

    # ---------- 集合 ----------

    def add_collection(self, name: str = "", *, icon: str = DEFAULT_COLLECTION_ICON, active: bool = True) -> Collection:
        nm = (name or "").strip() or unique_name(NEW_COLLECTION_NAME, self.collection_names())
        self._check_collection_name_free(nm)

        c = Collection(name=nm, active=bool(active), icon=icon or DEFAULT_COLLECTION_ICON, macros=[])
        self.collections.append(c)
        with log_context(collection=nm, action="collection_add"):
            log.info("collection added")
            self._after_change(record_type="collection", name=nm, source="add")
        return c

    def delete_collection(self, name: str) -> bool:
        before = len(self.collections)
        self._session.data.collections = [c for c in self.collections if c.name != name]
        if len(self.collections) == before:
            return False
        with log_context(collection=name, action="collection_delete"):
            log.info("collection deleted")
            self._after_change(record_type="collection", name=name, source="delete", deleted=True)
        return True

    def rename_collection(self, old_name: str, new_name: str) -> bool:
        c = self.find_collection(old_name)
        if c is None:
            return False
        nm = (new_name or "").strip()
        if not nm or nm == c.name:
            return False
        self._check_collection_name_free(nm)

        c.name = nm
        with log_context(collection=nm, action="collection_rename"):
            log.info("collection renamed from %r", old_name)
            self._after_change(record_type="collection", name=nm, source="rename")
        return True

    def set_collection_icon(self, name: str, icon: str) -> bool:
        c = self.find_collection(name)
        if c is None:
            return False
        icon = icon or DEFAULT_COLLECTION_ICON
        if icon == c.icon:
            return False
        c.icon = icon
        self._after_change(record_type="collection", name=name, source="icon")
        return True

    def set_collection_active(self, name: str, active: bool) -> bool:
        c = self.find_collection(name)
        if c is None:
            return False
        c.active = bool(active)
        self._after_change(record_type="collection", name=name, source="toggle")
        return True

    def toggle_collection(self, name: str) -> Optional[bool]:
        """
        翻转集合的 active，返回新值；集合不存在返回 None。
        """
        c = self.find_collection(name)
        if c is None:
            return None
        self.set_collection_active(name, not c.active)
        return c.active

    # ---------- 宏 ----------

    def add_macro(self, collection_name: str, macro: Macro) -> Optional[Macro]:
        """
        把一个已构造好的宏追加到集合末尾；宏名冲突抛 DuplicateName。
        """
        c = self.find_collection(collection_name)
        if c is None:
            return None
        self._check_macro_name_free(c, macro.name)

        c.macros.append(macro)
        with log_context(collection=c.name, macro=macro.name, action="macro_add"):
            log.info("macro added (%d elements)", len(macro.sequence))
            self._after_change(record_type="macro", name=macro.name, collection=c.name, source="add")
        return macro

    def create_macro(self, collection_name: str, name: str = "", *, macro_type: str = "Single") -> Optional[Macro]:
        c = self.find_collection(collection_name)
        if c is None:
            return None
        if macro_type not in MACRO_TYPES:
            raise ValueError(f"macro_type must be one of {MACRO_TYPES}, got {macro_type!r}")
        nm = (name or "").strip() or unique_name(NEW_MACRO_NAME, c.macro_names())
        return self.add_macro(collection_name, Macro(name=nm, active=True, macro_type=macro_type))

    def delete_macro(self, collection_name: str, macro_name: str) -> bool:
        c = self.find_collection(collection_name)
        if c is None:
            return False
        before = len(c.macros)
        c.macros = [m for m in c.macros if m.name != macro_name]
        if len(c.macros) == before:
            return False
        with log_context(collection=c.name, macro=macro_name, action="macro_delete"):
            log.info("macro deleted")
            self._after_change(record_type="macro", name=macro_name, collection=c.name, source="delete", deleted=True)
        return True

    def rename_macro(self, collection_name: str, old_name: str, new_name: str) -> bool:
        c = self.find_collection(collection_name)
        if c is None:
            return False
        m = c.find_macro(old_name)
        if m is None:
            return False
        nm = (new_name or "").strip()
        if not nm or nm == m.name:
            return False
        self._check_macro_name_free(c, nm)

        m.name = nm
        with log_context(collection=c.name, macro=nm, action="macro_rename"):
            log.info("macro renamed from %r", old_name)
            self._after_change(record_type="macro", name=nm, collection=c.name, source="rename")
        return True

    def set_macro_active(self, collection_name: str, macro_name: str, active: bool) -> bool:
        m = self.find_macro(collection_name, macro_name)
        if m is None:
            return False
        m.active = bool(active)
        self._after_change(record_type="macro", name=macro_name, collection=collection_name, source="toggle")
        return True

    def toggle_macro(self, collection_name: str, macro_name: str) -> Optional[bool]:
        m = self.find_macro(collection_name, macro_name)
        if m is None:
            return None
        self.set_macro_active(collection_name, macro_name, not m.active)
        return m.active

    def duplicate_macro(self, collection_name: str, macro_name: str) -> Optional[Macro]:
        """
        深拷贝宏并以 "<name> (copy)" 形式的唯一名称追加到同一集合。
        """
        c = self.find_collection(collection_name)
        if c is None:
            return None
        src = c.find_macro(macro_name)
        if src is None:
            return None

        clone = src.clone()
        clone.name = unique_name(f"{src.name} (copy)", c.macro_names())
        return self.add_macro(collection_name, clone)

    def move_macro(self, src_collection: str, macro_name: str, dst_collection: str) -> bool:
        """
        把宏移动到另一个集合末尾；目标集合已有同名宏时抛 DuplicateName（不做任何修改）。
        """
        if src_collection == dst_collection:
            return False
        src = self.find_collection(src_collection)
        dst = self.find_collection(dst_collection)
        if src is None or dst is None:
            return False
        m = src.find_macro(macro_name)
        if m is None:
            return False
        self._check_macro_name_free(dst, m.name)

        src.macros.remove(m)
        dst.macros.append(m)
        with log_context(collection=dst.name, macro=m.name, action="macro_move"):
            log.info("macro moved from %r", src.name)
            self._after_change(record_type="macro", name=m.name, collection=dst.name, source="move")
        return True

    def save_macro(self, collection_name: str, macro: Macro, *, original_name: Optional[str] = None) -> Macro:
        """
        写回一个编辑过的宏：

        - original_name 为 None 或集合中已不存在 -> 追加
        - 否则原位替换 original_name 对应的宏
        - 新名称与其它宏冲突 -> DuplicateName
        - 集合不存在 -> NotFound
        """
        c = self.find_collection(collection_name)
        if c is None:
            raise NotFound(kind="collection", name=collection_name)

        idx: Optional[int] = None
        if original_name is not None:
            for i, m in enumerate(c.macros):
                if m.name == original_name:
                    idx = i
                    break

        for i, m in enumerate(c.macros):
            if m.name == macro.name and i != idx:
                raise DuplicateName(scope="macro", name=macro.name)

        if idx is None:
            c.macros.append(macro)
        else:
            c.macros[idx] = macro

        with log_context(collection=c.name, macro=macro.name, action="macro_save"):
            log.info("macro saved (%d elements)", len(macro.sequence))
            self._after_change(record_type="macro", name=macro.name, collection=c.name, source="edit")
        return macro

    # ---------- 手动保存 ----------

    def save(self) -> bool:
        saved = self._session.commit()
        self._notify_dirty()
        return saved
