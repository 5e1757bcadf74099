# macro_core/app/session.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from macro_core.errors import PersistenceFailure
from macro_core.models.macro import Collection, MacroData
from macro_core.models.settings import EditorSettings

log = logging.getLogger(__name__)

PersistHook = Callable[[List[Collection]], None]


class MacroDataSession:
    """
    宏数据工作单元 + 脏标记：

    - 持有内存中的 MacroData（唯一的一份，所有服务共享）
    - persist: 外部持久化回调，commit() 时以完整集合列表调用
    - commit() 失败时抛 PersistenceFailure：不重试、不回滚内存修改，dirty 保持
    - subscribe_dirty(fn)：供 UI 订阅脏状态变更
    """

    def __init__(
        self,
        data: MacroData,
        *,
        persist: Optional[PersistHook] = None,
        settings: Optional[EditorSettings] = None,
    ) -> None:
        self._data = data
        self._persist = persist
        self._settings = settings or EditorSettings()
        self._dirty = False
        self._listeners: list[Callable[[bool], None]] = []

    # ---------- 基本属性 ----------

    @property
    def data(self) -> MacroData:
        return self._data

    @property
    def collections(self) -> List[Collection]:
        return self._data.collections

    @property
    def settings(self) -> EditorSettings:
        return self._settings

    @property
    def can_persist(self) -> bool:
        return self._persist is not None

    # ---------- 订阅脏状态 ----------

    def subscribe_dirty(self, fn: Callable[[bool], None]) -> Callable[[], None]:
        self._listeners.append(fn)

        def _unsub() -> None:
            try:
                self._listeners.remove(fn)
            except ValueError:
                pass

        return _unsub

    def _emit_dirty(self) -> None:
        for fn in list(self._listeners):
            try:
                fn(self._dirty)
            except Exception:
                log.exception("dirty listener failed")

    # ---------- dirty 管理 ----------

    def is_dirty(self) -> bool:
        return self._dirty

    def mark_dirty(self) -> None:
        if not self._dirty:
            self._dirty = True
            self._emit_dirty()

    def clear_dirty(self) -> None:
        if self._dirty:
            self._dirty = False
            self._emit_dirty()

    # ---------- commit / reload ----------

    def commit(self) -> bool:
        """
        调用持久化回调写入完整集合列表。

        返回是否实际执行了写入（没有配置回调时返回 False，dirty 保持）。
        """
        if self._persist is None:
            return False

        try:
            self._persist(list(self._data.collections))
        except PersistenceFailure:
            raise
        except Exception as e:
            raise PersistenceFailure(message="failed to persist collections", cause=e) from e

        log.info("macro data persisted (%d collections)", len(self._data.collections), extra={"action": "persist"})
        self.clear_dirty()
        return True

    def reload(self, data: MacroData) -> None:
        """
        用外部重新加载的数据替换内存数据，丢弃未保存的修改。
        """
        self._data = data
        self._dirty = False
        self._emit_dirty()
