from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from macro_core.io.json_store import atomic_write_json, ensure_dir, read_json
from macro_core.migrations.macro_data_json import LATEST_MACRO_DATA_SCHEMA_VERSION, migrate_macro_data_json
from macro_core.models.diagnostics import Diagnostic
from macro_core.models.macro import Collection, MacroData

log = logging.getLogger(__name__)


class MacroDataRepo:
    """
    <app_data_dir>/data_json.json 的读写：
    - load_or_create(): 不存在时写入只含 "Default" 集合的初始数据
    - save()          : 原子写入
    - persist()       : 供 MacroDataSession 使用的持久化回调（整份集合列表写盘）
    """

    FILE_NAME = "data_json.json"

    def __init__(self, app_data_dir: Path) -> None:
        self._dir = app_data_dir
        ensure_dir(self._dir)
        self.last_diagnostics: List[Diagnostic] = []

    @property
    def path(self) -> Path:
        return self._dir / self.FILE_NAME

    def load_or_create(self) -> MacroData:
        if not self.path.exists():
            data = MacroData.new_default()
            self.save(data, backup=False)
            self.last_diagnostics = []
            log.info("created initial macro data", extra={"action": "load"})
            return data

        raw = read_json(self.path, default={})
        mig = migrate_macro_data_json(raw)
        if mig.changed:
            log.info(
                "migrated macro data v%s -> v%s %s",
                mig.from_version,
                mig.to_version,
                mig.notes,
                extra={"action": "migrate"},
            )

        diags: List[Diagnostic] = []
        data = MacroData.from_dict(mig.data, diags=diags)
        data.schema_version = LATEST_MACRO_DATA_SCHEMA_VERSION
        self.last_diagnostics = diags
        for d in diags:
            log.warning("%s at %s: %s %s", d.code, d.path, d.message, d.detail, extra={"action": "load"})

        if mig.changed:
            # 只在迁移了已有文件时备份
            self.save(data, backup=True)
        return data

    def save(self, data: MacroData, *, backup: bool = True) -> None:
        atomic_write_json(self.path, data.to_dict(), backup=backup)

    def persist(self, collections: Iterable[Collection], *, backup: bool = True) -> None:
        self.save(MacroData(collections=list(collections)), backup=backup)
