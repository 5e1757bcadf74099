from __future__ import annotations

from pathlib import Path

from macro_core.io.json_store import atomic_write_json, ensure_dir, read_json
from macro_core.models.settings import EditorSettings


class SettingsRepo:
    def __init__(self, app_data_dir: Path) -> None:
        self._dir = app_data_dir
        ensure_dir(self._dir)

    @property
    def path(self) -> Path:
        return self._dir / "settings.json"

    def load_or_create(self) -> EditorSettings:
        existed = self.path.exists()
        data = read_json(self.path, default={})
        settings = EditorSettings.from_dict(data)

        # 缺失时写入默认值，便于手工编辑
        if not existed:
            self.save(settings, backup=False)
        return settings

    def save(self, settings: EditorSettings, *, backup: bool = True) -> None:
        atomic_write_json(self.path, settings.to_dict(), backup=backup)
