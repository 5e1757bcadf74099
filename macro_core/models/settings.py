from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from macro_core.models.common import as_bool, as_dict, as_int, as_str


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class IOConfig:
    auto_save: bool = True
    backup_on_save: bool = True

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "IOConfig":
        d = as_dict(d)
        return IOConfig(
            auto_save=as_bool(d.get("auto_save", True), True),
            backup_on_save=as_bool(d.get("backup_on_save", True), True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_save": bool(self.auto_save),
            "backup_on_save": bool(self.backup_on_save),
        }


@dataclass
class LoggingConfig:
    level: str = "INFO"
    console: bool = False

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "LoggingConfig":
        d = as_dict(d)
        level = as_str(d.get("level", "INFO"), "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            level = "INFO"
        return LoggingConfig(
            level=level,
            console=as_bool(d.get("console", False), False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "console": bool(self.console)}


@dataclass
class EditorSettings:
    """
    settings.json 根对象。
    """
    schema_version: int = 1
    io: IOConfig = field(default_factory=IOConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EditorSettings":
        d = as_dict(d)
        return EditorSettings(
            schema_version=as_int(d.get("schema_version", 1), 1),
            io=IOConfig.from_dict(d.get("io", {}) or {}),
            logging=LoggingConfig.from_dict(d.get("logging", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": int(self.schema_version),
            "io": self.io.to_dict(),
            "logging": self.logging.to_dict(),
        }
