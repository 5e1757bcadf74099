from __future__ import annotations

from .json_store import (
    JsonStoreError,
    JsonReadError,
    JsonWriteError,
    ensure_dir,
    read_json,
    atomic_write_json,
)

__all__ = [
    "JsonStoreError",
    "JsonReadError",
    "JsonWriteError",
    "ensure_dir",
    "read_json",
    "atomic_write_json",
]
