from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4


# -----------------------------
# Exceptions
# -----------------------------

@dataclass
class JsonStoreError(Exception):
    path: Path
    message: str
    cause: Optional[BaseException] = None

    def __str__(self) -> str:
        base = f"{self.message} (path={self.path})"
        if self.cause is not None:
            return f"{base}; cause={type(self.cause).__name__}: {self.cause}"
        return base


class JsonReadError(JsonStoreError):
    pass


class JsonWriteError(JsonStoreError):
    pass


# -----------------------------
# Public helpers
# -----------------------------

def ensure_dir(dir_path: Path) -> None:
    """
    mkdir -p; failures surface as JsonWriteError.
    """
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        raise JsonWriteError(path=dir_path, message="Failed to create directory", cause=e) from e


def read_json(path: Path, *, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Read a JSON object from `path`.

    - missing file or blank file -> copy of `default` (or {})
    - invalid JSON / root is not an object -> JsonReadError
    """
    fallback = dict(default or {})

    try:
        if not path.exists():
            return fallback

        raw = path.read_text(encoding="utf-8").strip()
        if raw == "":
            return fallback

        data = json.loads(raw)
    except Exception as e:
        raise JsonReadError(path=path, message="Failed to read/parse JSON", cause=e) from e

    if not isinstance(data, dict):
        raise JsonReadError(path=path, message="JSON root must be an object/dict")
    return data


def atomic_write_json(
    path: Path,
    data: Dict[str, Any],
    *,
    backup: bool = True,
    indent: int = 2,
) -> None:
    """
    Write `data` next to `path` as a temp file, fsync it, then os.replace() it over `path`.

    - backup=True copies the previous file to `<name>.bak` first.
    - Key order is kept as produced by to_dict().
    - The original file is left untouched when any step fails.
    """
    if not isinstance(data, dict):
        raise JsonWriteError(path=path, message="atomic_write_json expects `data` to be a dict")

    ensure_dir(path.parent)

    tmp_path = path.parent / f".{path.name}.{uuid4().hex}.tmp"
    bak_path = path.with_suffix(path.suffix + ".bak")

    try:
        payload = json.dumps(data, ensure_ascii=False, indent=indent)

        with open(tmp_path, "wb") as f:
            f.write(payload.encode("utf-8"))
            f.flush()
            os.fsync(f.fileno())

        if backup and path.exists():
            try:
                shutil.copy2(path, bak_path)
            except Exception as e:
                raise JsonWriteError(path=bak_path, message="Failed to create backup file", cause=e) from e

        os.replace(tmp_path, path)

    except JsonStoreError:
        raise
    except Exception as e:
        raise JsonWriteError(path=path, message="Failed to write JSON atomically", cause=e) from e
    finally:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            # temp 文件清理失败不影响结果
            pass
