from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


DiagnosticLevel = Literal["error", "warning", "info"]


@dataclass(frozen=True)
class Diagnostic:
    """
    解码持久化数据时产生的诊断信息（解码本身从不抛异常）：
    - code   : 机器可读的代码，例如 "event.type.unknown"
    - level  : error / warning / info
    - path   : 指向 JSON 的路径，例如 "$.data[0].macros[1].sequence[3]"
    - message: 人类可读简述
    - detail : 可选详细信息（原始值等）
    """
    code: str
    level: DiagnosticLevel
    path: str
    message: str
    detail: str = ""

    def is_error(self) -> bool:
        return self.level == "error"


def pjoin(base: str, frag: str) -> str:
    """
    拼接 path 片段：base 形如 "$" / "$.a[0]"，frag 形如 ".x" / "[3]"。
    """
    if not base:
        base = "$"
    if not frag:
        return base
    return f"{base}{frag}"


def err(code: str, path: str, message: str, detail: str = "") -> Diagnostic:
    return Diagnostic(code=code, level="error", path=path or "$", message=message, detail=detail)


def warn(code: str, path: str, message: str, detail: str = "") -> Diagnostic:
    return Diagnostic(code=code, level="warning", path=path or "$", message=message, detail=detail)
