# macro_core/logging_setup.py
from __future__ import annotations

import logging
import logging.handlers
import queue
import sys
from dataclasses import dataclass
from pathlib import Path

from macro_core.io.json_store import ensure_dir
from macro_core.logging_context import action_var, collection_var, corr_id_var, macro_var


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # formatter 引用的上下文字段必须始终存在；extra= 里显式给出的优先
        if not hasattr(record, "corr_id"):
            record.corr_id = corr_id_var.get()
        if not hasattr(record, "collection"):
            record.collection = collection_var.get()
        if not hasattr(record, "macro"):
            record.macro = macro_var.get()
        if not hasattr(record, "action"):
            record.action = action_var.get()
        return True


LOG_FORMAT = (
    "%(asctime)s %(levelname)s "
    "%(name)s:%(funcName)s:%(lineno)d "
    "corr=%(corr_id)s collection=%(collection)s macro=%(macro)s action=%(action)s - %(message)s"
)


@dataclass
class LoggingRuntime:
    listener: logging.handlers.QueueListener

    def stop(self) -> None:
        self.listener.stop()
        for h in self.listener.handlers:
            h.close()


def setup_logging(
    *,
    app_data_dir: Path,
    level: str = "INFO",
    keep_days_app: int = 14,
    keep_days_error: int = 30,
    console: bool = False,
) -> LoggingRuntime:
    """
    root logger 只挂一个 QueueHandler；真正写文件/控制台的 handler 在 QueueListener 线程里执行。

    - logs/app.log   : INFO 及以上，按天轮转
    - logs/error.log : ERROR 及以上，按天轮转
    - console=True 时额外输出到 stderr
    """
    logs_dir = app_data_dir / "logs"
    ensure_dir(logs_dir)

    log_q: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=20_000)
    formatter = logging.Formatter(fmt=LOG_FORMAT)

    app_fh = logging.handlers.TimedRotatingFileHandler(
        filename=str(logs_dir / "app.log"),
        when="midnight",
        backupCount=int(keep_days_app),
        encoding="utf-8",
    )
    app_fh.setLevel(logging.INFO)
    app_fh.setFormatter(formatter)

    err_fh = logging.handlers.TimedRotatingFileHandler(
        filename=str(logs_dir / "error.log"),
        when="midnight",
        backupCount=int(keep_days_error),
        encoding="utf-8",
    )
    err_fh.setLevel(logging.ERROR)
    err_fh.setFormatter(formatter)

    handlers: list[logging.Handler] = [app_fh, err_fh]

    if console:
        ch = logging.StreamHandler(stream=sys.stderr)
        ch.setLevel(logging.DEBUG)
        ch.setFormatter(formatter)
        handlers.append(ch)

    # 上下文字段在调用线程注入（contextvars 不会跨到 listener 线程）
    qh = logging.handlers.QueueHandler(log_q)
    qh.setLevel(logging.DEBUG)
    qh.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(qh)

    listener = logging.handlers.QueueListener(
        log_q,
        *handlers,
        respect_handler_level=True,
    )
    listener.start()

    _install_global_exception_hook()

    logging.getLogger(__name__).info("logging initialized", extra={"action": "boot"})

    return LoggingRuntime(listener=listener)


def _install_global_exception_hook() -> None:
    log = logging.getLogger("unhandled")

    def excepthook(exc_type, exc, tb):
        log.critical("unhandled exception", exc_info=(exc_type, exc, tb))

    sys.excepthook = excepthook
