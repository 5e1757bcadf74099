# macro_core/logging_context.py
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4

corr_id_var: ContextVar[str] = ContextVar("corr_id", default="-")
collection_var: ContextVar[str] = ContextVar("collection", default="-")
macro_var: ContextVar[str] = ContextVar("macro", default="-")
action_var: ContextVar[str] = ContextVar("action", default="-")


def new_corr_id() -> str:
    return uuid4().hex[:12]


@contextmanager
def log_context(
    *,
    corr_id: str | None = None,
    collection: str | None = None,
    macro: str | None = None,
    action: str | None = None,
):
    tokens = []
    try:
        if corr_id is not None:
            tokens.append((corr_id_var, corr_id_var.set(corr_id)))
        if collection is not None:
            tokens.append((collection_var, collection_var.set(collection)))
        if macro is not None:
            tokens.append((macro_var, macro_var.set(macro)))
        if action is not None:
            tokens.append((action_var, action_var.set(action)))
        yield
    finally:
        for var, tok in reversed(tokens):
            var.reset(tok)
