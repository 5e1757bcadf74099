from __future__ import annotations

from .store import SequenceElement, SequenceStore

__all__ = ["SequenceElement", "SequenceStore"]
