from __future__ import annotations

from .collections_service import CollectionsService, unique_name
from .macro_edit_service import MacroEditService, SequenceRow

__all__ = ["CollectionsService", "MacroEditService", "SequenceRow", "unique_name"]
