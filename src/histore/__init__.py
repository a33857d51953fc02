"""Undo/redo history for immutable values, with transactional batching."""

from .data.history_core import HistoryCore
from .data.history_store import HistoryStore, TemporalApi
from .errors import (
    HistoreError,
    PatchApplicationError,
    RecipeConflictError,
    SnapshotFormatError,
    UnsupportedKeyError,
)
from .models.constants import PatchOp
from .models.history_entry import HistoryEntry, Snapshot
from .models.patch import Patch
from .services.patch_service import PatchService, apply_patches, diff_values
from .settings import HistoreSettings

__all__ = [
    # Engine
    "HistoryCore",
    "HistoryStore",
    "TemporalApi",
    # Data model
    "HistoryEntry",
    "Patch",
    "PatchOp",
    "Snapshot",
    # Patch generator
    "PatchService",
    "apply_patches",
    "diff_values",
    # Errors
    "HistoreError",
    "PatchApplicationError",
    "RecipeConflictError",
    "SnapshotFormatError",
    "UnsupportedKeyError",
    # Config
    "HistoreSettings",
]
