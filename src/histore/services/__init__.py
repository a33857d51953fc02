"""Service layer for patch production and application.

Services:
- PatchService: Runs recipes against drafts and applies recorded patches

The history engine in data/history_core.py calls PatchService for every
set, undo, redo and rollback. Services are stateless.
"""

from .patch_service import PatchService

__all__ = [
    "PatchService",
]
