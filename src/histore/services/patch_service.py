"""Patch service for producing and applying patches.

This service is the patch generator used by the history engine.
Core diff/apply model operations are in models/structural_diff.py and
models/draft_builder.py.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from ..debug_trace import logger, perf_timer
from ..errors import PatchApplicationError
from ..models.draft_builder import DraftBuilder, Recipe
from ..models.patch import Patch
from ..models.structural_diff import apply_patches, diff_values

__all__ = [
    "PatchService",
    "apply_patches",
    "diff_values",
]


class PatchService:
    """Produces next values with patches, and applies recorded patches."""

    @staticmethod
    def produce_with_patches(base: Any, recipe: Recipe) -> tuple[Any, list[Patch], list[Patch]]:
        """Run a recipe against a draft of base.

        Args:
            base: The current value. Not modified.
            recipe: Callable receiving a mutable draft. It may edit the draft
                    in place, or return a replacement value, but not both.

        Returns:
            Tuple of (next_value, forward_patches, inverse_patches).
            next_value is base itself when the recipe changed nothing.

        Raises:
            RecipeConflictError: If the recipe edited the draft and returned
                                 a different value.
        """
        with perf_timer("produce_with_patches"):
            return DraftBuilder(base).run(recipe).freeze()

    @staticmethod
    def apply(value: Any, patches: Sequence[Patch]) -> Any:
        """Apply patches to value, logging the failing patch if any.

        Raises:
            PatchApplicationError: If a patch cannot be applied.
        """
        with perf_timer("apply_patches", item_count=len(patches)):
            try:
                return apply_patches(value, patches)
            except PatchApplicationError as e:
                logger.debug(f"Patch application failed: {e}")
                raise

    @staticmethod
    def check_applicable(value: Any, entries_patches: Iterable[Sequence[Patch]]) -> None:
        """Apply successive patch lists to value without keeping the result.

        Used to verify that a chain of recorded patches still fits a value.

        Raises:
            PatchApplicationError: At the first patch that does not fit.
        """
        current = value
        for patches in entries_patches:
            current = PatchService.apply(current, patches)
