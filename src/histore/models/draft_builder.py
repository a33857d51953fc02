"""Draft builder for producing a new value from mutations.

DraftBuilder provides a mutable working copy of a value. Recipes edit the
draft in place; freeze() then diffs the draft against the original and
returns the next value together with forward and inverse patches.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

from ..errors import RecipeConflictError
from .patch import Patch
from .structural_diff import diff_values, values_equal

Recipe = Callable[[Any], Any]


class DraftBuilder:
    """Mutable working copy of a value.

    The base value is never touched; the draft is a deep copy of it.

    Usage:
        builder = DraftBuilder({"count": 0})
        builder.draft["count"] += 1
        next_value, forward, inverse = builder.freeze()
    """

    def __init__(self, base: Any):
        """Initialize a builder.

        Args:
            base: The value the draft is built from.
        """
        self._base = base
        self._draft = copy.deepcopy(base)

    @property
    def base(self) -> Any:
        """Get the original value."""
        return self._base

    @property
    def draft(self) -> Any:
        """Get the mutable working copy."""
        return self._draft

    def replace(self, value: Any) -> None:
        """Replace the whole draft with a copy of a new value.

        Used when a recipe returns a value instead of mutating the draft.
        The caller keeps ownership of value; later edits to it do not reach
        the draft.
        """
        self._draft = copy.deepcopy(value)

    def run(self, recipe: Recipe) -> DraftBuilder:
        """Run a recipe against the draft.

        The recipe may mutate the draft, or return a replacement value
        while leaving the draft untouched. Whatever a mutating recipe
        returns must be None or the draft itself.

        Returns:
            This builder, for chaining into freeze().

        Raises:
            RecipeConflictError: If the recipe modified the draft and also
                                 returned some other value.
        """
        result = recipe(self._draft)
        if result is None or result is self._draft:
            return self
        if self.has_changes():
            raise RecipeConflictError(
                f"Recipe modified its draft and returned {type(result).__name__} "
                f"{result!r}; either modify the draft or return a new value"
            )
        self.replace(result)
        return self

    def has_changes(self) -> bool:
        """Check if the draft differs from the base."""
        return not values_equal(self._base, self._draft)

    def freeze(self) -> tuple[Any, list[Patch], list[Patch]]:
        """Finish the draft.

        Returns:
            Tuple of (next_value, forward_patches, inverse_patches).
            When nothing changed, next_value is the base itself and both
            patch lists are empty.
        """
        forward, inverse = diff_values(self._base, self._draft)
        if not forward:
            return self._base, forward, inverse
        return self._draft, forward, inverse
