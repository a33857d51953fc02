"""Exceptions raised by histore.

Misusing the history API (undo on an empty stack, ending a transaction that
was never begun) is not an error; those calls are no-ops that return False.
These exceptions cover the genuine failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models.patch import Patch


class HistoreError(Exception):
    """Base class for all histore errors."""


class PatchApplicationError(HistoreError):
    """A patch could not be applied to the given value.

    Typically raised when the value's shape no longer matches the one the
    patch was recorded against, e.g. after importing a snapshot whose
    present value is incompatible with its history.

    Attributes:
        patch: The patch that failed.
        reason: Human-readable explanation.
    """

    def __init__(self, patch: Patch, reason: str):
        self.patch = patch
        self.reason = reason
        super().__init__(f"Cannot apply {patch!r}: {reason}")


class SnapshotFormatError(HistoreError, ValueError):
    """A mapping does not have the snapshot wire format."""


class RecipeConflictError(HistoreError, ValueError):
    """A recipe both modified its draft and returned a different value.

    Only one of the two can become the next value, so neither is used.
    """


class UnsupportedKeyError(HistoreError, TypeError):
    """A dict key cannot be recorded in a patch path.

    Path keys must be str (dict keys) or int (list indices) to survive
    the snapshot wire format.
    """
