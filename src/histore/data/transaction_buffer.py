"""Transaction buffer for accumulating patches across several set() calls.

A TransactionBuffer lives only while a transaction is open. When the
transaction commits, the buffer is frozen into a single HistoryEntry.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Generic, TypeVar

from ..models.history_entry import HistoryEntry
from ..models.patch import Patch

OptionT = TypeVar("OptionT")


class TransactionBuffer(Generic[OptionT]):
    """Accumulator for the patches of one open transaction.

    Forward patches are kept in call order. Inverse patches are kept in
    reverse call order, so applying them front to back undoes the most
    recent sub-mutation first.
    """

    def __init__(self, option: OptionT | None = None):
        """Initialize an empty buffer.

        Args:
            option: Metadata for the entry this transaction will commit.
        """
        self._forward: list[Patch] = []
        self._inverse: list[Patch] = []
        self._option = option
        self._set_count = 0

    @property
    def option(self) -> OptionT | None:
        """Get the pending option."""
        return self._option

    @property
    def forward_patches(self) -> list[Patch]:
        """Get buffered forward patches (in call order)."""
        return self._forward

    @property
    def inverse_patches(self) -> list[Patch]:
        """Get buffered inverse patches (most recent first)."""
        return self._inverse

    @property
    def set_count(self) -> int:
        """Number of set() calls recorded into this buffer."""
        return self._set_count

    def record(
        self,
        forward: Sequence[Patch],
        inverse: Sequence[Patch],
        option: OptionT | None = None,
    ) -> None:
        """Record the patches of one set() call.

        Args:
            forward: Forward patches of the call.
            inverse: Inverse patches of the call.
            option: If not None, replaces the pending option (last writer wins).
        """
        self._forward.extend(forward)
        self._inverse[:0] = inverse
        if option is not None:
            self._option = option
        self._set_count += 1

    def has_pending_changes(self) -> bool:
        """Check if any forward patches were buffered."""
        return len(self._forward) > 0

    def freeze(self) -> HistoryEntry[OptionT]:
        """Build the history entry this transaction commits."""
        return HistoryEntry(
            forward_patches=tuple(self._forward),
            inverse_patches=tuple(self._inverse),
            option=self._option,
        )
