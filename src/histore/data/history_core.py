"""History engine with undo/redo stacks and transactions.

The engine owns a single immutable value (`present`) and two stacks of
HistoryEntry objects:
- undo_stack: entries that can be undone (most recent last)
- redo_stack: entries that can be redone (most recent last)

Key behaviors:
- Every change goes through set(), which records a forward/inverse patch pair
- Any committed change clears the redo stack
- A transaction batches several set() calls into one undoable entry
- Misuse (undo on an empty stack, ending a transaction that is not open)
  is a no-op reported by a False return value, never an exception
- Stacks and present change only after all patches of an entry applied
"""

from __future__ import annotations

from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from ..debug_trace import logger
from ..models.draft_builder import Recipe
from ..models.history_entry import HistoryEntry, Snapshot
from ..services.patch_service import PatchService
from .transaction_buffer import TransactionBuffer

StateT = TypeVar("StateT")
OptionT = TypeVar("OptionT")


class HistoryCore(Generic[StateT, OptionT]):
    """Undo/redo history for a single immutable value.

    Usage:
        core = HistoryCore({"count": 0})

        core.set(lambda draft: draft.update(count=1), {"name": "increment"})
        core.undo()
        core.redo()

        # Batch several changes into one undo step
        with core.transaction({"name": "batch"}):
            core.set(lambda draft: draft.update(count=2))
            core.set(lambda draft: draft.update(count=3))

    The engine is synchronous and keeps no locks; callers sharing one
    instance between threads must serialize access themselves.
    """

    def __init__(self, initial_state: StateT):
        """Initialize the engine.

        Args:
            initial_state: The starting value. It is never mutated.
        """
        self._present: StateT = initial_state
        self._undo_stack: list[HistoryEntry[OptionT]] = []
        self._redo_stack: list[HistoryEntry[OptionT]] = []

        # Open transaction, if any (None means idle)
        self._transaction: TransactionBuffer[OptionT] | None = None

    # --- State Access ---

    @property
    def present(self) -> StateT:
        """Get the current value."""
        return self._present

    @property
    def undo_stack(self) -> tuple[HistoryEntry[OptionT], ...]:
        """Get a read-only copy of the undo stack (oldest first)."""
        return tuple(self._undo_stack)

    @property
    def redo_stack(self) -> tuple[HistoryEntry[OptionT], ...]:
        """Get a read-only copy of the redo stack (oldest first)."""
        return tuple(self._redo_stack)

    @property
    def in_transaction(self) -> bool:
        """Check if a transaction is open."""
        return self._transaction is not None

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._undo_stack) > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._redo_stack) > 0

    def get_undo_option(self) -> OptionT | None:
        """Get the option of the entry the next undo() would revert."""
        if self._undo_stack:
            return self._undo_stack[-1].option
        return None

    def get_redo_option(self) -> OptionT | None:
        """Get the option of the entry the next redo() would reapply."""
        if self._redo_stack:
            return self._redo_stack[-1].option
        return None

    # --- Mutation ---

    def set(self, recipe: Recipe, option: OptionT | None = None) -> None:
        """Produce the next value from a recipe and record it.

        Outside a transaction, pushes one entry onto the undo stack and
        clears the redo stack. Inside a transaction, buffers the patches
        instead; `option`, if given, becomes the transaction's option.
        In both cases present is replaced immediately.

        Args:
            recipe: Callable receiving a mutable draft of present. It may
                    edit the draft in place and return None, or leave the
                    draft alone and return a replacement value. A returned
                    value is copied, so later edits to it do not reach
                    present.
            option: Metadata for the history entry (e.g. {"name": "rename"}).

        Raises:
            RecipeConflictError: If the recipe edited the draft and also
                                 returned a value, as `lambda d: d["items"].pop()`
                                 does. Nothing is changed.
            UnsupportedKeyError: If a changed dict key is not a str or int.
        """
        next_state, forward, inverse = PatchService.produce_with_patches(self._present, recipe)

        if self._transaction is not None:
            self._transaction.record(forward, inverse, option)
            logger.debug(
                f"set: buffered {len(forward)} patches "
                f"(transaction has {len(self._transaction.forward_patches)})"
            )
        else:
            self._undo_stack.append(HistoryEntry(tuple(forward), tuple(inverse), option))
            self._redo_stack.clear()
            logger.debug(
                f"set: recorded {len(forward)} patches, undo depth {len(self._undo_stack)}"
            )

        self._present = next_state

    # --- Undo/Redo ---

    def undo(self) -> bool:
        """Revert the most recent entry.

        Returns:
            True if undo was performed, False if the undo stack is empty.

        Raises:
            PatchApplicationError: If the entry no longer fits present.
                                   Nothing is changed in that case.
        """
        if not self._undo_stack:
            logger.debug("undo: nothing to undo")
            return False

        entry = self._undo_stack[-1]
        restored = PatchService.apply(self._present, entry.inverse_patches)

        self._undo_stack.pop()
        self._redo_stack.append(entry)
        self._present = restored
        logger.debug(f"undo: {entry!r}")
        return True

    def redo(self) -> bool:
        """Reapply the most recently undone entry.

        Returns:
            True if redo was performed, False if the redo stack is empty.

        Raises:
            PatchApplicationError: If the entry no longer fits present.
                                   Nothing is changed in that case.
        """
        if not self._redo_stack:
            logger.debug("redo: nothing to redo")
            return False

        entry = self._redo_stack[-1]
        restored = PatchService.apply(self._present, entry.forward_patches)

        self._redo_stack.pop()
        self._undo_stack.append(entry)
        self._present = restored
        logger.debug(f"redo: {entry!r}")
        return True

    def clear_history(self) -> None:
        """Empty both stacks. present and any open transaction are kept."""
        self._undo_stack = []
        self._redo_stack = []
        logger.debug("clear_history")

    # --- Transactions ---

    def begin_transaction(self, option: OptionT | None = None) -> bool:
        """Open a transaction.

        Transactions never nest: if one is already open, this call does
        nothing and its option is ignored. Later set() calls simply join
        the open transaction.

        Returns:
            True if a transaction was opened.
        """
        if self._transaction is not None:
            logger.debug("begin_transaction: already open, ignored")
            return False

        self._transaction = TransactionBuffer(option)
        logger.debug(f"begin_transaction: {option!r}")
        return True

    def end_transaction(self) -> bool:
        """Close the open transaction, committing it as one entry.

        A transaction with no changes commits nothing. The transaction is
        closed either way.

        Returns:
            True if an entry was committed.
        """
        buffer = self._transaction
        if buffer is None:
            logger.debug("end_transaction: no open transaction")
            return False

        self._transaction = None

        if not buffer.has_pending_changes():
            logger.debug("end_transaction: empty, nothing committed")
            return False

        entry = buffer.freeze()
        self._undo_stack.append(entry)
        self._redo_stack.clear()
        logger.debug(f"end_transaction: committed {entry!r} from {buffer.set_count} sets")
        return True

    def rollback_transaction(self) -> bool:
        """Revert and discard the open transaction.

        Stacks are not modified; present returns to its value from before
        the transaction began.

        Returns:
            True if a transaction was rolled back.

        Raises:
            PatchApplicationError: If the buffered patches no longer fit
                                   present. The transaction stays open.
        """
        buffer = self._transaction
        if buffer is None:
            logger.debug("rollback_transaction: no open transaction")
            return False

        restored = PatchService.apply(self._present, buffer.inverse_patches)

        self._present = restored
        self._transaction = None
        logger.debug(f"rollback_transaction: reverted {buffer.set_count} sets")
        return True

    @contextmanager
    def transaction(self, option: OptionT | None = None) -> Generator[HistoryCore, None, None]:
        """Context manager for batching changes into one undo step.

        Commits on normal exit; rolls back and re-raises on exception.
        Entered while a transaction is already open, it joins that
        transaction and leaves committing to whoever opened it.

        Args:
            option: Metadata for the committed entry.

        Yields:
            This engine.
        """
        if not self.begin_transaction(option):
            yield self
            return

        try:
            yield self
        except BaseException:
            self.rollback_transaction()
            raise
        else:
            self.end_transaction()

    # --- Export/Import ---

    def export_state(self) -> Snapshot[StateT, OptionT]:
        """Take a snapshot of present and both stacks.

        present is returned by reference; the stacks are copied, so later
        undo/redo never changes an exported snapshot.
        """
        return Snapshot.create(self._present, self._undo_stack, self._redo_stack)

    def import_state(
        self,
        snapshot: Snapshot[StateT, OptionT] | Mapping[str, Any],
        validate: bool = False,
    ) -> None:
        """Replace present and both stacks with a snapshot's contents.

        An open transaction is discarded: its buffered patches refer to the
        present value this import replaces.

        Args:
            snapshot: A Snapshot, or a mapping in the snapshot wire format.
            validate: If True, check that every undo entry's inverse patches
                      and every redo entry's forward patches can be applied,
                      starting from the snapshot's present.

        Raises:
            SnapshotFormatError: If a mapping is not a valid snapshot.
            PatchApplicationError: If validate is True and the history does
                                   not fit present. Nothing is changed.
        """
        if not isinstance(snapshot, Snapshot):
            snapshot = Snapshot.from_dict(snapshot)

        if validate:
            PatchService.check_applicable(
                snapshot.present,
                (entry.inverse_patches for entry in reversed(snapshot.undo_stack)),
            )
            PatchService.check_applicable(
                snapshot.present,
                (entry.forward_patches for entry in reversed(snapshot.redo_stack)),
            )

        if self._transaction is not None:
            logger.warning(
                f"import_state: discarding open transaction with "
                f"{self._transaction.set_count} buffered sets"
            )
            self._transaction = None

        self._present = snapshot.present
        self._undo_stack = list(snapshot.undo_stack)
        self._redo_stack = list(snapshot.redo_stack)
        logger.debug(
            f"import_state: {len(self._undo_stack)} undo, {len(self._redo_stack)} redo entries"
        )
