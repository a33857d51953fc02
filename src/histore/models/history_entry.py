"""History entries and snapshots.

A HistoryEntry records one undoable unit: the patches that produced it and
the patches that revert it. A Snapshot is the complete observable state of
a history engine, used for export and import.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..errors import SnapshotFormatError
from .constants import (
    KEY_FORWARD_PATCHES,
    KEY_HISTORY,
    KEY_INVERSE_PATCHES,
    KEY_OPTION,
    KEY_PRESENT,
    KEY_REDO_STACK,
    KEY_UNDO_STACK,
)
from .patch import Patch

StateT = TypeVar("StateT")
OptionT = TypeVar("OptionT")


@dataclass(frozen=True)
class HistoryEntry(Generic[OptionT]):
    """One undoable unit of change.

    Attributes:
        forward_patches: Patches that redo the change, in application order.
        inverse_patches: Patches that undo the change, in application order.
        option: Caller-supplied metadata (e.g. a label for an undo menu).
                Never interpreted by the engine.
    """

    forward_patches: tuple[Patch, ...] = ()
    inverse_patches: tuple[Patch, ...] = ()
    option: OptionT | None = None

    def __repr__(self) -> str:
        return (
            f"HistoryEntry({self.option!r}, {len(self.forward_patches)} forward, "
            f"{len(self.inverse_patches)} inverse)"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format mapping."""
        return {
            KEY_FORWARD_PATCHES: [p.to_dict() for p in self.forward_patches],
            KEY_INVERSE_PATCHES: [p.to_dict() for p in self.inverse_patches],
            KEY_OPTION: self.option,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> HistoryEntry:
        """Build an entry from its wire format mapping.

        Raises:
            SnapshotFormatError: If the mapping is not a valid entry.
        """
        if not isinstance(data, Mapping):
            raise SnapshotFormatError(
                f"History entry must be a mapping, got {type(data).__name__}"
            )
        return cls(
            forward_patches=_patches_from_list(data, KEY_FORWARD_PATCHES),
            inverse_patches=_patches_from_list(data, KEY_INVERSE_PATCHES),
            option=data.get(KEY_OPTION),
        )


def _patches_from_list(data: Mapping[str, Any], key: str) -> tuple[Patch, ...]:
    raw = data.get(key)
    if not isinstance(raw, (list, tuple)):
        raise SnapshotFormatError(f"{key} must be a list, got {raw!r}")
    return tuple(Patch.from_dict(p) for p in raw)


def _entries_from_list(raw: Any, key: str) -> tuple[HistoryEntry, ...]:
    if not isinstance(raw, (list, tuple)):
        raise SnapshotFormatError(f"{key} must be a list, got {raw!r}")
    return tuple(
        entry if isinstance(entry, HistoryEntry) else HistoryEntry.from_dict(entry)
        for entry in raw
    )


@dataclass(frozen=True)
class Snapshot(Generic[StateT, OptionT]):
    """Full externally observable state of a history engine.

    The stacks are tuples, so a snapshot never changes after it is taken.
    `present` is held by reference.

    Attributes:
        present: The current value.
        undo_stack: Entries that can be undone, oldest first.
        redo_stack: Entries that can be redone, oldest first.
    """

    present: StateT
    undo_stack: tuple[HistoryEntry[OptionT], ...] = field(default_factory=tuple)
    redo_stack: tuple[HistoryEntry[OptionT], ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        present: StateT,
        undo_stack: Iterable[HistoryEntry[OptionT]] = (),
        redo_stack: Iterable[HistoryEntry[OptionT]] = (),
    ) -> Snapshot[StateT, OptionT]:
        """Build a snapshot, copying the given stacks into tuples."""
        return cls(present, tuple(undo_stack), tuple(redo_stack))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format mapping.

        Returns:
            {"present": ..., "history": {"undoStack": [...], "redoStack": [...]}}
        """
        return {
            KEY_PRESENT: self.present,
            KEY_HISTORY: {
                KEY_UNDO_STACK: [entry.to_dict() for entry in self.undo_stack],
                KEY_REDO_STACK: [entry.to_dict() for entry in self.redo_stack],
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Snapshot:
        """Build a snapshot from its wire format mapping.

        Stack items may already be HistoryEntry objects, so the mapping
        returned by to_dict() and a hand-assembled one are both accepted.

        Raises:
            SnapshotFormatError: If the mapping is not a valid snapshot.
        """
        if not isinstance(data, Mapping):
            raise SnapshotFormatError(f"Snapshot must be a mapping, got {type(data).__name__}")
        if KEY_PRESENT not in data:
            raise SnapshotFormatError("Snapshot has no 'present' value")

        history = data.get(KEY_HISTORY)
        if not isinstance(history, Mapping):
            raise SnapshotFormatError(f"Snapshot history must be a mapping, got {history!r}")

        return cls(
            present=data[KEY_PRESENT],
            undo_stack=_entries_from_list(history.get(KEY_UNDO_STACK), KEY_UNDO_STACK),
            redo_stack=_entries_from_list(history.get(KEY_REDO_STACK), KEY_REDO_STACK),
        )
