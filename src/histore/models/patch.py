"""Patch data model.

Contains the Patch frozen dataclass and path formatting helpers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import SnapshotFormatError
from .constants import INVERSE_OPS, KEY_OP, KEY_PATH, KEY_VALUE, PatchOp

PathKey = str | int
Path = tuple[PathKey, ...]


def format_path(path: Path) -> str:
    """Format a patch path for display.

    Examples:
        () -> "/"
        ("nested", "arr", 0) -> "/nested/arr/0"
    """
    if not path:
        return "/"
    return "".join(f"/{key}" for key in path)


@dataclass(frozen=True)
class Patch:
    """One structural change to a value.

    Attributes:
        op: What the change does.
        path: Keys/indices from the root to the changed location.
              An empty path addresses the root itself.
        value: New value for ADD/REPLACE. Unused for REMOVE.
    """

    op: PatchOp
    path: Path
    value: Any = None

    def __repr__(self) -> str:
        if self.op is PatchOp.REMOVE:
            return f"Patch({self.op.value} {format_path(self.path)})"
        return f"Patch({self.op.value} {format_path(self.path)} = {self.value!r})"

    def inverted(self, previous: Any = None) -> Patch:
        """Build the patch that undoes this one.

        Args:
            previous: The value at path before this patch was applied
                      (ignored for ADD, which inverts to a REMOVE).

        Returns:
            New Patch reversing this change.
        """
        inverse_op = INVERSE_OPS[self.op]
        if inverse_op is PatchOp.REMOVE:
            return Patch(inverse_op, self.path)
        return Patch(inverse_op, self.path, previous)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format mapping."""
        data: dict[str, Any] = {KEY_OP: self.op.value, KEY_PATH: list(self.path)}
        if self.op is not PatchOp.REMOVE:
            data[KEY_VALUE] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Patch:
        """Build a Patch from its wire format mapping.

        Raises:
            SnapshotFormatError: If the mapping is not a valid patch.
        """
        if not isinstance(data, Mapping):
            raise SnapshotFormatError(f"Patch must be a mapping, got {type(data).__name__}")
        try:
            op = PatchOp(data[KEY_OP])
        except (KeyError, ValueError) as e:
            raise SnapshotFormatError(f"Invalid patch op in {dict(data)!r}") from e

        raw_path = data.get(KEY_PATH)
        if not isinstance(raw_path, (list, tuple)):
            raise SnapshotFormatError(f"Patch path must be a list, got {raw_path!r}")
        for key in raw_path:
            if isinstance(key, bool) or not isinstance(key, (str, int)):
                raise SnapshotFormatError(f"Invalid path key {key!r} in {list(raw_path)!r}")

        if op is not PatchOp.REMOVE and KEY_VALUE not in data:
            raise SnapshotFormatError(f"Patch {op.value} at {list(raw_path)!r} has no value")

        return cls(op, tuple(raw_path), data.get(KEY_VALUE))
