# ==============================================================================
# Patch Operations
# ==============================================================================

from enum import Enum


class PatchOp(str, Enum):
    """Structural change kinds. Values are the wire names."""

    ADD = "add"  # Insert list index / set new dict key
    REMOVE = "remove"  # Delete list index / dict key
    REPLACE = "replace"  # Overwrite existing list index / dict key / root


# Inverse of each op, when recorded against the value before the change
INVERSE_OPS: dict[PatchOp, PatchOp] = {
    PatchOp.ADD: PatchOp.REMOVE,
    PatchOp.REMOVE: PatchOp.ADD,
    PatchOp.REPLACE: PatchOp.REPLACE,
}

# Containers that are diffed and patched structurally.
# Anything else is an opaque scalar replaced wholesale.
CONTAINER_TYPES: tuple[type, ...] = (dict, list)


# ==============================================================================
# Snapshot Wire Format
# ==============================================================================

KEY_PRESENT = "present"
KEY_HISTORY = "history"
KEY_UNDO_STACK = "undoStack"
KEY_REDO_STACK = "redoStack"
KEY_FORWARD_PATCHES = "forwardPatches"
KEY_INVERSE_PATCHES = "inversePatches"
KEY_OPTION = "option"
KEY_OP = "op"
KEY_PATH = "path"
KEY_VALUE = "value"
