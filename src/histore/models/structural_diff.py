"""Structural diff and patch application for JSON-like values.

Values are dicts, lists and scalars. Any value that is not a dict or list is
treated as a scalar and replaced wholesale, including tuples and sets. Dict
keys that change must be str, since patch paths hold only str keys and int
list indices.

    forward, inverse = diff_values(old, new)
    apply_patches(old, forward) == new
    apply_patches(new, inverse) == old

Neither function mutates its inputs. apply_patches copies each container
along a patch's path before changing it, so unchanged subtrees are shared
between the old and new values.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from ..errors import PatchApplicationError, UnsupportedKeyError
from .constants import CONTAINER_TYPES, PatchOp
from .patch import Patch, Path, format_path

# ==============================================================================
# Diff
# ==============================================================================


def values_equal(a: Any, b: Any) -> bool:
    """Strict structural equality.

    Unlike ==, scalars must also match in type, so 1, 1.0 and True are all
    different values.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if isinstance(a, list):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


def _child_path(path: Path, key: Any) -> Path:
    # bool is an int subclass but does not survive the wire format as a key
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise UnsupportedKeyError(
            f"Dict key {key!r} at {format_path(path)} is {type(key).__name__}; "
            "changed keys must be str or int"
        )
    return path + (key,)


def _record(patch: Patch, previous: Any, forward: list[Patch], inverse: list[Patch]) -> None:
    """Append patch and the inverse that restores previous."""
    forward.append(patch)
    inverse.append(patch.inverted(copy.deepcopy(previous)))


def _collect(old: Any, new: Any, path: Path, forward: list[Patch], inverse: list[Patch]) -> None:
    """Append patches turning old into new; inverse is built in forward order."""
    if values_equal(old, new):
        return

    if type(old) is not type(new) or not isinstance(old, CONTAINER_TYPES):
        _record(Patch(PatchOp.REPLACE, path, copy.deepcopy(new)), old, forward, inverse)
        return

    if isinstance(old, dict):
        for key in old:
            if key not in new:
                patch = Patch(PatchOp.REMOVE, _child_path(path, key))
                _record(patch, old[key], forward, inverse)
        for key in new:
            if key not in old:
                patch = Patch(PatchOp.ADD, _child_path(path, key), copy.deepcopy(new[key]))
                _record(patch, None, forward, inverse)
        for key in old:
            if key in new and not values_equal(old[key], new[key]):
                _collect(old[key], new[key], _child_path(path, key), forward, inverse)
        return

    # Lists: element-wise over the shared prefix, then grow or shrink the tail
    common = min(len(old), len(new))
    for index in range(common):
        _collect(old[index], new[index], path + (index,), forward, inverse)

    for index in range(common, len(new)):
        patch = Patch(PatchOp.ADD, path + (index,), copy.deepcopy(new[index]))
        _record(patch, None, forward, inverse)

    # Remove from the end so earlier indices stay valid
    for index in range(len(old) - 1, common - 1, -1):
        _record(Patch(PatchOp.REMOVE, path + (index,)), old[index], forward, inverse)


def diff_values(old: Any, new: Any) -> tuple[list[Patch], list[Patch]]:
    """Compute forward and inverse patches between two values.

    Args:
        old: The value before the change.
        new: The value after the change.

    Returns:
        Tuple of (forward, inverse). Both are empty if the values are equal.
        The inverse list undoes the most recent forward patch first.

    Raises:
        UnsupportedKeyError: If an added, removed or changed dict key is not
                             a str or int.
    """
    forward: list[Patch] = []
    inverse: list[Patch] = []
    _collect(old, new, (), forward, inverse)
    inverse.reverse()
    return forward, inverse


# ==============================================================================
# Apply
# ==============================================================================


def _check_index(patch: Patch, container: list, key: Any, allow_end: bool) -> int:
    if isinstance(key, bool) or not isinstance(key, int):
        raise PatchApplicationError(patch, f"list index must be an int, got {key!r}")
    limit = len(container) + (1 if allow_end else 0)
    if not 0 <= key < limit:
        raise PatchApplicationError(
            patch, f"list index {key} out of range for length {len(container)}"
        )
    return key


def _shallow_copy(patch: Patch, node: Any, depth: int) -> dict | list:
    if isinstance(node, dict):
        return dict(node)
    if isinstance(node, list):
        return list(node)
    raise PatchApplicationError(
        patch, f"cannot descend into {type(node).__name__} at depth {depth}"
    )


def _apply_at(node: Any, patch: Patch, depth: int) -> Any:
    """Return a copy of node with patch applied below it."""
    path = patch.path
    if depth == len(path):
        # Only reached for root patches
        if patch.op is not PatchOp.REPLACE:
            raise PatchApplicationError(patch, "only 'replace' can target the root")
        return copy.deepcopy(patch.value)

    key = path[depth]
    container = _shallow_copy(patch, node, depth)
    is_last = depth == len(path) - 1

    if not is_last:
        if isinstance(container, dict):
            if key not in container:
                raise PatchApplicationError(patch, f"key {key!r} does not exist")
        else:
            key = _check_index(patch, container, key, allow_end=False)
        container[key] = _apply_at(container[key], patch, depth + 1)
        return container

    if isinstance(container, dict):
        if patch.op is PatchOp.ADD:
            container[key] = copy.deepcopy(patch.value)
        elif key not in container:
            raise PatchApplicationError(patch, f"key {key!r} does not exist")
        elif patch.op is PatchOp.REMOVE:
            del container[key]
        else:
            container[key] = copy.deepcopy(patch.value)
        return container

    if patch.op is PatchOp.ADD:
        index = _check_index(patch, container, key, allow_end=True)
        container.insert(index, copy.deepcopy(patch.value))
    elif patch.op is PatchOp.REMOVE:
        index = _check_index(patch, container, key, allow_end=False)
        del container[index]
    else:
        index = _check_index(patch, container, key, allow_end=False)
        container[index] = copy.deepcopy(patch.value)
    return container


def apply_patches(value: Any, patches: Iterable[Patch]) -> Any:
    """Apply patches in order and return the resulting value.

    The input value is never modified. If any patch fails, the exception
    propagates and no partially patched value escapes.

    Args:
        value: The value to patch.
        patches: Patches to apply, in order.

    Returns:
        The patched value (the input itself if there are no patches).

    Raises:
        PatchApplicationError: If a patch path does not exist in the value.
    """
    result = value
    for patch in patches:
        result = _apply_at(result, patch, 0)
    return result
