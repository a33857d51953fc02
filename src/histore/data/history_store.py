"""Observable store backed by a history engine.

HistoryStore exposes the engine's present value as the store's visible
state and routes every state change through the engine, so each change is
undoable. Observers are notified after any operation that changed the
state, before control returns to the caller.

Usage:
    store = HistoryStore({"count": 0})
    store.add_observer(lambda state, previous: print(state))

    store.set_state({"count": 5})
    store.temporal.undo()          # state is {"count": 0} again

    with store.temporal.transaction({"name": "bulk"}):
        store.set_state(lambda draft: draft.update(count=1))
        store.set_state(lambda draft: draft.update(count=2))
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from ..debug_trace import logger
from ..models.draft_builder import Recipe
from ..models.history_entry import HistoryEntry, Snapshot
from .history_core import HistoryCore

StateT = TypeVar("StateT")
OptionT = TypeVar("OptionT")

Observer = Callable[[Any, Any], None]
StateCreator = Callable[[Callable[..., None]], Any]


def _merge_recipe(partial: Mapping[str, Any]) -> Recipe:
    """Build a recipe that shallow-merges partial into a mapping state."""

    def recipe(state: Any) -> Any:
        if not isinstance(state, Mapping):
            raise TypeError(
                f"Cannot merge a partial mapping into {type(state).__name__} state; "
                "pass a recipe instead"
            )
        return {**state, **partial}

    return recipe


class HistoryStore(Generic[StateT, OptionT]):
    """Observable state container with undo/redo.

    The store never mutates its visible state directly; every change goes
    through HistoryCore.set() and the resulting present value is published
    to observers.
    """

    def __init__(self, initial: StateT | StateCreator):
        """Initialize the store.

        Args:
            initial: The initial state, or a creator callable. A creator
                     receives the store's set_state and returns the initial
                     state, so it can close over set_state for its own
                     action functions.
        """
        self._observers: list[Observer] = []
        # Placeholder engine so set_state calls from a creator have a target
        self._core: HistoryCore[Any, OptionT] = HistoryCore({})
        self._state: Any = self._core.present

        if callable(initial):
            initial_state = initial(self.set_state)
        else:
            initial_state = initial

        # History recorded by the creator is dropped; the store starts clean
        self._core.import_state(Snapshot.create(initial_state))
        self._state = self._core.present
        self._temporal = TemporalApi(self)

    @property
    def core(self) -> HistoryCore[StateT, OptionT]:
        """Get the underlying history engine."""
        return self._core

    @property
    def temporal(self) -> TemporalApi[StateT, OptionT]:
        """Get the restricted history API."""
        return self._temporal

    # --- State ---

    def get_state(self) -> StateT:
        """Get the visible state."""
        return self._state

    def set_state(
        self,
        partial: Mapping[str, Any] | Recipe,
        option: OptionT | None = None,
    ) -> None:
        """Change the state through the history engine.

        Args:
            partial: A recipe callable (edits a draft or returns a new state),
                     or a mapping shallow-merged into the current state.
            option: Metadata for the history entry.
        """
        recipe = partial if callable(partial) else _merge_recipe(partial)
        self._core.set(recipe, option)
        self._publish()

    # --- Observers ---

    def add_observer(self, callback: Observer) -> None:
        """Add observer callback, called as callback(state, previous_state)."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Observer) -> None:
        """Remove observer callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Add an observer and return a function that removes it."""
        self.add_observer(callback)
        return lambda: self.remove_observer(callback)

    def _publish(self) -> None:
        """Copy the engine's present into the visible state and notify."""
        previous = self._state
        current = self._core.present
        if current is previous:
            return

        self._state = current
        for callback in list(self._observers):
            try:
                callback(current, previous)
            except Exception:
                # Don't let one observer's error break others
                logger.exception(f"Observer {callback!r} failed")


class TemporalApi(Generic[StateT, OptionT]):
    """History operations a host may call on a HistoryStore.

    Every operation that can change the state publishes it before
    returning.
    """

    def __init__(self, store: HistoryStore[StateT, OptionT]):
        self._store = store
        self._core = store.core

    def undo(self) -> bool:
        result = self._core.undo()
        self._store._publish()
        return result

    def redo(self) -> bool:
        result = self._core.redo()
        self._store._publish()
        return result

    def begin_transaction(self, option: OptionT | None = None) -> bool:
        return self._core.begin_transaction(option)

    def end_transaction(self) -> bool:
        result = self._core.end_transaction()
        self._store._publish()
        return result

    def rollback_transaction(self) -> bool:
        result = self._core.rollback_transaction()
        self._store._publish()
        return result

    @contextmanager
    def transaction(self, option: OptionT | None = None) -> Generator[TemporalApi, None, None]:
        """Batch state changes into one undo step; see HistoryCore.transaction."""
        try:
            with self._core.transaction(option):
                yield self
        finally:
            self._store._publish()

    def clear_history(self) -> None:
        self._core.clear_history()

    def export_state(self) -> Snapshot[StateT, OptionT]:
        return self._core.export_state()

    def import_state(
        self,
        snapshot: Snapshot[StateT, OptionT] | Mapping[str, Any],
        validate: bool = False,
    ) -> None:
        self._core.import_state(snapshot, validate=validate)
        self._store._publish()

    def can_undo(self) -> bool:
        return self._core.can_undo()

    def can_redo(self) -> bool:
        return self._core.can_redo()

    @property
    def undo_stack(self) -> tuple[HistoryEntry[OptionT], ...]:
        """Read-only view of the undo stack."""
        return self._core.undo_stack

    @property
    def redo_stack(self) -> tuple[HistoryEntry[OptionT], ...]:
        """Read-only view of the redo stack."""
        return self._core.redo_stack
