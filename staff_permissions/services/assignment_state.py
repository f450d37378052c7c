"""
Assignment state: the saved baseline and the pending selection derived from it
"""
from typing import FrozenSet, Iterable, Set, Tuple


class AssignmentState:
    """Baseline (granted) ids plus the working selection being edited."""

    def __init__(self, baseline: Iterable[int] = ()):
        self.baseline: FrozenSet[int] = frozenset()
        self._selection: Set[int] = set()
        self.initialize(baseline)

    def initialize(self, baseline: Iterable[int]) -> None:
        self.baseline = frozenset(baseline)
        self._selection = set(self.baseline)

    def toggle(self, permission_id: int) -> bool:
        """Flip membership of `permission_id`; returns whether it is now selected."""
        if permission_id in self._selection:
            self._selection.discard(permission_id)
            return False
        self._selection.add(permission_id)
        return True

    def is_selected(self, permission_id: int) -> bool:
        return permission_id in self._selection

    def count_selected(self) -> int:
        return len(self._selection)

    @property
    def selection(self) -> FrozenSet[int]:
        """Snapshot of the current selection"""
        return frozenset(self._selection)

    def reset(self) -> None:
        """Discard unsaved edits."""
        self._selection = set(self.baseline)

    def commit(self, saved: Iterable[int]) -> None:
        """Make `saved` the new baseline after a successful save.

        The selection is kept as is, so toggles made while the save was in
        flight stay pending.
        """
        self.baseline = frozenset(saved)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._selection != self.baseline

    def pending_changes(self) -> Tuple[FrozenSet[int], FrozenSet[int]]:
        """Return (added, removed) relative to the baseline"""
        added = frozenset(self._selection - self.baseline)
        removed = frozenset(self.baseline - self._selection)
        return added, removed
