"""Snapshot history for undo/redo within one editing session."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from postcanvas.core.models import Document


class DocumentHistory:
    """Manages document snapshots for undo/redo functionality.

    Snapshots are stored in two stacks:
    - undo_stack: States the document can be rolled back to
    - redo_stack: States that were undone and can be restored again

    Every snapshot is a deep copy, so later edits to the live document never
    leak into the history.

    Attributes:
        max_history: Maximum number of snapshots kept on the undo stack.
    """

    def __init__(self, max_history: int = 100) -> None:
        """Initialize the history.

        Args:
            max_history: Maximum number of snapshots to keep.
        """
        self.max_history = max_history
        self._undo_stack: list[Document] = []
        self._redo_stack: list[Document] = []

    def record(self, state: Document) -> None:
        """Store the state a document had before a mutation.

        This clears the redo stack since new edits invalidate any previously
        undone states.

        Args:
            state: The document as it was before the change.
        """
        self._undo_stack.append(copy.deepcopy(state))
        self._redo_stack.clear()

        if len(self._undo_stack) > self.max_history:
            self._undo_stack.pop(0)

    def undo(self, current: Document) -> Document | None:
        """Step back one state.

        Args:
            current: The live document, kept so the step can be redone.

        Returns:
            The previous state, or None if there is nothing to undo.
        """
        if not self._undo_stack:
            return None
        self._redo_stack.append(copy.deepcopy(current))
        return self._undo_stack.pop()

    def redo(self, current: Document) -> Document | None:
        """Step forward one previously undone state.

        Args:
            current: The live document, kept so the step can be undone again.

        Returns:
            The restored state, or None if there is nothing to redo.
        """
        if not self._redo_stack:
            return None
        self._undo_stack.append(copy.deepcopy(current))
        return self._redo_stack.pop()

    def can_undo(self) -> bool:
        """Check if there are states to undo."""
        return len(self._undo_stack) > 0

    def can_redo(self) -> bool:
        """Check if there are states to redo."""
        return len(self._redo_stack) > 0

    def clear(self) -> None:
        """Clear all history."""
        self._undo_stack.clear()
        self._redo_stack.clear()

    @property
    def undo_count(self) -> int:
        """Number of states that can be undone."""
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        """Number of states that can be redone."""
        return len(self._redo_stack)
