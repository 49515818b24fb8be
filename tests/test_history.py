"""Tests for the document undo history."""

from __future__ import annotations

from postcanvas.core.history import DocumentHistory
from postcanvas.core.models import Document, TextElement


class TestDocumentHistory:
    """Tests for DocumentHistory."""

    def test_empty(self) -> None:
        """Test a fresh history."""
        history = DocumentHistory()
        assert not history.can_undo()
        assert not history.can_redo()
        assert history.undo(Document()) is None
        assert history.redo(Document()) is None

    def test_record_snapshots(self) -> None:
        """Test that recorded states are copies, not references."""
        history = DocumentHistory()
        document = Document(name="before")
        history.record(document)
        document.name = "after"

        restored = history.undo(document)
        assert restored is not None
        assert restored.name == "before"

    def test_undo_then_redo(self) -> None:
        """Test that undo keeps the current state for redo."""
        history = DocumentHistory()
        current = Document(elements=[TextElement(id="a")])
        history.record(Document())

        previous = history.undo(current)
        assert previous is not None
        assert previous.elements == []
        assert history.redo_count == 1

        redone = history.redo(previous)
        assert redone is not None
        assert redone.element_ids == ["a"]
        assert history.undo_count == 1

    def test_record_clears_redo(self) -> None:
        """Test that a new record invalidates redo."""
        history = DocumentHistory()
        history.record(Document())
        history.undo(Document())
        history.record(Document())
        assert not history.can_redo()

    def test_max_history(self) -> None:
        """Test that the oldest states are dropped past the limit."""
        history = DocumentHistory(max_history=2)
        for name in ("one", "two", "three"):
            history.record(Document(name=name))
        assert history.undo_count == 2
        assert history.undo(Document()).name == "three"
        assert history.undo(Document()).name == "two"
        assert history.undo(Document()) is None

    def test_clear(self) -> None:
        """Test clearing both stacks."""
        history = DocumentHistory()
        history.record(Document())
        history.undo(Document())
        history.record(Document())
        history.clear()
        assert history.undo_count == 0
        assert history.redo_count == 0
