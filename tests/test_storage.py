"""Tests for the in-memory storage layer."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from postcanvas.core.models import Document
from postcanvas.core.serialization import document_from_record, document_to_record
from postcanvas.exceptions import DocumentNotFoundError, PersistenceError
from postcanvas.storage.base import DocumentStorage
from postcanvas.storage.memory import InMemoryDocumentStorage


def _record(document_id: str, minutes_ago: int = 0) -> dict:
    stamp = datetime(2024, 12, 27, 10, 0, tzinfo=UTC) - timedelta(minutes=minutes_ago)
    return document_to_record(Document(id=document_id, name=document_id.title()), updated_at=stamp)


class TestInMemoryDocumentStorage:
    """Tests for InMemoryDocumentStorage."""

    def test_satisfies_protocol(self, storage: InMemoryDocumentStorage) -> None:
        """Test that the storage implements DocumentStorage."""
        assert isinstance(storage, DocumentStorage)

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage: InMemoryDocumentStorage, sample_document: Document) -> None:
        """Test saving a record and loading it back."""
        record = document_to_record(sample_document)
        stored = await storage.save(record)

        loaded = await storage.load("doc-1")
        assert stored == record
        assert loaded == record
        assert document_from_record(loaded) == sample_document

    @pytest.mark.asyncio
    async def test_load_missing(self, storage: InMemoryDocumentStorage) -> None:
        """Test that loading an unknown id raises DocumentNotFoundError."""
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await storage.load("missing")
        assert exc_info.value.document_id == "missing"
        assert isinstance(exc_info.value, PersistenceError)

    @pytest.mark.asyncio
    async def test_save_without_id(self, storage: InMemoryDocumentStorage) -> None:
        """Test that a record without id is rejected."""
        with pytest.raises(PersistenceError):
            await storage.save({"name": "No id"})

    @pytest.mark.asyncio
    async def test_save_replaces(self, storage: InMemoryDocumentStorage) -> None:
        """Test that the last save of an id wins."""
        first = _record("promo")
        second = {**_record("promo"), "name": "Renamed"}
        await storage.save(first)
        await storage.save(second)

        assert (await storage.load("promo"))["name"] == "Renamed"
        assert len(await storage.list()) == 1

    @pytest.mark.asyncio
    async def test_records_are_copied(self, storage: InMemoryDocumentStorage, sample_document: Document) -> None:
        """Test that callers cannot modify stored data through references."""
        record = document_to_record(sample_document)
        stored = await storage.save(record)

        record["elements"][0]["x"] = 1
        stored["name"] = "Changed"
        loaded = await storage.load("doc-1")
        loaded["elements"].clear()

        again = await storage.load("doc-1")
        assert again["elements"][0]["x"] == 540
        assert again["name"] == "Summer Sale"

    @pytest.mark.asyncio
    async def test_list_most_recent_first(self, storage: InMemoryDocumentStorage) -> None:
        """Test that designs are listed by update time, newest first."""
        await storage.save(_record("old", minutes_ago=30))
        await storage.save(_record("new", minutes_ago=0))
        await storage.save(_record("middle", minutes_ago=10))

        assert [r["id"] for r in await storage.list()] == ["new", "middle", "old"]

    @pytest.mark.asyncio
    async def test_list_empty(self, storage: InMemoryDocumentStorage) -> None:
        """Test listing an empty storage."""
        assert await storage.list() == []

    @pytest.mark.asyncio
    async def test_delete(self, storage: InMemoryDocumentStorage) -> None:
        """Test deleting a record."""
        await storage.save(_record("promo"))

        assert await storage.delete("promo") is True
        assert await storage.delete("promo") is False
        with pytest.raises(DocumentNotFoundError):
            await storage.load("promo")

    @pytest.mark.asyncio
    async def test_concurrent_saves(self, storage: InMemoryDocumentStorage) -> None:
        """Test that concurrent saves of different ids all land."""
        await asyncio.gather(*(storage.save(_record(f"design-{i}", minutes_ago=i)) for i in range(10)))
        assert len(await storage.list()) == 10
