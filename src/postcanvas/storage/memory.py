"""In-memory storage implementation for postcanvas."""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING

from postcanvas.exceptions import DocumentNotFoundError, PersistenceError

if TYPE_CHECKING:
    from postcanvas.storage.base import DesignRecord


class InMemoryDocumentStorage:
    """Thread-safe in-memory storage implementation.

    Records are deep-copied on the way in and on the way out, so callers can
    never modify stored data through a reference they hold.

    Note:
        All data is lost when the application stops. This storage is suitable for
        development, testing, or ephemeral sessions.

    Attributes:
        _records: Internal dictionary mapping design ids to records.
        _lock: Asyncio lock for thread-safe operations.
    """

    def __init__(self) -> None:
        """Initialize the in-memory storage with an empty record dictionary."""
        self._records: dict[str, DesignRecord] = {}
        self._lock = asyncio.Lock()

    async def save(self, record: DesignRecord) -> DesignRecord:
        """Store a design record, replacing any record with the same id.

        Args:
            record: The record to store.

        Returns:
            A copy of the stored record.

        Raises:
            PersistenceError: If the record has no id.
        """
        document_id = record.get("id")
        if not document_id:
            msg = "Design record has no id"
            raise PersistenceError(msg)
        async with self._lock:
            self._records[str(document_id)] = copy.deepcopy(record)
            return copy.deepcopy(record)

    async def load(self, document_id: str) -> DesignRecord:
        """Retrieve a design record by id.

        Args:
            document_id: Id of the design.

        Returns:
            A copy of the stored record.

        Raises:
            DocumentNotFoundError: If no design has that id.
        """
        async with self._lock:
            record = self._records.get(document_id)
            if record is None:
                raise DocumentNotFoundError(document_id)
            return copy.deepcopy(record)

    async def list(self) -> list[DesignRecord]:
        """List stored designs, most recently updated first."""
        async with self._lock:
            records = [copy.deepcopy(record) for record in self._records.values()]
        return sorted(records, key=lambda r: r.get("updated_at") or "", reverse=True)

    async def delete(self, document_id: str) -> bool:
        """Delete a design record.

        Args:
            document_id: Id of the design.

        Returns:
            True if a record was deleted, False if none existed.
        """
        async with self._lock:
            return self._records.pop(document_id, None) is not None
