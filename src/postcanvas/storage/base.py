"""Storage protocol definition for postcanvas."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

DesignRecord = dict[str, Any]


@runtime_checkable
class DocumentStorage(Protocol):
    """Protocol defining the persistence interface for designs.

    Backends store point-in-time records produced by
    ``postcanvas.core.serialization.document_to_record``. Saving a record with
    an existing id replaces the stored one; the last save wins. Backend
    failures surface as ``PersistenceError`` and are never retried.
    """

    async def save(self, record: DesignRecord) -> DesignRecord:
        """Store a design record.

        Args:
            record: The record to store. It must carry an ``id``.

        Returns:
            A copy of the record as stored.

        Raises:
            PersistenceError: If the record cannot be stored.
        """
        ...

    async def load(self, document_id: str) -> DesignRecord:
        """Retrieve a design record by id.

        Args:
            document_id: Id of the design.

        Returns:
            A copy of the stored record.

        Raises:
            DocumentNotFoundError: If no design has that id.
            PersistenceError: If the retrieval fails.
        """
        ...

    async def list(self) -> list[DesignRecord]:
        """List stored designs, most recently updated first.

        Raises:
            PersistenceError: If the list operation fails.
        """
        ...

    async def delete(self, document_id: str) -> bool:
        """Delete a design record.

        Args:
            document_id: Id of the design.

        Returns:
            True if a record was deleted, False if none existed.

        Raises:
            PersistenceError: If the delete operation fails.
        """
        ...
