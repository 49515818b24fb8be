"""Database storage implementation for postcanvas."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from postcanvas.exceptions import DocumentNotFoundError, PersistenceError
from postcanvas.storage.db.models import DesignModel, apply_record, record_from_model

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from postcanvas.storage.base import DesignRecord

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager["AsyncSession"]]


class DatabaseDocumentStorage:
    """Async database storage implementation using SQLAlchemy.

    Each call runs in its own session obtained from ``session_factory``
    (typically ``DatabaseManager.session``), which commits on success.
    SQLAlchemy errors are reported as ``PersistenceError``.

    Attributes:
        _session_factory: Callable returning an async session context manager.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        """Initialize the database storage.

        Args:
            session_factory: Callable returning an async context manager that
                yields an ``AsyncSession``.
        """
        self._session_factory = session_factory

    async def _get_model(self, session: AsyncSession, document_id: str) -> DesignModel | None:
        stmt = select(DesignModel).where(DesignModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, record: DesignRecord) -> DesignRecord:
        """Insert or replace a design record.

        Args:
            record: The record to store.

        Returns:
            The record as stored.

        Raises:
            PersistenceError: If the record has no id or the database fails.
        """
        document_id = record.get("id")
        if not document_id:
            msg = "Design record has no id"
            raise PersistenceError(msg)
        try:
            async with self._session_factory() as session:
                model = await self._get_model(session, str(document_id))
                if model is None:
                    model = DesignModel()
                    session.add(model)
                apply_record(model, record)
                await session.flush()
                await session.refresh(model)
                stored = record_from_model(model)
        except SQLAlchemyError as exc:
            logger.error("Design save failed", document_id=document_id, error=str(exc))
            msg = f"Could not save design {document_id}"
            raise PersistenceError(msg) from exc
        return stored

    async def load(self, document_id: str) -> DesignRecord:
        """Retrieve a design record by id.

        Args:
            document_id: Id of the design.

        Returns:
            The stored record.

        Raises:
            DocumentNotFoundError: If no design has that id.
            PersistenceError: If the database fails.
        """
        try:
            async with self._session_factory() as session:
                model = await self._get_model(session, document_id)
                record = None if model is None else record_from_model(model)
        except SQLAlchemyError as exc:
            msg = f"Could not load design {document_id}"
            raise PersistenceError(msg) from exc
        if record is None:
            raise DocumentNotFoundError(document_id)
        return record

    async def list(self) -> list[DesignRecord]:
        """List stored designs, most recently updated first.

        Raises:
            PersistenceError: If the database fails.
        """
        try:
            async with self._session_factory() as session:
                stmt = select(DesignModel).order_by(DesignModel.updated_at.desc())
                result = await session.execute(stmt)
                return [record_from_model(model) for model in result.scalars().all()]
        except SQLAlchemyError as exc:
            msg = "Could not list designs"
            raise PersistenceError(msg) from exc

    async def delete(self, document_id: str) -> bool:
        """Delete a design record.

        Args:
            document_id: Id of the design.

        Returns:
            True if a record was deleted, False if none existed.

        Raises:
            PersistenceError: If the database fails.
        """
        try:
            async with self._session_factory() as session:
                model = await self._get_model(session, document_id)
                if model is None:
                    return False
                await session.delete(model)
                await session.flush()
                return True
        except SQLAlchemyError as exc:
            msg = f"Could not delete design {document_id}"
            raise PersistenceError(msg) from exc
