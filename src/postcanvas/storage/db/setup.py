"""Engine and session lifecycle for the design database."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from postcanvas.storage.db.models import DesignModel

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

_ASYNC_DRIVERS = (
    ("sqlite:///", "sqlite+aiosqlite:///"),
    ("postgres://", "postgresql+asyncpg://"),
    ("postgresql://", "postgresql+asyncpg://"),
)


def get_database_url() -> str:
    """Read ``DATABASE_URL`` and pick an async driver for it.

    Plain ``sqlite://`` and ``postgres(ql)://`` URLs, as most hosts hand them
    out, are rewritten to ``aiosqlite`` and ``asyncpg``. Without the variable
    designs go to ``data/postcanvas.db``.
    """
    url = os.environ.get("DATABASE_URL", "")
    if not url:
        Path("data").mkdir(exist_ok=True)
        return "sqlite+aiosqlite:///data/postcanvas.db"

    for prefix, replacement in _ASYNC_DRIVERS:
        if url.startswith(prefix):
            return replacement + url[len(prefix) :]
    return url


class DatabaseManager:
    """Owns the engine behind ``DatabaseDocumentStorage``.

    ``init`` creates the engine and the designs table, ``session`` hands out
    transactional sessions and ``close`` disposes of the pool. ``create_app``
    runs ``init`` and ``close`` from its lifespan.
    """

    def __init__(self, url: str | None = None) -> None:
        """Initialize the manager.

        Args:
            url: Database URL. If None, ``get_database_url()`` is used on init.
        """
        self._url = url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        """Connect and create the designs table if it is missing."""
        url = self._url or get_database_url()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self._engine = create_async_engine(
            url,
            echo=os.environ.get("DATABASE_ECHO", "").lower() == "true",
            connect_args=connect_args,
        )
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

        async with self._engine.begin() as conn:
            await conn.run_sync(UUIDAuditBase.metadata.create_all, tables=[DesignModel.__table__])

    async def close(self) -> None:
        """Dispose of the engine; a later ``init`` reconnects."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @property
    def engine(self) -> AsyncEngine:
        """The live engine.

        Raises:
            RuntimeError: If ``init`` has not run.
        """
        if self._engine is None:
            msg = "Database not initialized. Call init() first."
            raise RuntimeError(msg)
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on success and rolls back on error.

        Raises:
            RuntimeError: If ``init`` has not run.
        """
        if self._session_factory is None:
            msg = "Database not initialized. Call init() first."
            raise RuntimeError(msg)

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
