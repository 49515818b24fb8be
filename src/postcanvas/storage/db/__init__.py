"""Database storage backend for postcanvas.

This module provides SQLAlchemy-based persistent storage for design records.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from postcanvas.storage.db.models import DesignModel
    from postcanvas.storage.db.setup import DatabaseManager
    from postcanvas.storage.db.storage import DatabaseDocumentStorage

__all__ = [
    "DatabaseDocumentStorage",
    "DatabaseManager",
    "DesignModel",
]


def __getattr__(name: str) -> object:
    """Lazy import database components."""
    if name == "DatabaseDocumentStorage":
        from postcanvas.storage.db.storage import DatabaseDocumentStorage

        return DatabaseDocumentStorage
    if name == "DesignModel":
        from postcanvas.storage.db.models import DesignModel

        return DesignModel
    if name == "DatabaseManager":
        from postcanvas.storage.db.setup import DatabaseManager

        return DatabaseManager
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
