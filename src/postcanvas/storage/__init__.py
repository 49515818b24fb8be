"""Storage backends for postcanvas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from postcanvas.storage.base import DesignRecord, DocumentStorage
from postcanvas.storage.memory import InMemoryDocumentStorage

if TYPE_CHECKING:
    from postcanvas.storage.db import DatabaseDocumentStorage

__all__ = ["DatabaseDocumentStorage", "DesignRecord", "DocumentStorage", "InMemoryDocumentStorage"]


def __getattr__(name: str) -> object:
    """Lazy import DatabaseDocumentStorage so SQLAlchemy is only loaded when used."""
    if name == "DatabaseDocumentStorage":
        from postcanvas.storage.db import DatabaseDocumentStorage

        return DatabaseDocumentStorage
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
