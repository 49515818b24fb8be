"""SQLAlchemy models for postcanvas database storage."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from advanced_alchemy.base import UUIDAuditBase
from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column


class DesignModel(UUIDAuditBase):
    """SQLAlchemy model for saved designs.

    The element list and the background are stored as JSON columns exactly as
    they appear in the persisted record, so fields this version does not know
    about survive a save.

    Attributes:
        id: UUID primary key (from UUIDAuditBase).
        document_id: Id of the design as used by editors and the API.
        name: Display name of the design.
        platform: Platform id the design is sized for.
        elements: Element mappings in back-to-front order.
        background: Tagged background mapping.
        extra: Top-level record keys without a column of their own.
        created_at: Creation timestamp (from UUIDAuditBase).
        updated_at: Last save timestamp (from UUIDAuditBase).
    """

    __tablename__ = "designs"

    document_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), default="Untitled Design")
    platform: Mapped[str] = mapped_column(String(64), index=True)
    elements: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    background: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)


_RECORD_COLUMNS = ("id", "name", "platform", "elements", "background", "updated_at")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(UTC)


def apply_record(model: DesignModel, record: dict[str, Any]) -> DesignModel:
    """Copy a persisted record onto a model instance.

    Args:
        model: The model to update (new or loaded).
        record: The design record.

    Returns:
        The same model, for chaining.
    """
    model.document_id = str(record["id"])
    model.name = record.get("name") or "Untitled Design"
    model.platform = record["platform"]
    model.elements = list(record.get("elements") or [])
    model.background = dict(record.get("background") or {})
    model.updated_at = _parse_timestamp(record.get("updated_at"))
    model.extra = {key: value for key, value in record.items() if key not in _RECORD_COLUMNS}
    return model


def record_from_model(model: DesignModel) -> dict[str, Any]:
    """Convert a DesignModel back to a persisted record.

    Args:
        model: The database model instance.

    Returns:
        The design record.
    """
    updated_at = model.updated_at
    if updated_at is not None and updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    return {
        **(model.extra or {}),
        "id": model.document_id,
        "name": model.name,
        "platform": model.platform,
        "elements": list(model.elements or []),
        "background": dict(model.background or {}),
        "updated_at": updated_at.isoformat() if updated_at else None,
    }
