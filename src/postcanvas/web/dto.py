"""Data Transfer Objects (DTOs) for the postcanvas API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from postcanvas.core.render import FilledShape, ImageRect, TextRun
from postcanvas.core.serialization import background_to_dict, document_to_record, element_to_dict

if TYPE_CHECKING:
    from postcanvas.core.models import CanvasElement, PlatformSize, Template
    from postcanvas.core.render import Primitive, RenderDescription
    from postcanvas.services.design import EditingSession
    from postcanvas.storage.base import DesignRecord


# Session DTOs


@dataclass
class CreateSessionDTO:
    """DTO for opening an editing session.

    Attributes:
        platform_id: Platform to size the canvas for; the server default if omitted.
        name: Design name.
    """

    platform_id: str | None = None
    name: str | None = None


@dataclass
class RenameDTO:
    """DTO for renaming a design."""

    name: str


@dataclass
class SetPlatformDTO:
    """DTO for switching a session's platform. Clears the canvas."""

    platform_id: str


@dataclass
class LoadTemplateDTO:
    """DTO for loading a template into a session."""

    template_id: str


@dataclass
class SessionResponseDTO:
    """DTO for session responses.

    Attributes:
        id: Session identifier.
        document: The document in its persisted record format.
        selected_id: Id of the selected element, if any.
        template_id: Id of the last loaded template, if any.
        can_undo: Whether an undo step is available.
        can_redo: Whether a redo step is available.
        created_at: When the session was opened.
        saved_at: When the document was last saved, if ever.
    """

    id: UUID
    document: dict[str, Any]
    selected_id: str | None
    template_id: str | None
    can_undo: bool
    can_redo: bool
    created_at: datetime
    saved_at: datetime | None = None


@dataclass
class BatchExportDTO:
    """DTO for exporting a design to several platform sizes.

    Attributes:
        platform_ids: Target platform ids, in output order.
        format: ``png`` or ``jpg``.
        pixel_density: Device pixel ratio; the server default if omitted.
    """

    platform_ids: list[str]
    format: str = "png"
    pixel_density: float | None = None


# Element DTOs


@dataclass
class CreateElementDTO:
    """DTO for adding an element.

    Attributes:
        type: Element kind: ``text``, ``image`` or ``shape``.
        props: Initial properties, in Python or camelCase field names.
    """

    type: str
    props: dict[str, Any] = field(default_factory=dict)


@dataclass
class MoveLayerDTO:
    """DTO for moving an element one step in z-order."""

    direction: str


@dataclass
class SelectDTO:
    """DTO for changing the selection. A null id clears it."""

    element_id: str | None = None


@dataclass
class GenerateImageDTO:
    """DTO for generating an image element from a prompt.

    Attributes:
        prompt: Text prompt sent to the image generator.
        props: Extra properties for the new image element.
    """

    prompt: str
    props: dict[str, Any] = field(default_factory=dict)


# Catalog DTOs


@dataclass
class PlatformResponseDTO:
    """DTO for platform size responses."""

    id: str
    label: str
    width: int
    height: int


@dataclass
class TemplateResponseDTO:
    """DTO for template list responses.

    Attributes:
        id: Template identifier.
        name: Display name.
        platform_id: Platform the template is laid out for.
        category: Library category.
        premium: Whether the template is reserved for paid plans.
        likes: Popularity counter.
        element_count: Number of elements in the template.
    """

    id: str
    name: str
    platform_id: str
    category: str
    premium: bool
    likes: int
    element_count: int


@dataclass
class DesignSummaryDTO:
    """DTO for saved design list responses."""

    id: str
    name: str
    platform: str
    element_count: int
    updated_at: str | None


# Conversion functions


def session_to_response(session: EditingSession) -> SessionResponseDTO:
    """Convert an editing session to a SessionResponseDTO.

    Args:
        session: The session to convert.

    Returns:
        The corresponding SessionResponseDTO.
    """
    editor = session.editor
    return SessionResponseDTO(
        id=session.id,
        document=document_to_record(editor.document, updated_at=session.saved_at or session.created_at),
        selected_id=editor.selected_id,
        template_id=editor.template_id,
        can_undo=editor.can_undo,
        can_redo=editor.can_redo,
        created_at=session.created_at,
        saved_at=session.saved_at,
    )


def element_to_response(element: CanvasElement) -> dict[str, Any]:
    """Convert an element to its API representation (the persisted mapping)."""
    return element_to_dict(element)


def platform_to_response(platform: PlatformSize) -> PlatformResponseDTO:
    """Convert a platform size to a PlatformResponseDTO."""
    return PlatformResponseDTO(id=platform.id, label=platform.label, width=platform.width, height=platform.height)


def template_to_response(template: Template) -> TemplateResponseDTO:
    """Convert a template to a TemplateResponseDTO."""
    return TemplateResponseDTO(
        id=template.id,
        name=template.name,
        platform_id=template.platform_id,
        category=template.category,
        premium=template.premium,
        likes=template.likes,
        element_count=len(template.elements),
    )


def design_to_summary(record: DesignRecord) -> DesignSummaryDTO:
    """Convert a stored design record to a DesignSummaryDTO."""
    return DesignSummaryDTO(
        id=record["id"],
        name=record.get("name", ""),
        platform=record.get("platform", ""),
        element_count=len(record.get("elements") or []),
        updated_at=record.get("updated_at"),
    )


def primitive_to_dict(primitive: Primitive) -> dict[str, Any]:
    """Convert a render primitive to a JSON-compatible mapping with a ``type`` tag."""
    if isinstance(primitive, TextRun):
        return {
            "type": "text",
            "elementId": primitive.element_id,
            "content": primitive.content,
            "x": primitive.x,
            "y": primitive.y,
            "fontSize": primitive.font_size,
            "fontFamily": primitive.font_family,
            "fontWeight": primitive.font_weight.value,
            "color": primitive.color,
            "align": primitive.align.value,
            "maxWidth": primitive.max_width,
        }
    if isinstance(primitive, ImageRect):
        return {
            "type": "image",
            "elementId": primitive.element_id,
            "src": primitive.src,
            "left": primitive.left,
            "top": primitive.top,
            "width": primitive.width,
            "height": primitive.height,
            "opacity": primitive.opacity,
        }
    if isinstance(primitive, FilledShape):
        return {
            "type": "shape",
            "elementId": primitive.element_id,
            "shapeKind": primitive.shape_kind.value,
            "left": primitive.left,
            "top": primitive.top,
            "width": primitive.width,
            "height": primitive.height,
            "fill": primitive.fill,
            "opacity": primitive.opacity,
        }
    msg = f"Unsupported primitive: {type(primitive).__name__}"
    raise TypeError(msg)


def description_to_dict(description: RenderDescription) -> dict[str, Any]:
    """Convert a render description to a JSON-compatible mapping."""
    return {
        "width": description.width,
        "height": description.height,
        "pixelDensity": description.pixel_density,
        "background": background_to_dict(description.background),
        "primitives": [primitive_to_dict(p) for p in description.primitives],
    }
