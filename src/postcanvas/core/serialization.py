"""Mapping between documents and their persisted JSON records.

The persisted record looks like::

    {
        "id": "...",
        "name": "Summer Sale",
        "platform": "instagram-post",
        "elements": [{"id": "el-1", "type": "text", "x": 540, "y": 540, "fontSize": 48, ...}],
        "background": {"type": "color", "value": "#FFFFFF"},
        "updated_at": "2024-12-27T10:00:00+00:00",
    }

Element keys use the camelCase names of the browser editor. Keys this version
does not recognise, on the record, its elements or its background, are kept
and written back unchanged.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from postcanvas.core.models import (
    ELEMENT_CLASSES,
    Background,
    CanvasElement,
    ColorBackground,
    Document,
    GradientBackground,
)
from postcanvas.core.patches import FIELD_ALIASES, FIELD_VALIDATORS, WIRE_NAMES, validate_color, validate_patch
from postcanvas.core.platforms import get_platform
from postcanvas.core.render import gradient_angle
from postcanvas.core.types import BackgroundKind, ElementKind
from postcanvas.exceptions import DocumentFormatError, InvalidBackgroundError, InvalidPatchError, InvalidPlatformError

_ELEMENT_FIELDS: dict[ElementKind, tuple[str, ...]] = {
    kind: tuple(validators) for kind, validators in FIELD_VALIDATORS.items()
}
_BACKGROUND_FIELDS: dict[BackgroundKind, tuple[str, ...]] = {
    BackgroundKind.COLOR: ("value",),
    BackgroundKind.GRADIENT: ("start", "end", "direction"),
}
_RECORD_FIELDS = ("id", "name", "platform", "elements", "background", "updated_at")


def element_to_dict(element: CanvasElement) -> dict[str, Any]:
    """Convert an element to its persisted mapping.

    Args:
        element: The element to convert.

    Returns:
        JSON-compatible mapping with a ``type`` tag and camelCase keys.
    """
    known: dict[str, Any] = {"id": element.id, "type": element.kind.value}
    for name in _ELEMENT_FIELDS[element.kind]:
        value = getattr(element, name)
        if hasattr(value, "value"):  # Enum
            value = value.value
        known[WIRE_NAMES.get(name, name)] = value
    return {**element.extra, **known}


def element_from_dict(data: Mapping[str, Any]) -> CanvasElement:
    """Rebuild an element from its persisted mapping.

    Args:
        data: Mapping produced by ``element_to_dict`` or the browser editor.

    Returns:
        The reconstructed element; unknown keys are kept in ``extra``.

    Raises:
        DocumentFormatError: If the type tag, id or a known field is invalid.
    """
    if not isinstance(data, Mapping):
        msg = f"Element must be an object, got {type(data).__name__}"
        raise DocumentFormatError(msg)
    try:
        kind = ElementKind(data.get("type"))
    except ValueError:
        msg = f"Unknown element type: {data.get('type')!r}"
        raise DocumentFormatError(msg) from None

    element_id = data.get("id")
    if not isinstance(element_id, str) or not element_id:
        msg = "Element is missing a string id"
        raise DocumentFormatError(msg)

    fields = _ELEMENT_FIELDS[kind]
    known: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        if key in ("id", "type"):
            continue
        if FIELD_ALIASES.get(key, key) in fields:
            known[key] = value
        else:
            extra[key] = value

    try:
        values = validate_patch(kind, known)
    except InvalidPatchError as exc:
        msg = f"Invalid {kind.value} element {element_id}: {exc}"
        raise DocumentFormatError(msg) from exc

    element = ELEMENT_CLASSES[kind](id=element_id, extra=extra, **values)
    return element  # type: ignore[return-value]


def background_to_dict(background: Background) -> dict[str, Any]:
    """Convert a background to its persisted mapping."""
    known: dict[str, Any]
    if isinstance(background, GradientBackground):
        known = {
            "type": BackgroundKind.GRADIENT.value,
            "start": background.start,
            "end": background.end,
            "direction": background.direction,
        }
    else:
        known = {"type": BackgroundKind.COLOR.value, "value": background.value}
    return {**background.extra, **known}


def background_from_dict(data: Mapping[str, Any]) -> Background:
    """Build a background from its tagged mapping.

    Args:
        data: Mapping with a ``type`` tag of ``color`` or ``gradient``.

    Returns:
        The matching background variant.

    Raises:
        InvalidBackgroundError: If the tag is unknown or a required field is
            missing or malformed.
    """
    try:
        kind = BackgroundKind(data.get("type"))
    except ValueError:
        msg = f"Unknown background type: {data.get('type')!r}"
        raise InvalidBackgroundError(msg, field="type") from None

    required = ("value",) if kind is BackgroundKind.COLOR else ("start", "end")
    missing = [name for name in required if name not in data]
    if missing:
        msg = f"{kind.value} background requires: {', '.join(missing)}"
        raise InvalidBackgroundError(msg, field=missing[0])

    known = ("type", *_BACKGROUND_FIELDS[kind])
    extra = {key: value for key, value in data.items() if key not in known}
    try:
        if kind is BackgroundKind.COLOR:
            return ColorBackground(value=validate_color("value", data["value"]), extra=extra)
        return validate_background(
            GradientBackground(
                start=data["start"],
                end=data["end"],
                direction=data.get("direction", GradientBackground().direction),
                extra=extra,
            )
        )
    except InvalidBackgroundError:
        raise
    except InvalidPatchError as exc:
        raise InvalidBackgroundError(str(exc), field=exc.field) from exc


def validate_background(background: Background) -> Background:
    """Check a background instance's fields and return a normalized copy.

    Raises:
        InvalidBackgroundError: If a colour or the gradient direction is invalid.
    """
    try:
        if isinstance(background, ColorBackground):
            return ColorBackground(value=validate_color("value", background.value), extra=dict(background.extra))
        if isinstance(background, GradientBackground):
            direction = background.direction
            if not isinstance(direction, str):
                msg = "direction must be a string"
                raise InvalidBackgroundError(msg, field="direction")
            try:
                gradient_angle(direction)
            except ValueError as exc:
                raise InvalidBackgroundError(str(exc), field="direction") from exc
            return GradientBackground(
                start=validate_color("start", background.start),
                end=validate_color("end", background.end),
                direction=direction,
                extra=dict(background.extra),
            )
    except InvalidBackgroundError:
        raise
    except InvalidPatchError as exc:
        raise InvalidBackgroundError(str(exc), field=exc.field) from exc
    msg = f"Unsupported background: {type(background).__name__}"
    raise InvalidBackgroundError(msg)


def coerce_background(value: Background | Mapping[str, Any]) -> Background:
    """Accept a background instance or its mapping and return a validated background."""
    if isinstance(value, Mapping):
        return background_from_dict(value)
    return validate_background(value)


def document_to_record(document: Document, *, updated_at: datetime | None = None) -> dict[str, Any]:
    """Convert a document to its persisted record.

    Args:
        document: The document to serialize.
        updated_at: Timestamp to stamp on the record; defaults to now.

    Returns:
        JSON-compatible record.
    """
    stamp = updated_at or datetime.now(UTC)
    return {
        **document.extra,
        "id": document.id,
        "name": document.name,
        "platform": document.platform_id,
        "elements": [element_to_dict(element) for element in document.elements],
        "background": background_to_dict(document.background),
        "updated_at": stamp.isoformat(),
    }


def _decode_json(value: Any, field: str) -> Any:
    # Some stores keep the element and background columns as JSON text.
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            msg = f"{field} is not valid JSON"
            raise DocumentFormatError(msg) from exc
    return value


def document_from_record(record: Mapping[str, Any]) -> Document:
    """Rebuild a document from a persisted record.

    Args:
        record: Record produced by ``document_to_record``.

    Returns:
        A new, independent document.

    Raises:
        DocumentFormatError: If the record is malformed.
    """
    platform_id = record.get("platform")
    try:
        get_platform(platform_id)
    except InvalidPlatformError as exc:
        raise DocumentFormatError(str(exc)) from exc

    elements_data = _decode_json(record.get("elements", []), "elements")
    background_data = _decode_json(record.get("background", {"type": "color", "value": "#FFFFFF"}), "background")
    if not isinstance(elements_data, list):
        msg = "elements must be a list"
        raise DocumentFormatError(msg)
    if not isinstance(background_data, Mapping):
        msg = "background must be an object"
        raise DocumentFormatError(msg)

    elements = [element_from_dict(item) for item in elements_data]
    ids = [element.id for element in elements]
    if len(set(ids)) != len(ids):
        msg = "Element ids must be unique"
        raise DocumentFormatError(msg)

    try:
        background = background_from_dict(background_data)
    except InvalidBackgroundError as exc:
        raise DocumentFormatError(str(exc)) from exc

    document = Document(
        name=record.get("name") or "Untitled Design",
        platform_id=platform_id,
        elements=elements,
        background=background,
        extra={key: value for key, value in record.items() if key not in _RECORD_FIELDS},
    )
    if record.get("id"):
        document.id = str(record["id"])
    return document
