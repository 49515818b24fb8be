"""Per-kind property patches and their validation.

Each element kind accepts its own set of fields. Values are checked before any
element is touched: numeric values outside a field's range are clamped into
it, while values of the wrong type, unknown colours or enum members, and fields
that belong to another element kind are rejected with ``InvalidPatchError``.

Patches may use either the Python field names (``font_size``) or the camelCase
names of the persisted format (``fontSize``).
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypedDict

from postcanvas.core.types import ElementKind, FontWeight, ShapeKind, TextAlign
from postcanvas.exceptions import InvalidPatchError

if TYPE_CHECKING:
    from enum import StrEnum

    from postcanvas.core.models import Element

FONT_SIZE_RANGE = (8, 200)
MIN_IMAGE_SIZE = 50.0
MIN_SHAPE_SIZE = 10.0

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

FIELD_ALIASES: dict[str, str] = {
    "fontSize": "font_size",
    "fontFamily": "font_family",
    "fontWeight": "font_weight",
    "maxWidth": "max_width",
    "shapeKind": "shape_kind",
}
WIRE_NAMES: dict[str, str] = {field: alias for alias, field in FIELD_ALIASES.items()}

_IMMUTABLE_FIELDS = frozenset({"id", "kind", "type"})


class TextPatch(TypedDict, total=False):
    """Fields accepted by text elements."""

    x: float
    y: float
    content: str
    font_size: int
    font_family: str
    font_weight: FontWeight | str
    color: str
    align: TextAlign | str
    max_width: float | None


class ImagePatch(TypedDict, total=False):
    """Fields accepted by image elements."""

    x: float
    y: float
    src: str
    width: float
    height: float
    opacity: float


class ShapePatch(TypedDict, total=False):
    """Fields accepted by shape elements."""

    x: float
    y: float
    shape_kind: ShapeKind | str
    width: float
    height: float
    fill: str
    opacity: float


ElementPatch = TextPatch | ImagePatch | ShapePatch


def _number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{name} must be a number, got {type(value).__name__}"
        raise InvalidPatchError(msg, field=name)
    if not math.isfinite(value):
        msg = f"{name} must be a finite number"
        raise InvalidPatchError(msg, field=name)
    return float(value)


def _clamp(low: float | None = None, high: float | None = None) -> Callable[[str, Any], float]:
    def validate(name: str, value: Any) -> float:
        number = _number(name, value)
        if low is not None:
            number = max(low, number)
        if high is not None:
            number = min(high, number)
        return number

    return validate


def _font_size(name: str, value: Any) -> int:
    low, high = FONT_SIZE_RANGE
    return int(min(high, max(low, round(_number(name, value)))))


def _string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        msg = f"{name} must be a string, got {type(value).__name__}"
        raise InvalidPatchError(msg, field=name)
    return value


def _non_empty_string(name: str, value: Any) -> str:
    text = _string(name, value)
    if not text.strip():
        msg = f"{name} must not be empty"
        raise InvalidPatchError(msg, field=name)
    return text


def validate_color(name: str, value: Any) -> str:
    """Validate a ``#RGB`` / ``#RRGGBB`` colour, expanding the short form.

    Args:
        name: Field name used in error messages.
        value: The candidate colour.

    Returns:
        The colour in ``#RRGGBB`` form.

    Raises:
        InvalidPatchError: If the value is not a hex colour string.
    """
    color = _string(name, value)
    if not _HEX_COLOR.match(color):
        msg = f"{name} must be a hex colour like #FF0000, got {color!r}"
        raise InvalidPatchError(msg, field=name)
    if len(color) == 4:
        color = "#" + "".join(ch * 2 for ch in color[1:])
    return color


def _enum(enum_cls: type[StrEnum]) -> Callable[[str, Any], StrEnum]:
    def validate(name: str, value: Any) -> StrEnum:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            msg = f"{name} must be one of: {allowed}"
            raise InvalidPatchError(msg, field=name) from None

    return validate


def _max_width(name: str, value: Any) -> float | None:
    if value is None:
        return None
    return max(1.0, _number(name, value))


_POSITION: dict[str, Callable[[str, Any], Any]] = {
    "x": _number,
    "y": _number,
}

FIELD_VALIDATORS: dict[ElementKind, dict[str, Callable[[str, Any], Any]]] = {
    ElementKind.TEXT: {
        **_POSITION,
        "content": _string,
        "font_size": _font_size,
        "font_family": _non_empty_string,
        "font_weight": _enum(FontWeight),
        "color": validate_color,
        "align": _enum(TextAlign),
        "max_width": _max_width,
    },
    ElementKind.IMAGE: {
        **_POSITION,
        "src": _non_empty_string,
        "width": _clamp(low=MIN_IMAGE_SIZE),
        "height": _clamp(low=MIN_IMAGE_SIZE),
        "opacity": _clamp(0.0, 1.0),
    },
    ElementKind.SHAPE: {
        **_POSITION,
        "shape_kind": _enum(ShapeKind),
        "width": _clamp(low=MIN_SHAPE_SIZE),
        "height": _clamp(low=MIN_SHAPE_SIZE),
        "fill": validate_color,
        "opacity": _clamp(0.0, 1.0),
    },
}


def validate_patch(kind: ElementKind, patch: Mapping[str, Any]) -> dict[str, Any]:
    """Validate and normalize a patch for one element kind.

    Args:
        kind: Kind of the element the patch targets.
        patch: Field values keyed by Python or camelCase field name.

    Returns:
        Normalized values keyed by Python field name, ready to apply.

    Raises:
        InvalidPatchError: If any field is unknown for the kind, immutable, or
            carries a value of the wrong type.
    """
    validators = FIELD_VALIDATORS[kind]
    values: dict[str, Any] = {}
    for key, value in patch.items():
        name = FIELD_ALIASES.get(key, key)
        if name in _IMMUTABLE_FIELDS:
            msg = f"{name} cannot be changed by a patch"
            raise InvalidPatchError(msg, field=name)
        validator = validators.get(name)
        if validator is None:
            msg = f"{kind.value} elements have no field {key!r}"
            raise InvalidPatchError(msg, field=key)
        values[name] = validator(name, value)
    return values


def apply_patch(element: Element, values: Mapping[str, Any]) -> None:
    """Assign already validated values onto an element."""
    for name, value in values.items():
        setattr(element, name, value)
