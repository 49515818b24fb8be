"""Render descriptions: a document laid out in absolute output pixels.

Rendering is a pure step. Element centres are translated to top-left boxes and
everything is scaled from platform pixels to output pixels, so export sinks
only have to draw what they are given.
"""

from __future__ import annotations

import copy
import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from postcanvas.core.models import ImageElement, ShapeElement, TextElement
from postcanvas.core.platforms import get_platform
from postcanvas.exceptions import InvalidPatchError

if TYPE_CHECKING:
    from postcanvas.core.models import Background, Document
    from postcanvas.core.types import FontWeight, ShapeKind, TextAlign

_ANGLE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(deg)?\s*$")

# CSS keyword directions, measured clockwise from "to top".
_KEYWORD_ANGLES: dict[frozenset[str], float] = {
    frozenset({"top"}): 0.0,
    frozenset({"top", "right"}): 45.0,
    frozenset({"right"}): 90.0,
    frozenset({"bottom", "right"}): 135.0,
    frozenset({"bottom"}): 180.0,
    frozenset({"bottom", "left"}): 225.0,
    frozenset({"left"}): 270.0,
    frozenset({"top", "left"}): 315.0,
}


def gradient_angle(direction: str) -> float:
    """Convert a gradient direction to an angle in degrees.

    Angles follow the CSS convention: 0 points up and values grow clockwise,
    so ``"to right"`` is 90 and ``"135deg"`` runs from top-left to
    bottom-right.

    Args:
        direction: ``"<n>deg"``, a bare number, or a ``"to <side> [<side>]"``
            keyword.

    Returns:
        The angle normalized into ``[0, 360)``.

    Raises:
        ValueError: If the direction cannot be parsed.
    """
    match = _ANGLE.match(direction)
    if match:
        return float(match.group(1)) % 360.0

    words = direction.lower().split()
    if len(words) in (2, 3) and words[0] == "to":
        angle = _KEYWORD_ANGLES.get(frozenset(words[1:]))
        if angle is not None and len(set(words[1:])) == len(words) - 1:
            return angle

    msg = f"Unsupported gradient direction: {direction!r}"
    raise ValueError(msg)


def gradient_line(angle: float, width: float, height: float) -> tuple[tuple[float, float], tuple[float, float]]:
    """Compute the start and end points of a CSS gradient line in a box.

    The line passes through the box centre and is long enough that the
    corners on either side land exactly on the first and last colour stop.

    Args:
        angle: Gradient angle in degrees, CSS convention.
        width: Box width.
        height: Box height.

    Returns:
        ``((x1, y1), (x2, y2))`` in box coordinates.
    """
    theta = math.radians(angle)
    dx, dy = math.sin(theta), -math.cos(theta)
    half = (abs(width * dx) + abs(height * dy)) / 2
    cx, cy = width / 2, height / 2
    return (cx - dx * half, cy - dy * half), (cx + dx * half, cy + dy * half)


@dataclass(frozen=True)
class TextRun:
    """Text to draw, centred on a point.

    ``(x, y)`` is the centre of the text block. When ``max_width`` is set the
    block is that wide; otherwise it is as wide as the longest line. ``align``
    only positions lines inside the block. The final box depends on font
    metrics, so sinks measure it themselves.
    """

    element_id: str
    content: str
    x: float
    y: float
    font_size: float
    font_family: str
    font_weight: FontWeight
    color: str
    align: TextAlign
    max_width: float | None = None


@dataclass(frozen=True)
class ImageRect:
    """An image stretched into a top-left anchored box."""

    element_id: str
    src: str
    left: float
    top: float
    width: float
    height: float
    opacity: float


@dataclass(frozen=True)
class FilledShape:
    """A filled rectangle or ellipse in a top-left anchored box."""

    element_id: str
    shape_kind: ShapeKind
    left: float
    top: float
    width: float
    height: float
    fill: str
    opacity: float


Primitive: TypeAlias = TextRun | ImageRect | FilledShape


@dataclass(frozen=True)
class RenderDescription:
    """A complete, resolution-specific description of one frame.

    Attributes:
        width: Output width in pixels.
        height: Output height in pixels.
        pixel_density: Device pixel ratio the description was produced for.
        background: The canvas background, covering the whole frame.
        primitives: Drawables in back-to-front order.
    """

    width: int
    height: int
    pixel_density: float
    background: Background
    primitives: tuple[Primitive, ...]

    @property
    def size(self) -> tuple[int, int]:
        """Output size as a ``(width, height)`` tuple."""
        return (self.width, self.height)


def render_document(
    document: Document,
    target_size: tuple[int, int] | None = None,
    pixel_density: float = 1.0,
) -> RenderDescription:
    """Lay out a document for a target size.

    Args:
        document: The document to render. It is not modified.
        target_size: Logical output size; defaults to the platform size.
        pixel_density: Multiplier applied on top of ``target_size``.

    Returns:
        The render description in absolute output pixels.

    Raises:
        InvalidPatchError: If the density or target size is not positive.
    """
    if isinstance(pixel_density, bool) or not isinstance(pixel_density, int | float) or pixel_density <= 0:
        msg = "pixel_density must be a positive number"
        raise InvalidPatchError(msg, field="pixel_density")

    platform = get_platform(document.platform_id)
    target_w, target_h = target_size or platform.size
    if target_w <= 0 or target_h <= 0:
        msg = "target_size must be positive"
        raise InvalidPatchError(msg, field="target_size")

    sx = target_w / platform.width * pixel_density
    sy = target_h / platform.height * pixel_density
    uniform = min(sx, sy)

    primitives: list[Primitive] = []
    for element in document.elements:
        if isinstance(element, TextElement):
            primitives.append(
                TextRun(
                    element_id=element.id,
                    content=element.content,
                    x=element.x * sx,
                    y=element.y * sy,
                    font_size=element.font_size * uniform,
                    font_family=element.font_family,
                    font_weight=element.font_weight,
                    color=element.color,
                    align=element.align,
                    max_width=None if element.max_width is None else element.max_width * sx,
                )
            )
        elif isinstance(element, ImageElement):
            width, height = element.width * sx, element.height * sy
            primitives.append(
                ImageRect(
                    element_id=element.id,
                    src=element.src,
                    left=element.x * sx - width / 2,
                    top=element.y * sy - height / 2,
                    width=width,
                    height=height,
                    opacity=element.opacity,
                )
            )
        elif isinstance(element, ShapeElement):
            width, height = element.width * sx, element.height * sy
            primitives.append(
                FilledShape(
                    element_id=element.id,
                    shape_kind=element.shape_kind,
                    left=element.x * sx - width / 2,
                    top=element.y * sy - height / 2,
                    width=width,
                    height=height,
                    fill=element.fill,
                    opacity=element.opacity,
                )
            )

    return RenderDescription(
        width=max(1, round(target_w * pixel_density)),
        height=max(1, round(target_h * pixel_density)),
        pixel_density=float(pixel_density),
        background=copy.copy(document.background),
        primitives=tuple(primitives),
    )
