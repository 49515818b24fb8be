"""Core domain models for the postcanvas document model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias
from uuid import uuid4

from postcanvas.core.types import BackgroundKind, ElementKind, FontWeight, ShapeKind, TextAlign

DEFAULT_PLATFORM_ID = "instagram-post"
DEFAULT_BACKGROUND_COLOR = "#FFFFFF"
DEFAULT_GRADIENT_START = "#6366F1"
DEFAULT_GRADIENT_END = "#EC4899"
DEFAULT_GRADIENT_DIRECTION = "135deg"


@dataclass(frozen=True)
class PlatformSize:
    """A target canvas format for one social platform.

    Attributes:
        id: Platform id, e.g. ``instagram-post``.
        width: Canvas width in pixels.
        height: Canvas height in pixels.
        label: Human readable label.
    """

    id: str
    width: int
    height: int
    label: str

    @property
    def size(self) -> tuple[int, int]:
        """Canvas size as a ``(width, height)`` tuple."""
        return (self.width, self.height)


@dataclass
class ColorBackground:
    """Solid colour background.

    Attributes:
        value: Fill colour in ``#RRGGBB`` format.
        extra: Unrecognised record keys, written back unchanged.
    """

    value: str = DEFAULT_BACKGROUND_COLOR
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> BackgroundKind:
        """Variant tag of this background."""
        return BackgroundKind.COLOR


@dataclass
class GradientBackground:
    """Linear gradient background.

    Attributes:
        start: Colour at the start of the gradient line.
        end: Colour at the end of the gradient line.
        direction: CSS-style angle (``"135deg"``) or keyword (``"to right"``).
        extra: Unrecognised record keys, written back unchanged.
    """

    start: str = DEFAULT_GRADIENT_START
    end: str = DEFAULT_GRADIENT_END
    direction: str = DEFAULT_GRADIENT_DIRECTION
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> BackgroundKind:
        """Variant tag of this background."""
        return BackgroundKind.GRADIENT


Background: TypeAlias = ColorBackground | GradientBackground


def default_background(kind: BackgroundKind = BackgroundKind.COLOR) -> Background:
    """Return the default background for a variant.

    Args:
        kind: The background variant.

    Returns:
        A fresh background instance carrying the variant's defaults.
    """
    if kind is BackgroundKind.GRADIENT:
        return GradientBackground()
    return ColorBackground()


def new_element_id() -> str:
    """Generate a candidate element id."""
    return f"el-{uuid4().hex[:12]}"


@dataclass
class Element:
    """Base class for all canvas elements.

    Positions are the element's center in canvas pixel space, not its top-left
    corner.

    Attributes:
        id: Identifier of the element, unique within its document.
        kind: Kind of the element (text, image or shape).
        x: Horizontal center position.
        y: Vertical center position.
        extra: Fields read from a persisted record that this version does not
            know about; written back unchanged on save.
    """

    id: str = field(default_factory=new_element_id)
    kind: ElementKind = field(init=False)
    x: float = 0.0
    y: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class TextElement(Element):
    """A run of text on the canvas.

    Attributes:
        content: The text to display.
        font_size: Font size in pixels (8 to 200).
        font_family: Font family name.
        font_weight: Font weight keyword or numeric weight.
        color: Text colour in ``#RRGGBB`` format.
        align: Alignment of lines inside the text block centred on ``x``.
        max_width: Optional wrapping width in pixels.
    """

    content: str = "Your text here"
    font_size: int = 48
    font_family: str = "Inter"
    font_weight: FontWeight = FontWeight.BOLD
    color: str = "#000000"
    align: TextAlign = TextAlign.CENTER
    max_width: float | None = None

    def __post_init__(self) -> None:
        """Set the element kind to TEXT after initialization."""
        self.kind = ElementKind.TEXT


@dataclass
class ImageElement(Element):
    """A raster image placed on the canvas.

    Attributes:
        src: Data URI or URL of the image.
        width: Displayed width in pixels (at least 50).
        height: Displayed height in pixels (at least 50).
        opacity: Opacity from 0.0 (transparent) to 1.0 (opaque).
    """

    src: str = ""
    width: float = 300.0
    height: float = 300.0
    opacity: float = 1.0

    def __post_init__(self) -> None:
        """Set the element kind to IMAGE after initialization."""
        self.kind = ElementKind.IMAGE


@dataclass
class ShapeElement(Element):
    """A filled geometric shape.

    Attributes:
        shape_kind: Rectangle or circle.
        width: Width in pixels (at least 10).
        height: Height in pixels (at least 10).
        fill: Fill colour in ``#RRGGBB`` format.
        opacity: Opacity from 0.0 (transparent) to 1.0 (opaque).
    """

    shape_kind: ShapeKind = ShapeKind.RECTANGLE
    width: float = 200.0
    height: float = 200.0
    fill: str = "#6366F1"
    opacity: float = 1.0

    def __post_init__(self) -> None:
        """Set the element kind to SHAPE after initialization."""
        self.kind = ElementKind.SHAPE


CanvasElement: TypeAlias = TextElement | ImageElement | ShapeElement

ELEMENT_CLASSES: dict[ElementKind, type[Element]] = {
    ElementKind.TEXT: TextElement,
    ElementKind.IMAGE: ImageElement,
    ElementKind.SHAPE: ShapeElement,
}


@dataclass
class Document:
    """One design: a platform-sized canvas with its elements and background.

    The order of ``elements`` is the z-order: index 0 is drawn first (bottom),
    the last element is drawn on top.

    Attributes:
        id: Identifier used when the design is persisted.
        name: Display name of the design.
        platform_id: Id of the platform the canvas is sized for.
        elements: Elements in back-to-front order.
        background: The canvas background.
        extra: Top-level record keys this version does not know about;
            written back unchanged on save.
    """

    id: str = field(default_factory=lambda: str(uuid4()))
    name: str = "Untitled Design"
    platform_id: str = DEFAULT_PLATFORM_ID
    elements: list[CanvasElement] = field(default_factory=list)
    background: Background = field(default_factory=ColorBackground)
    extra: dict[str, Any] = field(default_factory=dict)

    def index_of(self, element_id: str) -> int | None:
        """Return the z-order index of an element, or None if absent."""
        for index, element in enumerate(self.elements):
            if element.id == element_id:
                return index
        return None

    def find(self, element_id: str) -> CanvasElement | None:
        """Return the element with the given id, or None if absent."""
        index = self.index_of(element_id)
        return None if index is None else self.elements[index]

    @property
    def element_ids(self) -> list[str]:
        """Element ids in z-order."""
        return [element.id for element in self.elements]


@dataclass(frozen=True)
class Template:
    """A predefined starting point for a design.

    Templates are read-only; loading one into an editor copies its elements.

    Attributes:
        id: Template identifier.
        name: Display name, also used as the design name when loaded.
        platform_id: Platform the template is laid out for.
        background: Background applied when loaded.
        elements: Elements in back-to-front order.
        category: Library category (promotion, quote, event, ...).
        premium: Whether the template is reserved for paid plans.
        likes: Popularity counter used for ordering.
    """

    id: str
    name: str
    platform_id: str
    background: Background
    elements: tuple[CanvasElement, ...] = ()
    category: str = "general"
    premium: bool = False
    likes: int = 0
