"""Core type definitions for postcanvas."""

from __future__ import annotations

from enum import StrEnum


class ElementKind(StrEnum):
    """Enumeration of element kinds that can be placed on a canvas."""

    TEXT = "text"
    IMAGE = "image"
    SHAPE = "shape"


class ShapeKind(StrEnum):
    """Enumeration of shape kinds available for shape elements."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class FontWeight(StrEnum):
    """Enumeration of supported font weights.

    Values match the CSS ``font-weight`` keywords and numeric weights used by the
    browser editor.
    """

    NORMAL = "normal"
    SEMIBOLD = "600"
    BOLD = "bold"
    EXTRABOLD = "800"
    BLACK = "900"


class TextAlign(StrEnum):
    """Enumeration of horizontal text alignments."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class BackgroundKind(StrEnum):
    """Enumeration of background variants."""

    COLOR = "color"
    GRADIENT = "gradient"


class LayerDirection(StrEnum):
    """Direction for moving an element one step in the z-order."""

    UP = "up"
    DOWN = "down"


class ExportFormat(StrEnum):
    """Enumeration of raster export formats."""

    PNG = "png"
    JPG = "jpg"

    @property
    def pillow_format(self) -> str:
        """Name of the format as understood by Pillow."""
        return "PNG" if self is ExportFormat.PNG else "JPEG"

    @property
    def media_type(self) -> str:
        """MIME type of the encoded image."""
        return "image/png" if self is ExportFormat.PNG else "image/jpeg"
