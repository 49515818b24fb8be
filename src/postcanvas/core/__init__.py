"""Core document model for postcanvas."""

from postcanvas.core.editor import CanvasEditor
from postcanvas.core.history import DocumentHistory
from postcanvas.core.models import (
    Background,
    CanvasElement,
    ColorBackground,
    Document,
    Element,
    GradientBackground,
    ImageElement,
    PlatformSize,
    ShapeElement,
    Template,
    TextElement,
    default_background,
)
from postcanvas.core.platforms import PLATFORM_SIZES, get_platform, list_platforms
from postcanvas.core.render import FilledShape, ImageRect, RenderDescription, TextRun, render_document
from postcanvas.core.serialization import document_from_record, document_to_record
from postcanvas.core.types import (
    BackgroundKind,
    ElementKind,
    ExportFormat,
    FontWeight,
    LayerDirection,
    ShapeKind,
    TextAlign,
)

__all__ = [
    "PLATFORM_SIZES",
    "Background",
    "BackgroundKind",
    "CanvasEditor",
    "CanvasElement",
    "ColorBackground",
    "Document",
    "DocumentHistory",
    "Element",
    "ElementKind",
    "ExportFormat",
    "FilledShape",
    "FontWeight",
    "GradientBackground",
    "ImageElement",
    "ImageRect",
    "LayerDirection",
    "PlatformSize",
    "RenderDescription",
    "ShapeElement",
    "ShapeKind",
    "Template",
    "TextAlign",
    "TextElement",
    "TextRun",
    "default_background",
    "document_from_record",
    "document_to_record",
    "get_platform",
    "list_platforms",
    "render_document",
]
