"""postcanvas: a canvas document model and API for social media graphics.

This package provides the editing core of a social media graphics editor:
platform-sized canvases holding text, image and shape elements over a colour
or gradient background, with undo history, templates, raster and SVG export,
magic resize between platform sizes, and persistence of saved designs. A
Litestar plugin exposes it all as a REST API.

Key Components:
    - Core: CanvasEditor, Document, element models, render descriptions
    - Storage: InMemoryDocumentStorage, DocumentStorage (for custom backends)
    - Services: DesignService, ExportService, template providers
    - Web: REST API controllers and routers
    - Plugin: PostCanvasPlugin for Litestar integration

Quick Start:
    >>> from postcanvas import CanvasEditor
    >>>
    >>> editor = CanvasEditor("instagram-post")
    >>> headline = editor.add_element("text", content="Summer Sale", fontSize=72)
    >>> editor.set_background({"type": "gradient", "start": "#FF6B6B", "end": "#4ECDC4"})

Serving the API:
    >>> from litestar import Litestar
    >>> from postcanvas import PostCanvasPlugin, PostCanvasConfig
    >>>
    >>> app = Litestar(plugins=[PostCanvasPlugin(PostCanvasConfig())])
"""

from __future__ import annotations

__version__ = "0.1.0"

from postcanvas.core import (
    CanvasEditor,
    ColorBackground,
    Document,
    ElementKind,
    ExportFormat,
    GradientBackground,
    ImageElement,
    PlatformSize,
    RenderDescription,
    ShapeElement,
    Template,
    TextElement,
)
from postcanvas.exceptions import (
    DocumentFormatError,
    DocumentNotFoundError,
    ElementNotFoundError,
    ExportFailedError,
    ImageGenerationError,
    InvalidBackgroundError,
    InvalidPatchError,
    InvalidPlatformError,
    PersistenceError,
    PostCanvasError,
    SessionNotFoundError,
    TemplateNotFoundError,
)
from postcanvas.plugin import PostCanvasConfig, PostCanvasPlugin
from postcanvas.services import DesignService, ExportService, InMemoryTemplateProvider
from postcanvas.storage import DocumentStorage, InMemoryDocumentStorage
from postcanvas.web import create_router

__all__ = [
    "CanvasEditor",
    "ColorBackground",
    "DesignService",
    "Document",
    "DocumentFormatError",
    "DocumentNotFoundError",
    "DocumentStorage",
    "ElementKind",
    "ElementNotFoundError",
    "ExportFailedError",
    "ExportFormat",
    "ExportService",
    "GradientBackground",
    "ImageElement",
    "ImageGenerationError",
    "InMemoryDocumentStorage",
    "InMemoryTemplateProvider",
    "InvalidBackgroundError",
    "InvalidPatchError",
    "InvalidPlatformError",
    "PersistenceError",
    "PlatformSize",
    "PostCanvasConfig",
    "PostCanvasError",
    "PostCanvasPlugin",
    "RenderDescription",
    "SessionNotFoundError",
    "ShapeElement",
    "Template",
    "TemplateNotFoundError",
    "TextElement",
    "create_router",
]
