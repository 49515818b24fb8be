"""Pytest configuration and fixtures for postcanvas tests."""

from __future__ import annotations

import base64
import io

import pytest
from litestar import Litestar
from litestar.testing import TestClient
from PIL import Image

from postcanvas.app import create_app
from postcanvas.core.editor import CanvasEditor
from postcanvas.core.models import Document, GradientBackground, ImageElement, ShapeElement, TextElement
from postcanvas.core.render import RenderDescription
from postcanvas.core.types import ExportFormat, ShapeKind
from postcanvas.plugin import PostCanvasConfig
from postcanvas.services.design import DesignService
from postcanvas.services.export import ExportService
from postcanvas.services.templates import InMemoryTemplateProvider
from postcanvas.storage.memory import InMemoryDocumentStorage


def make_png_data_uri(size: tuple[int, int] = (4, 4), color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> str:
    """Build a small PNG as a base64 data URI."""
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


class RecordingSink:
    """Export sink that records what it was asked to encode."""

    def __init__(self, payload: bytes = b"encoded") -> None:
        self.payload = payload
        self.calls: list[tuple[RenderDescription, ExportFormat, float]] = []

    async def encode(self, description: RenderDescription, format: ExportFormat, pixel_density: float) -> bytes:  # noqa: A002
        self.calls.append((description, format, pixel_density))
        return self.payload


class FakeImageGenerator:
    """Image generator returning a fixed source."""

    def __init__(self, src: str) -> None:
        self.src = src
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.src


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


# Editor and document fixtures


@pytest.fixture
def editor() -> CanvasEditor:
    """Create an editor on an empty Instagram post canvas."""
    return CanvasEditor("instagram-post")


@pytest.fixture
def png_data_uri() -> str:
    """A tiny red PNG as a data URI."""
    return make_png_data_uri()


@pytest.fixture
def sample_document(png_data_uri: str) -> Document:
    """Create a document with one element of every kind over a gradient."""
    return Document(
        id="doc-1",
        name="Summer Sale",
        platform_id="instagram-post",
        elements=[
            ShapeElement(id="el-rect", x=540, y=540, shape_kind=ShapeKind.RECTANGLE, width=400, height=200),
            ShapeElement(id="el-circle", x=200, y=200, shape_kind=ShapeKind.CIRCLE, width=100, height=100),
            ImageElement(id="el-image", x=800, y=800, src=png_data_uri, width=120, height=120, opacity=0.5),
            TextElement(id="el-text", x=540, y=300, content="Summer Sale", font_size=72),
        ],
        background=GradientBackground(start="#FF6B6B", end="#4ECDC4", direction="135deg"),
    )


# Service fixtures


@pytest.fixture
def storage() -> InMemoryDocumentStorage:
    """Create a fresh InMemoryDocumentStorage instance for each test."""
    return InMemoryDocumentStorage()


@pytest.fixture
def templates() -> InMemoryTemplateProvider:
    """Create a template provider serving the built-in catalog."""
    return InMemoryTemplateProvider()


@pytest.fixture
def sink() -> RecordingSink:
    """Create a recording export sink."""
    return RecordingSink()


@pytest.fixture
def image_generator(png_data_uri: str) -> FakeImageGenerator:
    """Create an image generator that always returns the tiny red PNG."""
    return FakeImageGenerator(png_data_uri)


@pytest.fixture
def design_service(
    storage: InMemoryDocumentStorage,
    templates: InMemoryTemplateProvider,
    sink: RecordingSink,
) -> DesignService:
    """Create a design service wired to in-memory collaborators."""
    return DesignService(storage, templates, ExportService(sink))


# App and client fixtures


@pytest.fixture
def app(
    storage: InMemoryDocumentStorage,
    sink: RecordingSink,
    image_generator: FakeImageGenerator,
) -> Litestar:
    """Create the postcanvas app wired to in-memory collaborators for testing."""
    config = PostCanvasConfig(storage=storage, export_sink=sink, generator=image_generator)
    return create_app(config=config)


@pytest.fixture
def client(app: Litestar) -> TestClient[Litestar]:
    """Create a test client for the app."""
    return TestClient(app=app)
