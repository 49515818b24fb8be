"""Tests for render descriptions and gradient geometry."""

from __future__ import annotations

import math

import pytest

from postcanvas.core.models import ColorBackground, Document, ImageElement, ShapeElement, TextElement
from postcanvas.core.render import (
    FilledShape,
    ImageRect,
    TextRun,
    gradient_angle,
    gradient_line,
    render_document,
)
from postcanvas.exceptions import InvalidPatchError


class TestGradientAngle:
    """Tests for parsing gradient directions."""

    @pytest.mark.parametrize(
        ("direction", "angle"),
        [
            ("135deg", 135.0),
            ("45", 45.0),
            ("-90deg", 270.0),
            ("450deg", 90.0),
            ("to top", 0.0),
            ("to right", 90.0),
            ("to bottom", 180.0),
            ("to left", 270.0),
            ("to bottom right", 135.0),
            ("to right bottom", 135.0),
            ("to top left", 315.0),
        ],
    )
    def test_directions(self, direction: str, angle: float) -> None:
        """Test angles and keywords."""
        assert gradient_angle(direction) == angle

    @pytest.mark.parametrize("direction", ["up", "to", "to top top", "to top bottom", "deg", "to middle"])
    def test_invalid(self, direction: str) -> None:
        """Test that unsupported directions raise ValueError."""
        with pytest.raises(ValueError):
            gradient_angle(direction)


class TestGradientLine:
    """Tests for gradient line endpoints."""

    def test_to_right(self) -> None:
        """Test that a 90 degree gradient runs left to right across the middle."""
        (x1, y1), (x2, y2) = gradient_line(90, 200, 100)
        assert (x1, x2) == pytest.approx((0, 200))
        assert (y1, y2) == pytest.approx((50, 50))

    def test_to_bottom(self) -> None:
        """Test that a 180 degree gradient runs top to bottom."""
        (x1, y1), (x2, y2) = gradient_line(180, 200, 100)
        assert (y1, y2) == pytest.approx((0, 100))
        assert (x1, x2) == pytest.approx((100, 100))

    def test_diagonal_covers_corners(self) -> None:
        """Test that a 45 degree line on a square spans the full diagonal."""
        (x1, y1), (x2, y2) = gradient_line(45, 100, 100)
        assert math.hypot(x2 - x1, y2 - y1) == pytest.approx(100 * math.sqrt(2))


class TestRenderDocument:
    """Tests for render_document."""

    def test_native_size(self, sample_document: Document) -> None:
        """Test rendering at the platform size."""
        description = render_document(sample_document)
        assert description.size == (1080, 1080)
        assert description.pixel_density == 1.0
        assert [p.element_id for p in description.primitives] == sample_document.element_ids

    def test_primitive_types(self, sample_document: Document) -> None:
        """Test that each element kind maps to its primitive."""
        kinds = [type(p) for p in render_document(sample_document).primitives]
        assert kinds == [FilledShape, FilledShape, ImageRect, TextRun]

    def test_boxes_are_top_left_anchored(self) -> None:
        """Test that element centres become top-left boxes."""
        document = Document(elements=[ShapeElement(id="s", x=100, y=200, width=40, height=60)])
        shape = render_document(document).primitives[0]
        assert (shape.left, shape.top, shape.width, shape.height) == (80, 170, 40, 60)

    def test_pixel_density_scales_everything(self) -> None:
        """Test that density multiplies positions, sizes and fonts."""
        document = Document(
            elements=[
                TextElement(id="t", x=100, y=100, font_size=20, max_width=300),
                ImageElement(id="i", x=100, y=100, src="https://example.com/a.png", width=50, height=50),
            ]
        )
        description = render_document(document, pixel_density=2)
        text, image = description.primitives
        assert description.size == (2160, 2160)
        assert (text.x, text.y, text.font_size, text.max_width) == (200, 200, 40, 600)
        assert (image.left, image.top, image.width) == (150, 150, 100)

    def test_target_size_scales_per_axis(self) -> None:
        """Test rendering to a non-native target size."""
        document = Document(elements=[TextElement(id="t", x=540, y=540, font_size=40)])
        description = render_document(document, target_size=(540, 270))
        text = description.primitives[0]
        assert description.size == (540, 270)
        assert (text.x, text.y) == (270, 135)
        assert text.font_size == 10

    def test_background_is_copied(self) -> None:
        """Test that the description does not alias the document background."""
        document = Document(background=ColorBackground("#000000"))
        description = render_document(document)
        document.background.value = "#FFFFFF"
        assert description.background.value == "#000000"

    @pytest.mark.parametrize("density", [0, -1, True, "2"])
    def test_invalid_density(self, density: object) -> None:
        """Test that non-positive or non-numeric densities are rejected."""
        with pytest.raises(InvalidPatchError) as exc_info:
            render_document(Document(), pixel_density=density)  # type: ignore[arg-type]
        assert exc_info.value.field == "pixel_density"

    def test_invalid_target_size(self) -> None:
        """Test that a non-positive target size is rejected."""
        with pytest.raises(InvalidPatchError):
            render_document(Document(), target_size=(0, 100))

    def test_document_is_unchanged(self, sample_document: Document) -> None:
        """Test that rendering does not modify the document."""
        before = repr(sample_document)
        render_document(sample_document, target_size=(100, 100), pixel_density=3)
        assert repr(sample_document) == before
