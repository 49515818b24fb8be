"""Tests for element patch validation."""

from __future__ import annotations

import math

import pytest

from postcanvas.core.models import ShapeElement
from postcanvas.core.patches import apply_patch, validate_color, validate_patch
from postcanvas.core.types import ElementKind, FontWeight, ShapeKind
from postcanvas.exceptions import InvalidPatchError


class TestValidatePatch:
    """Tests for validate_patch."""

    def test_camel_case_aliases(self) -> None:
        """Test that camelCase names map to Python field names."""
        values = validate_patch(ElementKind.TEXT, {"fontSize": 32, "fontWeight": "800", "maxWidth": 400})
        assert values == {"font_size": 32, "font_weight": FontWeight.EXTRABOLD, "max_width": 400.0}

    def test_opacity_is_clamped(self) -> None:
        """Test that out-of-range opacity is clamped into [0, 1]."""
        assert validate_patch(ElementKind.SHAPE, {"opacity": 5})["opacity"] == 1.0
        assert validate_patch(ElementKind.IMAGE, {"opacity": -2})["opacity"] == 0.0

    def test_font_size_is_clamped_and_rounded(self) -> None:
        """Test that font sizes are clamped to 8..200 and rounded."""
        assert validate_patch(ElementKind.TEXT, {"font_size": 2})["font_size"] == 8
        assert validate_patch(ElementKind.TEXT, {"font_size": 999})["font_size"] == 200
        assert validate_patch(ElementKind.TEXT, {"font_size": 31.6})["font_size"] == 32

    def test_minimum_sizes(self) -> None:
        """Test the per-kind minimum widths and heights."""
        assert validate_patch(ElementKind.SHAPE, {"width": 1})["width"] == 10.0
        assert validate_patch(ElementKind.IMAGE, {"height": 1})["height"] == 50.0

    def test_wrong_type_rejected(self) -> None:
        """Test that non-numeric values are rejected with the field name."""
        with pytest.raises(InvalidPatchError) as exc_info:
            validate_patch(ElementKind.SHAPE, {"width": "wide"})
        assert exc_info.value.field == "width"

    def test_bool_is_not_a_number(self) -> None:
        """Test that booleans are not accepted as numbers."""
        with pytest.raises(InvalidPatchError):
            validate_patch(ElementKind.TEXT, {"x": True})

    def test_non_finite_rejected(self) -> None:
        """Test that NaN and infinity are rejected."""
        with pytest.raises(InvalidPatchError):
            validate_patch(ElementKind.TEXT, {"y": math.nan})

    def test_field_of_other_kind_rejected(self) -> None:
        """Test that a field from another element kind is rejected."""
        with pytest.raises(InvalidPatchError) as exc_info:
            validate_patch(ElementKind.TEXT, {"fill": "#000000"})
        assert exc_info.value.field == "fill"

    def test_immutable_fields_rejected(self) -> None:
        """Test that id and type cannot be patched."""
        for key in ("id", "type", "kind"):
            with pytest.raises(InvalidPatchError):
                validate_patch(ElementKind.SHAPE, {key: "x"})

    def test_unknown_enum_member(self) -> None:
        """Test that unknown enum values are rejected."""
        with pytest.raises(InvalidPatchError) as exc_info:
            validate_patch(ElementKind.SHAPE, {"shapeKind": "hexagon"})
        assert exc_info.value.field == "shape_kind"

    def test_numeric_font_weight(self) -> None:
        """Test that numeric font weights are accepted."""
        assert validate_patch(ElementKind.TEXT, {"font_weight": 900})["font_weight"] is FontWeight.BLACK

    def test_empty_font_family_rejected(self) -> None:
        """Test that an empty font family is rejected."""
        with pytest.raises(InvalidPatchError):
            validate_patch(ElementKind.TEXT, {"font_family": "  "})

    def test_max_width_can_be_cleared(self) -> None:
        """Test that max_width accepts None."""
        assert validate_patch(ElementKind.TEXT, {"max_width": None}) == {"max_width": None}


class TestValidateColor:
    """Tests for validate_color."""

    def test_long_form(self) -> None:
        """Test a six-digit colour."""
        assert validate_color("fill", "#A1B2C3") == "#A1B2C3"

    def test_short_form_expanded(self) -> None:
        """Test that #RGB is expanded to #RRGGBB."""
        assert validate_color("fill", "#abc") == "#aabbcc"

    @pytest.mark.parametrize("value", ["red", "#12345", "123456", 0xFFFFFF, None])
    def test_invalid(self, value: object) -> None:
        """Test that malformed colours are rejected."""
        with pytest.raises(InvalidPatchError):
            validate_color("fill", value)


class TestApplyPatch:
    """Tests for apply_patch."""

    def test_assigns_values(self) -> None:
        """Test that validated values are set on the element."""
        shape = ShapeElement()
        apply_patch(shape, validate_patch(ElementKind.SHAPE, {"shapeKind": "circle", "fill": "#000000"}))
        assert shape.shape_kind is ShapeKind.CIRCLE
        assert shape.fill == "#000000"
