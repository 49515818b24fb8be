"""Tests for mapping documents to and from persisted records."""

from __future__ import annotations

import json

import pytest

from postcanvas.core.models import ColorBackground, Document, GradientBackground, ShapeElement, TextElement
from postcanvas.core.serialization import (
    background_from_dict,
    background_to_dict,
    document_from_record,
    document_to_record,
    element_from_dict,
    element_to_dict,
)
from postcanvas.core.types import FontWeight, ShapeKind
from postcanvas.exceptions import DocumentFormatError, InvalidBackgroundError


class TestElementMapping:
    """Tests for element_to_dict and element_from_dict."""

    def test_text_uses_camel_case(self) -> None:
        """Test the persisted key names of a text element."""
        data = element_to_dict(TextElement(id="t1", content="Hi", font_size=30, font_weight=FontWeight.BLACK))
        assert data["type"] == "text"
        assert data["fontSize"] == 30
        assert data["fontWeight"] == "900"
        assert data["fontFamily"] == "Inter"
        assert "font_size" not in data
        assert "extra" not in data

    def test_shape_kind_key(self) -> None:
        """Test the persisted key of a shape's kind."""
        data = element_to_dict(ShapeElement(id="s1", shape_kind=ShapeKind.CIRCLE))
        assert data["type"] == "shape"
        assert data["shapeKind"] == "circle"

    def test_unknown_fields_survive(self) -> None:
        """Test that keys this version does not know are kept."""
        data = {"id": "t1", "type": "text", "content": "Hi", "rotation": 12, "locked": True}
        element = element_from_dict(data)
        assert element.extra == {"rotation": 12, "locked": True}
        assert element_to_dict(element)["rotation"] == 12

    def test_known_fields_win_over_extra(self) -> None:
        """Test that extra keys cannot shadow real fields on output."""
        element = TextElement(id="t1", content="real", extra={"content": "stale"})
        assert element_to_dict(element)["content"] == "real"

    @pytest.mark.parametrize(
        "data",
        [
            {"id": "x", "type": "video"},
            {"type": "text"},
            {"id": "", "type": "text"},
            {"id": "x", "type": "shape", "fill": "blue"},
        ],
    )
    def test_malformed_elements(self, data: dict) -> None:
        """Test that malformed element mappings raise DocumentFormatError."""
        with pytest.raises(DocumentFormatError):
            element_from_dict(data)


class TestBackgroundMapping:
    """Tests for background mapping."""

    def test_color(self) -> None:
        """Test a colour background mapping."""
        assert background_to_dict(ColorBackground("#112233")) == {"type": "color", "value": "#112233"}
        assert background_from_dict({"type": "color", "value": "#112233"}) == ColorBackground("#112233")

    def test_gradient_default_direction(self) -> None:
        """Test that a gradient without direction gets the default."""
        background = background_from_dict({"type": "gradient", "start": "#000000", "end": "#FFFFFF"})
        assert background == GradientBackground(start="#000000", end="#FFFFFF", direction="135deg")

    def test_missing_field(self) -> None:
        """Test that a missing field is reported by name."""
        with pytest.raises(InvalidBackgroundError) as exc_info:
            background_from_dict({"type": "gradient", "start": "#000000"})
        assert exc_info.value.field == "end"

    def test_unknown_background_keys_survive(self) -> None:
        """Test that background keys this version does not know are kept."""
        data = {"type": "gradient", "start": "#000000", "end": "#FFFFFF", "stops": [0, 0.5, 1]}

        background = background_from_dict(data)

        assert background.extra == {"stops": [0, 0.5, 1]}
        assert background_to_dict(background) == {**data, "direction": "135deg"}

    def test_known_background_fields_win_over_extra(self) -> None:
        """Test that extra keys cannot shadow real background fields on output."""
        background = ColorBackground("#112233", extra={"value": "#000000", "pattern": "dots"})
        assert background_to_dict(background) == {"type": "color", "value": "#112233", "pattern": "dots"}


class TestDocumentRecord:
    """Tests for whole-document records."""

    def test_record_shape(self, sample_document: Document) -> None:
        """Test the top-level keys of a record."""
        record = document_to_record(sample_document)
        assert set(record) == {"id", "name", "platform", "elements", "background", "updated_at"}
        assert record["platform"] == "instagram-post"
        assert [e["id"] for e in record["elements"]] == sample_document.element_ids
        json.dumps(record)

    def test_unknown_record_keys_survive(self, sample_document: Document) -> None:
        """Test that top-level keys this version does not know are kept."""
        record = {**document_to_record(sample_document), "folderId": "f-7", "tags": ["sale"]}

        restored = document_from_record(record)

        assert restored.extra == {"folderId": "f-7", "tags": ["sale"]}
        again = document_to_record(restored)
        assert again["folderId"] == "f-7"
        assert again["tags"] == ["sale"]

    def test_round_trip_with_gradient(self, sample_document: Document) -> None:
        """Test that every element kind and a gradient survive a round-trip."""
        restored = document_from_record(json.loads(json.dumps(document_to_record(sample_document))))
        assert restored == sample_document

    def test_round_trip_with_color(self, sample_document: Document) -> None:
        """Test the round-trip with a colour background."""
        sample_document.background = ColorBackground("#FFFFFF")
        restored = document_from_record(document_to_record(sample_document))
        assert restored.background == ColorBackground("#FFFFFF")
        assert restored.elements == sample_document.elements

    def test_restored_document_is_independent(self, sample_document: Document) -> None:
        """Test that a restored document shares nothing with the record."""
        record = document_to_record(sample_document)
        restored = document_from_record(record)
        restored.elements[0].x = 1
        assert record["elements"][0]["x"] == 540

    def test_json_string_columns(self, sample_document: Document) -> None:
        """Test that element and background columns may be JSON text."""
        record = document_to_record(sample_document)
        record["elements"] = json.dumps(record["elements"])
        record["background"] = json.dumps(record["background"])
        assert document_from_record(record) == sample_document

    def test_unknown_platform(self, sample_document: Document) -> None:
        """Test that a record for an unknown platform is rejected."""
        record = document_to_record(sample_document)
        record["platform"] = "geocities-banner"
        with pytest.raises(DocumentFormatError):
            document_from_record(record)

    def test_duplicate_ids(self, sample_document: Document) -> None:
        """Test that duplicate element ids are rejected."""
        record = document_to_record(sample_document)
        record["elements"].append(dict(record["elements"][0]))
        with pytest.raises(DocumentFormatError):
            document_from_record(record)

    def test_invalid_json(self, sample_document: Document) -> None:
        """Test that broken JSON text is rejected."""
        record = document_to_record(sample_document)
        record["elements"] = "[{"
        with pytest.raises(DocumentFormatError):
            document_from_record(record)
