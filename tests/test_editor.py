"""Tests for the CanvasEditor document operations."""

from __future__ import annotations

import asyncio
import copy

import pytest

from postcanvas.core.editor import DUPLICATE_OFFSET, CanvasEditor
from postcanvas.core.models import (
    ColorBackground,
    Document,
    GradientBackground,
    ImageElement,
    ShapeElement,
    Template,
    TextElement,
)
from postcanvas.core.types import ElementKind, ExportFormat, ShapeKind
from postcanvas.exceptions import (
    ElementNotFoundError,
    ExportFailedError,
    InvalidBackgroundError,
    InvalidPatchError,
    InvalidPlatformError,
)


@pytest.fixture
def template() -> Template:
    """Create a template with a single text element."""
    return Template(
        id="sale",
        name="Sale",
        platform_id="facebook-post",
        background=GradientBackground(start="#000000", end="#FFFFFF"),
        elements=(TextElement(id="headline", x=600, y=315, content="SALE"),),
    )


class TestDocumentOperations:
    """Tests for document-level editor operations."""

    def test_new_editor(self, editor: CanvasEditor) -> None:
        """Test the initial state of an editor."""
        assert editor.document.platform_id == "instagram-post"
        assert editor.document.elements == []
        assert editor.selected_id is None
        assert not editor.can_undo

    def test_unknown_platform(self) -> None:
        """Test that an editor cannot be created for an unknown platform."""
        with pytest.raises(InvalidPlatformError):
            CanvasEditor("friendster-post")

    def test_set_platform_clears_canvas(self, editor: CanvasEditor) -> None:
        """Test that switching platforms empties the canvas but keeps identity."""
        editor.add_element("text")
        editor.set_background({"type": "color", "value": "#000000"})
        document_id = editor.document.id

        editor.set_platform("instagram-story")

        assert editor.document.platform_id == "instagram-story"
        assert editor.document.elements == []
        assert editor.document.background == ColorBackground()
        assert editor.document.id == document_id
        assert editor.selected_id is None
        assert not editor.can_undo

    def test_set_platform_unknown_leaves_document(self, editor: CanvasEditor) -> None:
        """Test that an unknown platform changes nothing."""
        element_id = editor.add_element("text")
        with pytest.raises(InvalidPlatformError):
            editor.set_platform("nope")
        assert editor.document.platform_id == "instagram-post"
        assert editor.document.element_ids == [element_id]

    def test_load_template(self, editor: CanvasEditor, template: Template) -> None:
        """Test that loading a template copies its contents."""
        editor.load_template(template)
        assert editor.document.name == "Sale"
        assert editor.document.platform_id == "facebook-post"
        assert editor.document.element_ids == ["headline"]
        assert editor.document.background == template.background
        assert editor.document.background is not template.background
        assert editor.template_id == "sale"

    def test_template_isolation(self, template: Template) -> None:
        """Test that edits to one loaded copy reach neither the other copy nor the template."""
        a, b = CanvasEditor(), CanvasEditor()
        a.load_template(template)
        b.load_template(template)

        a.update_element("headline", {"content": "CHANGED", "fontSize": 100})

        assert b.get_element("headline").content == "SALE"
        assert b.get_element("headline").font_size == 48
        assert template.elements[0].content == "SALE"
        assert a.get_element("headline") is not template.elements[0]

    def test_rename(self, editor: CanvasEditor) -> None:
        """Test renaming a design."""
        editor.rename("  Launch Day ")
        assert editor.document.name == "Launch Day"

    def test_rename_empty(self, editor: CanvasEditor) -> None:
        """Test that an empty name is rejected."""
        with pytest.raises(InvalidPatchError):
            editor.rename("   ")

    def test_set_gradient_background(self, editor: CanvasEditor) -> None:
        """Test setting a gradient background from a mapping."""
        editor.set_background({"type": "gradient", "start": "#FF0000", "end": "#0000FF", "direction": "to right"})
        assert editor.document.background == GradientBackground(start="#FF0000", end="#0000FF", direction="to right")

    def test_set_background_instance(self, editor: CanvasEditor) -> None:
        """Test setting a background instance."""
        editor.set_background(ColorBackground(value="#abc"))
        assert editor.document.background == ColorBackground(value="#aabbcc")

    @pytest.mark.parametrize(
        "background",
        [
            {"type": "color"},
            {"type": "pattern", "value": "#FFFFFF"},
            {"type": "gradient", "start": "#FF0000"},
            {"type": "gradient", "start": "#FF0000", "end": "#00FF00", "direction": "sideways"},
            {"type": "color", "value": "white"},
        ],
    )
    def test_invalid_background(self, editor: CanvasEditor, background: dict) -> None:
        """Test that malformed backgrounds are rejected and nothing changes."""
        with pytest.raises(InvalidBackgroundError):
            editor.set_background(background)
        assert editor.document.background == ColorBackground()


class TestAddElement:
    """Tests for adding elements."""

    def test_add_text_defaults_to_center(self, editor: CanvasEditor) -> None:
        """Test that new elements are centered and selected."""
        element_id = editor.add_element("text", content="Hello")
        element = editor.get_element(element_id)
        assert isinstance(element, TextElement)
        assert (element.x, element.y) == (540, 540)
        assert element.content == "Hello"
        assert editor.selected_id == element_id

    def test_add_with_props_and_kwargs(self, editor: CanvasEditor) -> None:
        """Test that keyword overrides win over props."""
        element_id = editor.add_element(ElementKind.SHAPE, {"fill": "#000000", "width": 50}, width=80)
        shape = editor.get_element(element_id)
        assert isinstance(shape, ShapeElement)
        assert shape.fill == "#000000"
        assert shape.width == 80

    def test_add_image_requires_src(self, editor: CanvasEditor) -> None:
        """Test that an image without a source is rejected."""
        with pytest.raises(InvalidPatchError) as exc_info:
            editor.add_element("image")
        assert exc_info.value.field == "src"
        assert editor.document.elements == []

    def test_add_unknown_kind(self, editor: CanvasEditor) -> None:
        """Test that unknown element kinds are rejected."""
        with pytest.raises(InvalidPatchError) as exc_info:
            editor.add_element("video")
        assert exc_info.value.field == "type"

    def test_new_element_is_topmost(self, editor: CanvasEditor) -> None:
        """Test that every added element lands on top."""
        for kind in ("text", "shape", "text", "shape"):
            element_id = editor.add_element(kind)
            assert editor.document.elements[-1].id == element_id

    def test_ids_are_unique(self, editor: CanvasEditor) -> None:
        """Test that ids stay unique across adds and duplicates."""
        first = editor.add_element("shape")
        for _ in range(10):
            editor.add_element("text")
            editor.duplicate_element(first)
        ids = editor.document.element_ids
        assert len(ids) == 21
        assert len(set(ids)) == len(ids)


class TestUpdateElement:
    """Tests for patching elements."""

    def test_update(self, editor: CanvasEditor) -> None:
        """Test a simple patch."""
        element_id = editor.add_element("text")
        editor.update_element(element_id, {"content": "New", "fontSize": 64, "x": 10})
        element = editor.get_element(element_id)
        assert element.content == "New"
        assert element.font_size == 64
        assert element.x == 10

    def test_opacity_clamped(self, editor: CanvasEditor, png_data_uri: str) -> None:
        """Test that opacity 5 is stored as 1.0."""
        element_id = editor.add_element("image", src=png_data_uri, opacity=0.3)
        editor.update_element(element_id, {"opacity": 5})
        assert editor.get_element(element_id).opacity == 1.0

    def test_invalid_patch_leaves_element(self, editor: CanvasEditor) -> None:
        """Test that a rejected patch changes nothing, even its valid fields."""
        element_id = editor.add_element("shape", fill="#FF0000")
        before = copy.deepcopy(editor.get_element(element_id))
        with pytest.raises(InvalidPatchError):
            editor.update_element(element_id, {"width": 500, "fill": "not-a-colour"})
        assert editor.get_element(element_id) == before

    def test_unknown_id_is_ignored(self, editor: CanvasEditor) -> None:
        """Test that patching a missing element does nothing."""
        editor.add_element("text")
        undo_count = editor.history.undo_count
        editor.update_element("missing", {"x": 1})
        assert editor.history.undo_count == undo_count

    def test_empty_patch_records_nothing(self, editor: CanvasEditor) -> None:
        """Test that an empty patch does not create an undo step."""
        element_id = editor.add_element("text")
        undo_count = editor.history.undo_count
        editor.update_element(element_id, {})
        assert editor.history.undo_count == undo_count


class TestDeleteAndDuplicate:
    """Tests for deleting and duplicating elements."""

    def test_delete_clears_selection(self, editor: CanvasEditor) -> None:
        """Test that deleting the selected element clears the selection."""
        element_id = editor.add_element("text")
        editor.delete_element(element_id)
        assert editor.document.elements == []
        assert editor.selected_id is None

    def test_delete_is_idempotent(self, editor: CanvasEditor) -> None:
        """Test that deleting twice does not error and leaves the same state."""
        keep = editor.add_element("shape")
        gone = editor.add_element("text")
        editor.delete_element(gone)
        after_first = copy.deepcopy(editor.document)
        editor.delete_element(gone)
        assert editor.document == after_first
        assert editor.document.element_ids == [keep]

    def test_duplicate_offsets_copy(self, editor: CanvasEditor) -> None:
        """Test that a duplicate is offset and selected."""
        source = editor.add_element("shape", x=100, y=100, fill="#123456")
        clone_id = editor.duplicate_element(source)
        clone = editor.get_element(clone_id)
        assert clone_id != source
        assert (clone.x, clone.y) == (100 + DUPLICATE_OFFSET, 100 + DUPLICATE_OFFSET)
        assert clone.fill == "#123456"
        assert editor.selected_id == clone_id

    def test_duplicate_copies_extra(self, editor: CanvasEditor) -> None:
        """Test that a duplicate does not share unknown fields with its source."""
        source = editor.add_element("text")
        editor.get_element(source).extra["rotation"] = 10
        clone = editor.get_element(editor.duplicate_element(source))
        clone.extra["rotation"] = 45
        assert editor.get_element(source).extra["rotation"] == 10

    def test_duplicate_missing(self, editor: CanvasEditor) -> None:
        """Test that duplicating a missing element raises."""
        with pytest.raises(ElementNotFoundError):
            editor.duplicate_element("missing")

    def test_instagram_scenario(self) -> None:
        """Test duplicating a rectangle on an Instagram post."""
        editor = CanvasEditor("instagram-post")
        editor.set_background({"type": "color", "value": "#FFFFFF"})
        editor.add_element("text", content="SALE", fontSize=48, x=540, y=540)
        shape_id = editor.add_element(
            "shape",
            shapeKind="rectangle",
            x=200,
            y=200,
            width=100,
            height=100,
            fill="#FF0000",
            opacity=1,
        )

        clone_id = editor.duplicate_element(shape_id)

        elements = editor.document.elements
        assert len(elements) == 3
        assert elements[2].id == clone_id
        assert (elements[2].x, elements[2].y) == (220, 220)
        assert elements[2].shape_kind is ShapeKind.RECTANGLE


class TestMoveLayer:
    """Tests for z-order changes."""

    def test_move_up(self, editor: CanvasEditor) -> None:
        """Test that moving up swaps with the next element only."""
        a, b, c = (editor.add_element("text") for _ in range(3))
        editor.move_layer(a, "up")
        assert editor.document.element_ids == [b, a, c]

    def test_move_down(self, editor: CanvasEditor) -> None:
        """Test that moving down swaps with the previous element."""
        a, b, c = (editor.add_element("text") for _ in range(3))
        editor.move_layer(c, "down")
        assert editor.document.element_ids == [a, c, b]

    def test_boundaries_are_noops(self, editor: CanvasEditor) -> None:
        """Test that moving past either end leaves the same objects in order."""
        a, _, c = (editor.add_element("shape") for _ in range(3))
        before = list(editor.document.elements)
        undo_count = editor.history.undo_count

        editor.move_layer(c, "up")
        editor.move_layer(a, "down")
        editor.move_layer("missing", "up")

        assert all(x is y for x, y in zip(editor.document.elements, before, strict=True))
        assert editor.history.undo_count == undo_count

    def test_invalid_direction(self, editor: CanvasEditor) -> None:
        """Test that unknown directions are rejected."""
        element_id = editor.add_element("text")
        with pytest.raises(InvalidPatchError):
            editor.move_layer(element_id, "sideways")


class TestSelection:
    """Tests for selection."""

    def test_select_and_clear(self, editor: CanvasEditor) -> None:
        """Test selecting an element and clearing the selection."""
        a = editor.add_element("text")
        editor.add_element("text")
        editor.select(a)
        assert editor.selected_id == a
        editor.select(None)
        assert editor.selected_id is None

    def test_select_missing(self, editor: CanvasEditor) -> None:
        """Test that selecting a missing element raises."""
        with pytest.raises(ElementNotFoundError):
            editor.select("missing")


class TestUndoRedo:
    """Tests for undo and redo."""

    def test_undo_restores_previous_state(self, editor: CanvasEditor) -> None:
        """Test that undo rolls back one change at a time."""
        element_id = editor.add_element("text", content="one")
        editor.update_element(element_id, {"content": "two"})

        assert editor.undo()
        assert editor.get_element(element_id).content == "one"
        assert editor.undo()
        assert editor.document.elements == []
        assert not editor.undo()

    def test_redo(self, editor: CanvasEditor) -> None:
        """Test that redo re-applies an undone change."""
        element_id = editor.add_element("text", content="one")
        editor.update_element(element_id, {"content": "two"})
        editor.undo()

        assert editor.can_redo
        assert editor.redo()
        assert editor.get_element(element_id).content == "two"
        assert not editor.redo()

    def test_new_edit_clears_redo(self, editor: CanvasEditor) -> None:
        """Test that a new change discards redo history."""
        editor.add_element("text")
        editor.undo()
        editor.add_element("shape")
        assert not editor.can_redo

    def test_undo_clears_dangling_selection(self, editor: CanvasEditor) -> None:
        """Test that undoing an add drops the selection of the removed element."""
        editor.add_element("text")
        editor.undo()
        assert editor.selected_id is None

    def test_history_limit(self) -> None:
        """Test that history keeps at most max_history steps."""
        editor = CanvasEditor(max_history=3)
        for _ in range(5):
            editor.add_element("text")
        assert editor.history.undo_count == 3


class TestExportRaster:
    """Tests for raster export through the sink."""

    @pytest.mark.asyncio
    async def test_export_uses_sink(self, sink) -> None:
        """Test that the sink receives the render description."""
        editor = CanvasEditor("twitter-post", export_sink=sink)
        editor.add_element("shape")

        data = await editor.export_raster("jpg", pixel_density=2)

        assert data == b"encoded"
        description, export_format, density = sink.calls[0]
        assert description.size == (2400, 1350)
        assert export_format is ExportFormat.JPG
        assert density == 2

    @pytest.mark.asyncio
    async def test_sink_error_wrapped(self) -> None:
        """Test that sink failures surface as ExportFailedError with a cause."""

        class BrokenSink:
            async def encode(self, description, format, pixel_density) -> bytes:  # noqa: A002
                raise OSError("disk full")

        editor = CanvasEditor(export_sink=BrokenSink())
        with pytest.raises(ExportFailedError) as exc_info:
            await editor.export_raster()
        assert isinstance(exc_info.value.cause, OSError)

    @pytest.mark.asyncio
    async def test_empty_output_rejected(self, sink) -> None:
        """Test that an empty encoding is treated as a failure."""
        sink.payload = b""
        editor = CanvasEditor(export_sink=sink)
        with pytest.raises(ExportFailedError):
            await editor.export_raster()

    @pytest.mark.asyncio
    async def test_invalid_format(self, sink) -> None:
        """Test that unknown formats are rejected before encoding."""
        editor = CanvasEditor(export_sink=sink)
        with pytest.raises(InvalidPatchError):
            await editor.export_raster("gif")
        assert sink.calls == []


class TestGeneratedImages:
    """Tests for adding AI-generated images."""

    @pytest.mark.asyncio
    async def test_add_generated_image(self, editor: CanvasEditor, png_data_uri: str) -> None:
        """Test that a generated image is added as a normal image element."""

        class Generator:
            async def generate(self, prompt: str) -> str:
                return png_data_uri

        element_id = await editor.add_generated_image(Generator(), "a red square", width=120)
        image = editor.get_element(element_id)
        assert isinstance(image, ImageElement)
        assert image.src == png_data_uri
        assert image.width == 120

    @pytest.mark.asyncio
    async def test_concurrent_generations_append_in_completion_order(self, editor: CanvasEditor) -> None:
        """Test that the generation finishing last lands on top."""

        class DelayedGenerator:
            def __init__(self, delay: float, src: str) -> None:
                self.delay = delay
                self.src = src

            async def generate(self, prompt: str) -> str:
                await asyncio.sleep(self.delay)
                return self.src

        slow, fast = await asyncio.gather(
            editor.add_generated_image(DelayedGenerator(0.05, "https://example.com/slow.png"), "slow"),
            editor.add_generated_image(DelayedGenerator(0.0, "https://example.com/fast.png"), "fast"),
        )
        assert editor.document.element_ids == [fast, slow]


class TestFromDocument:
    """Tests for editing an existing document."""

    def test_from_document_copies(self, sample_document: Document) -> None:
        """Test that the editor works on a copy of the document."""
        editor = CanvasEditor.from_document(sample_document)
        editor.update_element("el-text", {"content": "Changed"})
        assert sample_document.find("el-text").content == "Summer Sale"
        assert editor.document.id == sample_document.id
        assert not editor.can_undo
