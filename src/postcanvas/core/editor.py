"""The canvas editor: one document and every operation that changes it."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from postcanvas.core.history import DocumentHistory
from postcanvas.core.models import (
    DEFAULT_PLATFORM_ID,
    ELEMENT_CLASSES,
    Document,
    new_element_id,
)
from postcanvas.core.patches import apply_patch, validate_patch
from postcanvas.core.platforms import get_platform
from postcanvas.core.render import render_document
from postcanvas.core.serialization import coerce_background
from postcanvas.core.types import ElementKind, ExportFormat, LayerDirection
from postcanvas.exceptions import ElementNotFoundError, ExportFailedError, InvalidPatchError

if TYPE_CHECKING:
    from postcanvas.core.models import Background, CanvasElement, Template
    from postcanvas.core.render import RenderDescription
    from postcanvas.services.export import ExportSink
    from postcanvas.services.generation import ImageGenerator

logger = structlog.get_logger(__name__)

DUPLICATE_OFFSET = 20.0


def _coerce_enum(enum_cls: type, value: Any, field: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        msg = f"{field} must be one of: {allowed}"
        raise InvalidPatchError(msg, field=field) from None


class CanvasEditor:
    """Owns one document for a single editing session.

    The editor is synchronous and single-owner: every mutation validates its
    input first and then changes the document in place, so a rejected call
    leaves the document untouched. Only collaborator calls (export, image
    generation) are async.

    Attributes:
        selected_id: Id of the currently selected element, if any.
        template_id: Id of the template the document was loaded from, if any.
        history: Undo/redo snapshots for this session.
    """

    def __init__(
        self,
        platform_id: str = DEFAULT_PLATFORM_ID,
        *,
        name: str = "Untitled Design",
        max_history: int = 100,
        export_sink: ExportSink | None = None,
    ) -> None:
        """Initialize an editor with an empty document.

        Args:
            platform_id: Platform the canvas is sized for.
            name: Display name of the design.
            max_history: Maximum number of undo steps kept.
            export_sink: Sink used by ``export_raster``; defaults to the
                Pillow sink.

        Raises:
            InvalidPlatformError: If the platform id is unknown.
        """
        get_platform(platform_id)
        self._document = Document(name=name, platform_id=platform_id)
        self._export_sink = export_sink
        self.history = DocumentHistory(max_history)
        self.selected_id: str | None = None
        self.template_id: str | None = None

    @classmethod
    def from_document(
        cls,
        document: Document,
        *,
        max_history: int = 100,
        export_sink: ExportSink | None = None,
    ) -> CanvasEditor:
        """Create an editor around a copy of an existing document.

        Args:
            document: The document to edit; it is deep-copied.
            max_history: Maximum number of undo steps kept.
            export_sink: Sink used by ``export_raster``.

        Returns:
            A new editor with empty history and no selection.
        """
        editor = cls(document.platform_id, name=document.name, max_history=max_history, export_sink=export_sink)
        editor._document = copy.deepcopy(document)
        return editor

    @property
    def document(self) -> Document:
        """The live document. Mutate it only through editor operations."""
        return self._document

    def snapshot(self) -> Document:
        """Return an independent deep copy of the current document."""
        return copy.deepcopy(self._document)

    def _next_id(self) -> str:
        existing = set(self._document.element_ids)
        element_id = new_element_id()
        while element_id in existing:
            element_id = new_element_id()
        return element_id

    def _record(self) -> None:
        self.history.record(self._document)

    # Document-level operations
    def set_platform(self, platform_id: str) -> None:
        """Switch to another platform, starting from an empty canvas.

        Elements, selection, template reference and history are cleared and the
        background is reset to solid white. The document keeps its id and name.

        Args:
            platform_id: The new platform id.

        Raises:
            InvalidPlatformError: If the id is unknown; nothing changes.
        """
        get_platform(platform_id)
        self._document = Document(
            id=self._document.id,
            name=self._document.name,
            platform_id=platform_id,
            extra=self._document.extra,
        )
        self.selected_id = None
        self.template_id = None
        self.history.clear()
        logger.debug("Platform set", document_id=self._document.id, platform=platform_id)

    def load_template(self, template: Template) -> None:
        """Replace the document contents with a copy of a template.

        Elements and background are deep-copied, so later edits never reach the
        template and loading it twice gives two independent documents.

        Args:
            template: The template to load.

        Raises:
            InvalidPlatformError: If the template targets an unknown platform.
        """
        get_platform(template.platform_id)
        self._document = Document(
            id=self._document.id,
            name=template.name,
            platform_id=template.platform_id,
            elements=copy.deepcopy(list(template.elements)),
            background=copy.deepcopy(template.background),
            extra=self._document.extra,
        )
        self.selected_id = None
        self.template_id = template.id
        self.history.clear()
        logger.debug("Template loaded", document_id=self._document.id, template_id=template.id)

    def rename(self, name: str) -> None:
        """Change the display name of the design.

        Raises:
            InvalidPatchError: If the name is not a non-empty string.
        """
        if not isinstance(name, str) or not name.strip():
            msg = "name must be a non-empty string"
            raise InvalidPatchError(msg, field="name")
        self._record()
        self._document.name = name.strip()

    def set_background(self, background: Background | Mapping[str, Any]) -> None:
        """Replace the background wholesale.

        Args:
            background: A background instance or its ``{"type": ...}`` mapping.

        Raises:
            InvalidBackgroundError: If required fields are missing or malformed.
        """
        value = coerce_background(background)
        self._record()
        self._document.background = value
        logger.debug("Background set", document_id=self._document.id, kind=value.kind.value)

    # Element operations
    def add_element(
        self,
        kind: ElementKind | str,
        props: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> str:
        """Add a new element on top of the others and select it.

        Args:
            kind: Element kind (``text``, ``image`` or ``shape``).
            props: Initial property overrides.
            **kwargs: Further overrides, merged over ``props``.

        Returns:
            The id of the new element.

        Raises:
            InvalidPatchError: If the kind is unknown or a property is invalid.
                Image elements require a ``src``.
        """
        element_kind = _coerce_enum(ElementKind, kind, "type")
        values = validate_patch(element_kind, {**(props or {}), **kwargs})
        if element_kind is ElementKind.IMAGE and not values.get("src"):
            msg = "image elements require a src"
            raise InvalidPatchError(msg, field="src")

        width, height = get_platform(self._document.platform_id).size
        values.setdefault("x", width / 2)
        values.setdefault("y", height / 2)

        element: CanvasElement = ELEMENT_CLASSES[element_kind](id=self._next_id(), **values)  # type: ignore[assignment]
        self._record()
        self._document.elements.append(element)
        self.selected_id = element.id
        logger.debug("Element added", document_id=self._document.id, element_id=element.id, kind=element_kind.value)
        return element.id

    def get_element(self, element_id: str) -> CanvasElement:
        """Get an element by id.

        Raises:
            ElementNotFoundError: If no element has that id.
        """
        element = self._document.find(element_id)
        if element is None:
            raise ElementNotFoundError(element_id)
        return element

    def update_element(self, element_id: str, patch: Mapping[str, Any]) -> None:
        """Merge a partial patch into an element.

        Out-of-range numbers are clamped into their field's range. Unknown ids
        are ignored.

        Args:
            element_id: Id of the element to patch.
            patch: Fields to change.

        Raises:
            InvalidPatchError: If a value has the wrong type or a field does not
                belong to the element's kind. The element is left unchanged.
        """
        element = self._document.find(element_id)
        if element is None:
            return
        values = validate_patch(element.kind, patch)
        if not values:
            return
        self._record()
        apply_patch(element, values)

    def delete_element(self, element_id: str) -> None:
        """Remove an element. Deleting an absent id is a no-op."""
        index = self._document.index_of(element_id)
        if index is None:
            return
        self._record()
        del self._document.elements[index]
        if self.selected_id == element_id:
            self.selected_id = None
        logger.debug("Element deleted", document_id=self._document.id, element_id=element_id)

    def duplicate_element(self, element_id: str) -> str:
        """Copy an element, offset the copy by 20px and put it on top.

        Args:
            element_id: Id of the element to copy.

        Returns:
            The id of the copy, which becomes the selection.

        Raises:
            ElementNotFoundError: If no element has that id.
        """
        clone = copy.deepcopy(self.get_element(element_id))
        clone.id = self._next_id()
        clone.x += DUPLICATE_OFFSET
        clone.y += DUPLICATE_OFFSET
        self._record()
        self._document.elements.append(clone)
        self.selected_id = clone.id
        logger.debug("Element duplicated", document_id=self._document.id, source_id=element_id, element_id=clone.id)
        return clone.id

    def move_layer(self, element_id: str, direction: LayerDirection | str) -> None:
        """Swap an element with its neighbour in z-order.

        ``up`` moves the element one step towards the top. Moving past either
        end, or moving an unknown id, does nothing.

        Raises:
            InvalidPatchError: If the direction is not ``up`` or ``down``.
        """
        step = 1 if _coerce_enum(LayerDirection, direction, "direction") is LayerDirection.UP else -1
        index = self._document.index_of(element_id)
        if index is None:
            return
        target = index + step
        if not 0 <= target < len(self._document.elements):
            return
        self._record()
        elements = self._document.elements
        elements[index], elements[target] = elements[target], elements[index]

    def select(self, element_id: str | None) -> None:
        """Select an element, or clear the selection with None.

        Raises:
            ElementNotFoundError: If the id is not in the document.
        """
        if element_id is not None:
            self.get_element(element_id)
        self.selected_id = element_id

    # History
    def _restore(self, state: Document | None) -> bool:
        if state is None:
            return False
        self._document = state
        if self.selected_id is not None and self._document.find(self.selected_id) is None:
            self.selected_id = None
        return True

    def undo(self) -> bool:
        """Roll back the last change. Returns False if there was none."""
        return self._restore(self.history.undo(self._document))

    def redo(self) -> bool:
        """Re-apply the last undone change. Returns False if there was none."""
        return self._restore(self.history.redo(self._document))

    @property
    def can_undo(self) -> bool:
        """Whether there is a change to undo."""
        return self.history.can_undo()

    @property
    def can_redo(self) -> bool:
        """Whether there is an undone change to redo."""
        return self.history.can_redo()

    # Output
    def render(self, target_size: tuple[int, int] | None = None, pixel_density: float = 1.0) -> RenderDescription:
        """Describe the document in output pixels. Does not modify the document.

        Args:
            target_size: Logical output size; defaults to the platform size.
            pixel_density: Multiplier applied on top of ``target_size``.

        Returns:
            The render description.
        """
        return render_document(self._document, target_size, pixel_density)

    async def export_raster(
        self,
        format: ExportFormat | str = ExportFormat.PNG,  # noqa: A002
        target_size: tuple[int, int] | None = None,
        pixel_density: float = 1.0,
    ) -> bytes:
        """Render the document and encode it through the export sink.

        Args:
            format: ``png`` or ``jpg``.
            target_size: Logical output size; defaults to the platform size.
            pixel_density: Multiplier applied on top of ``target_size``.

        Returns:
            The encoded image.

        Raises:
            InvalidPatchError: If the format or density is invalid.
            ExportFailedError: If the sink fails; ``cause`` holds the error.
        """
        export_format = _coerce_enum(ExportFormat, format, "format")
        description = self.render(target_size, pixel_density)

        sink = self._export_sink
        if sink is None:
            from postcanvas.services.export import PillowExportSink

            sink = self._export_sink = PillowExportSink()

        try:
            data = await sink.encode(description, export_format, description.pixel_density)
        except ExportFailedError:
            raise
        except Exception as exc:
            logger.warning("Export failed", document_id=self._document.id, error=str(exc))
            msg = f"Export failed: {exc}"
            raise ExportFailedError(msg, cause=exc) from exc

        if not data:
            msg = "Export sink returned no data"
            raise ExportFailedError(msg)
        logger.debug("Export finished", document_id=self._document.id, format=export_format.value, size=len(data))
        return data

    async def add_generated_image(self, generator: ImageGenerator, prompt: str, **props: Any) -> str:
        """Generate an image and add it as a new element.

        Results are appended when they arrive, so concurrent generations land
        in completion order.

        Args:
            generator: The image generation collaborator.
            prompt: Text prompt passed to the generator.
            **props: Further image properties (position, size, opacity).

        Returns:
            The id of the new image element.
        """
        src = await generator.generate(prompt)
        return self.add_element(ElementKind.IMAGE, {**props, "src": src})
