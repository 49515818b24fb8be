"""Litestar controllers for postcanvas API endpoints."""

from __future__ import annotations

import io
import zipfile
from typing import Any, ClassVar
from uuid import UUID

from litestar import Controller, delete, get, patch, post, put
from litestar.response import Response
from litestar.status_codes import HTTP_204_NO_CONTENT

from postcanvas.core.platforms import list_platforms
from postcanvas.exceptions import DocumentNotFoundError, SessionNotFoundError
from postcanvas.services.design import DesignService
from postcanvas.services.export import ExportService
from postcanvas.web.dto import (
    BatchExportDTO,
    CreateElementDTO,
    CreateSessionDTO,
    DesignSummaryDTO,
    GenerateImageDTO,
    LoadTemplateDTO,
    MoveLayerDTO,
    PlatformResponseDTO,
    RenameDTO,
    SelectDTO,
    SessionResponseDTO,
    SetPlatformDTO,
    TemplateResponseDTO,
    description_to_dict,
    design_to_summary,
    element_to_response,
    platform_to_response,
    session_to_response,
    template_to_response,
)


class PlatformController(Controller):
    """Controller for the platform size catalog."""

    path = "/platforms"
    tags: ClassVar[list[str]] = ["Platforms"]

    @get("/")
    async def list_platforms(self, family: str | None = None) -> list[PlatformResponseDTO]:
        """List supported platform sizes.

        Args:
            family: Optional platform family such as ``instagram``.

        Returns:
            Platform sizes in catalog order.
        """
        return [platform_to_response(p) for p in list_platforms(family)]


class TemplateController(Controller):
    """Controller for browsing templates."""

    path = "/templates"
    tags: ClassVar[list[str]] = ["Templates"]

    @get("/")
    async def list_templates(
        self,
        design_service: DesignService,
        platform_id: str | None = None,
        q: str | None = None,
        category: str | None = None,
    ) -> list[TemplateResponseDTO]:
        """List templates, most popular first.

        Args:
            design_service: The design service instance (injected).
            platform_id: Platform id or family to filter by.
            q: Case-insensitive text search over names and categories.
            category: Category to filter by; ``all`` disables the filter.

        Returns:
            Matching templates.
        """
        templates = await design_service.list_templates(platform_id, query=q, category=category)
        return [template_to_response(t) for t in templates]


class SessionController(Controller):
    """Controller for editing sessions.

    A session owns one editor. Every mutating endpoint answers with the
    updated session so clients can redraw from a single response.
    """

    path = "/sessions"
    tags: ClassVar[list[str]] = ["Sessions"]

    @post("/")
    async def open_session(self, data: CreateSessionDTO, design_service: DesignService) -> SessionResponseDTO:
        """Open a session with an empty canvas.

        Raises:
            InvalidPlatformError: If the platform id is unknown.
        """
        session = design_service.open_session(data.platform_id, data.name)
        return session_to_response(session)

    @get("/")
    async def list_sessions(self, design_service: DesignService) -> list[SessionResponseDTO]:
        """List open sessions, oldest first."""
        return [session_to_response(s) for s in design_service.list_sessions()]

    @get("/{session_id:uuid}")
    async def get_session(self, session_id: UUID, design_service: DesignService) -> SessionResponseDTO:
        """Get a session with its document.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        return session_to_response(design_service.get_session(session_id))

    @delete("/{session_id:uuid}", status_code=HTTP_204_NO_CONTENT)
    async def close_session(self, session_id: UUID, design_service: DesignService) -> None:
        """Close a session without saving.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        if not design_service.close_session(session_id):
            raise SessionNotFoundError(session_id)

    @patch("/{session_id:uuid}")
    async def rename(self, session_id: UUID, data: RenameDTO, design_service: DesignService) -> SessionResponseDTO:
        """Rename the session's design."""
        session = design_service.get_session(session_id)
        session.editor.rename(data.name)
        return session_to_response(session)

    @put("/{session_id:uuid}/platform")
    async def set_platform(
        self,
        session_id: UUID,
        data: SetPlatformDTO,
        design_service: DesignService,
    ) -> SessionResponseDTO:
        """Switch the canvas to another platform size.

        The canvas is cleared and the undo history dropped.

        Raises:
            InvalidPlatformError: If the platform id is unknown.
        """
        session = design_service.get_session(session_id)
        session.editor.set_platform(data.platform_id)
        return session_to_response(session)

    @post("/{session_id:uuid}/template")
    async def load_template(
        self,
        session_id: UUID,
        data: LoadTemplateDTO,
        design_service: DesignService,
    ) -> SessionResponseDTO:
        """Replace the canvas with a copy of a template.

        Raises:
            TemplateNotFoundError: If the template does not exist.
        """
        session = await design_service.load_template(session_id, data.template_id)
        return session_to_response(session)

    @put("/{session_id:uuid}/background")
    async def set_background(
        self,
        session_id: UUID,
        data: dict[str, Any],
        design_service: DesignService,
    ) -> SessionResponseDTO:
        """Replace the background.

        The body is ``{"type": "color", "value": ...}`` or
        ``{"type": "gradient", "start": ..., "end": ..., "direction": ...}``.

        Raises:
            InvalidBackgroundError: If the body does not describe a valid background.
        """
        session = design_service.get_session(session_id)
        session.editor.set_background(data)
        return session_to_response(session)

    @put("/{session_id:uuid}/selection")
    async def select(self, session_id: UUID, data: SelectDTO, design_service: DesignService) -> SessionResponseDTO:
        """Select an element, or clear the selection.

        Raises:
            ElementNotFoundError: If the element does not exist.
        """
        session = design_service.get_session(session_id)
        session.editor.select(data.element_id)
        return session_to_response(session)

    @post("/{session_id:uuid}/undo")
    async def undo(self, session_id: UUID, design_service: DesignService) -> SessionResponseDTO:
        """Undo the last change. Does nothing when there is nothing to undo."""
        session = design_service.get_session(session_id)
        session.editor.undo()
        return session_to_response(session)

    @post("/{session_id:uuid}/redo")
    async def redo(self, session_id: UUID, design_service: DesignService) -> SessionResponseDTO:
        """Redo the last undone change. Does nothing when there is nothing to redo."""
        session = design_service.get_session(session_id)
        session.editor.redo()
        return session_to_response(session)

    @get("/{session_id:uuid}/render")
    async def render(
        self,
        session_id: UUID,
        design_service: DesignService,
        width: int | None = None,
        height: int | None = None,
        pixel_density: float = 1.0,
    ) -> dict[str, Any]:
        """Get the render description of the session's document.

        Args:
            session_id: The session identifier.
            design_service: The design service instance (injected).
            width: Logical output width; the platform width if omitted.
            height: Logical output height; the platform height if omitted.
            pixel_density: Device pixel ratio.

        Returns:
            The document laid out in absolute output pixels.
        """
        editor = design_service.get_session(session_id).editor
        target_size = (width, height) if width is not None and height is not None else None
        return description_to_dict(editor.render(target_size, pixel_density))

    @get("/{session_id:uuid}/export/{file_format:str}")
    async def export(
        self,
        session_id: UUID,
        file_format: str,
        design_service: DesignService,
        pixel_density: float | None = None,
    ) -> Response[bytes]:
        """Export the session's document as PNG, JPEG or SVG.

        Args:
            session_id: The session identifier.
            file_format: ``png``, ``jpg`` or ``svg``.
            design_service: The design service instance (injected).
            pixel_density: Device pixel ratio; the server default if omitted.

        Returns:
            The encoded file as an attachment.

        Raises:
            InvalidPatchError: If the format or density is invalid.
            ExportFailedError: If encoding fails.
        """
        result = await design_service.export(session_id, file_format, pixel_density=pixel_density)
        return Response(
            content=result.content,
            media_type=result.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                "X-Image-Width": str(result.width),
                "X-Image-Height": str(result.height),
            },
        )

    @post("/{session_id:uuid}/export-batch")
    async def export_batch(
        self,
        session_id: UUID,
        data: BatchExportDTO,
        design_service: DesignService,
        export_service: ExportService,
    ) -> Response[bytes]:
        """Export the session's document to several platform sizes as a zip archive.

        Each platform gets a magic-resized copy named ``<platform>-<w>x<h>.<ext>``.

        Raises:
            InvalidPlatformError: If a platform id is unknown.
            InvalidPatchError: If the format or density is invalid.
            ExportFailedError: If any export fails.
        """
        results = await design_service.export_batch(
            session_id,
            data.platform_ids,
            data.format,
            pixel_density=data.pixel_density,
        )
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for result in results:
                archive.writestr(result.filename, result.content)
        filename = export_service.filename(design_service.get_session(session_id).editor.document, "zip")
        return Response(
            content=buffer.getvalue(),
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @post("/{session_id:uuid}/save")
    async def save(self, session_id: UUID, design_service: DesignService) -> dict[str, Any]:
        """Save a snapshot of the session's document.

        Returns:
            The stored design record.

        Raises:
            PersistenceError: If the storage backend fails.
        """
        return await design_service.save(session_id)


class ElementController(Controller):
    """Controller for elements on a session's canvas."""

    path = "/sessions/{session_id:uuid}/elements"
    tags: ClassVar[list[str]] = ["Elements"]

    @get("/")
    async def list_elements(self, session_id: UUID, design_service: DesignService) -> list[dict[str, Any]]:
        """List elements bottom to top."""
        document = design_service.get_session(session_id).editor.document
        return [element_to_response(e) for e in document.elements]

    @post("/")
    async def add_element(
        self,
        session_id: UUID,
        data: CreateElementDTO,
        design_service: DesignService,
    ) -> dict[str, Any]:
        """Add an element on top of the canvas and select it.

        Returns:
            The new element.

        Raises:
            InvalidPatchError: If the kind or a property is invalid.
        """
        editor = design_service.get_session(session_id).editor
        element_id = editor.add_element(data.type, data.props)
        return element_to_response(editor.get_element(element_id))

    @post("/generate")
    async def generate_image(
        self,
        session_id: UUID,
        data: GenerateImageDTO,
        design_service: DesignService,
    ) -> dict[str, Any]:
        """Generate an image from a prompt and add it as an element.

        Raises:
            ImageGenerationError: If no generator is configured or generation fails.
        """
        element_id = await design_service.generate_image(session_id, data.prompt, **data.props)
        return element_to_response(design_service.get_session(session_id).editor.get_element(element_id))

    @get("/{element_id:str}")
    async def get_element(self, session_id: UUID, element_id: str, design_service: DesignService) -> dict[str, Any]:
        """Get one element.

        Raises:
            ElementNotFoundError: If the element does not exist.
        """
        return element_to_response(design_service.get_session(session_id).editor.get_element(element_id))

    @patch("/{element_id:str}")
    async def update_element(
        self,
        session_id: UUID,
        element_id: str,
        data: dict[str, Any],
        design_service: DesignService,
    ) -> dict[str, Any]:
        """Merge a partial patch into an element.

        Raises:
            ElementNotFoundError: If the element does not exist.
            InvalidPatchError: If a value is invalid. The element is unchanged.
        """
        editor = design_service.get_session(session_id).editor
        element = editor.get_element(element_id)
        editor.update_element(element_id, data)
        return element_to_response(element)

    @delete("/{element_id:str}", status_code=HTTP_204_NO_CONTENT)
    async def delete_element(self, session_id: UUID, element_id: str, design_service: DesignService) -> None:
        """Delete an element. Deleting a missing element succeeds."""
        design_service.get_session(session_id).editor.delete_element(element_id)

    @post("/{element_id:str}/duplicate")
    async def duplicate_element(
        self,
        session_id: UUID,
        element_id: str,
        design_service: DesignService,
    ) -> dict[str, Any]:
        """Duplicate an element, offset down and to the right.

        Returns:
            The copy.

        Raises:
            ElementNotFoundError: If the element does not exist.
        """
        editor = design_service.get_session(session_id).editor
        clone_id = editor.duplicate_element(element_id)
        return element_to_response(editor.get_element(clone_id))

    @post("/{element_id:str}/move")
    async def move_layer(
        self,
        session_id: UUID,
        element_id: str,
        data: MoveLayerDTO,
        design_service: DesignService,
    ) -> list[dict[str, Any]]:
        """Move an element one step up or down in z-order.

        Returns:
            All elements, bottom to top.

        Raises:
            InvalidPatchError: If the direction is not ``up`` or ``down``.
        """
        editor = design_service.get_session(session_id).editor
        editor.move_layer(element_id, data.direction)
        return [element_to_response(e) for e in editor.document.elements]


class DesignController(Controller):
    """Controller for saved designs."""

    path = "/designs"
    tags: ClassVar[list[str]] = ["Designs"]

    @get("/")
    async def list_designs(self, design_service: DesignService) -> list[DesignSummaryDTO]:
        """List saved designs, most recently updated first."""
        return [design_to_summary(r) for r in await design_service.list_designs()]

    @get("/{document_id:str}")
    async def get_design(self, document_id: str, design_service: DesignService) -> dict[str, Any]:
        """Get a saved design record.

        Raises:
            DocumentNotFoundError: If the design does not exist.
        """
        return await design_service.get_design(document_id)

    @delete("/{document_id:str}", status_code=HTTP_204_NO_CONTENT)
    async def delete_design(self, document_id: str, design_service: DesignService) -> None:
        """Delete a saved design.

        Raises:
            DocumentNotFoundError: If the design does not exist.
        """
        if not await design_service.delete_design(document_id):
            raise DocumentNotFoundError(document_id)

    @post("/{document_id:str}/open")
    async def open_design(self, document_id: str, design_service: DesignService) -> SessionResponseDTO:
        """Open a saved design in a new session.

        Raises:
            DocumentNotFoundError: If the design does not exist.
            DocumentFormatError: If the stored record is malformed.
        """
        session = await design_service.open_design(document_id)
        return session_to_response(session)
