"""Design service providing business logic for editing sessions and saved designs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import structlog

from postcanvas.core.editor import CanvasEditor
from postcanvas.core.models import DEFAULT_PLATFORM_ID
from postcanvas.core.serialization import document_from_record, document_to_record
from postcanvas.core.types import ExportFormat
from postcanvas.exceptions import ImageGenerationError, InvalidPatchError, SessionNotFoundError
from postcanvas.services.export import ExportResult, ExportService

if TYPE_CHECKING:
    from collections.abc import Iterable

    from postcanvas.core.models import Template
    from postcanvas.services.generation import ImageGenerator
    from postcanvas.services.templates import TemplateProvider
    from postcanvas.storage.base import DesignRecord, DocumentStorage

logger = structlog.get_logger(__name__)

SVG_FORMAT = "svg"


@dataclass
class EditingSession:
    """One open editor, addressable by id.

    Attributes:
        id: Session identifier.
        editor: The editor owning the session's document.
        created_at: When the session was opened.
        saved_at: When the document was last saved, if ever.
    """

    editor: CanvasEditor
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    saved_at: datetime | None = None


class DesignService:
    """Service for editing sessions and saved designs.

    Wires the canvas editor to its collaborators: templates come from the
    template provider, saves go to the document storage and raster exports go
    through the export service's sink.

    Attributes:
        storage: Backend for saved designs.
        templates: Source of templates.
        export_service: Service used for exports.
    """

    def __init__(
        self,
        storage: DocumentStorage,
        templates: TemplateProvider,
        export_service: ExportService | None = None,
        *,
        generator: ImageGenerator | None = None,
        default_platform: str = DEFAULT_PLATFORM_ID,
        max_history: int = 100,
        pixel_density: float = 1.0,
    ) -> None:
        """Initialize the design service.

        Args:
            storage: Backend implementing DocumentStorage.
            templates: Provider implementing TemplateProvider.
            export_service: Export service; a Pillow-backed one by default.
            generator: Optional AI image generator.
            default_platform: Platform used when a session is opened without one.
            max_history: Maximum undo history size per session.
            pixel_density: Density used by exports that do not ask for one.
        """
        self.storage = storage
        self.templates = templates
        self.export_service = export_service or ExportService()
        self.generator = generator
        self.default_platform = default_platform
        self.max_history = max_history
        self.pixel_density = pixel_density
        self._sessions: dict[UUID, EditingSession] = {}

    def _new_editor(self, platform_id: str, name: str) -> CanvasEditor:
        return CanvasEditor(
            platform_id,
            name=name,
            max_history=self.max_history,
            export_sink=self.export_service.sink,
        )

    def _register(self, editor: CanvasEditor) -> EditingSession:
        session = EditingSession(editor=editor)
        self._sessions[session.id] = session
        logger.info("Session opened", session_id=str(session.id), document_id=editor.document.id)
        return session

    # Sessions
    def open_session(self, platform_id: str | None = None, name: str | None = None) -> EditingSession:
        """Open a session with an empty document.

        Args:
            platform_id: Platform to size the canvas for; the service default if None.
            name: Design name; ``Untitled Design`` if None.

        Returns:
            The new session.

        Raises:
            InvalidPlatformError: If the platform id is unknown.
        """
        editor = self._new_editor(platform_id or self.default_platform, name or "Untitled Design")
        return self._register(editor)

    def get_session(self, session_id: UUID) -> EditingSession:
        """Get an open session.

        Raises:
            SessionNotFoundError: If no session has that id.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> list[EditingSession]:
        """List open sessions, oldest first."""
        return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def close_session(self, session_id: UUID) -> bool:
        """Close a session without saving.

        Returns:
            True if a session was closed, False if none existed.
        """
        closed = self._sessions.pop(session_id, None) is not None
        if closed:
            logger.info("Session closed", session_id=str(session_id))
        return closed

    # Templates
    async def list_templates(
        self,
        platform_id: str | None = None,
        *,
        query: str | None = None,
        category: str | None = None,
    ) -> list[Template]:
        """List templates, most popular first.

        With only ``platform_id`` set this asks the provider for that
        platform's templates; any other filter runs a search.
        """
        if platform_id and not query and not category:
            return await self.templates.fetch_by_platform(platform_id)
        return await self.templates.search(query=query, category=category, platform=platform_id)

    async def load_template(self, session_id: UUID, template_id: str) -> EditingSession:
        """Load a template into a session's editor.

        Raises:
            SessionNotFoundError: If no session has that id.
            TemplateNotFoundError: If no template has that id.
        """
        session = self.get_session(session_id)
        template = await self.templates.get(template_id)
        session.editor.load_template(template)
        return session

    # Persistence
    async def save(self, session_id: UUID) -> DesignRecord:
        """Save a point-in-time snapshot of a session's document.

        Returns:
            The stored record, stamped with ``updated_at``.

        Raises:
            SessionNotFoundError: If no session has that id.
            PersistenceError: If the storage backend fails.
        """
        session = self.get_session(session_id)
        now = datetime.now(UTC)
        record = await self.storage.save(document_to_record(session.editor.snapshot(), updated_at=now))
        session.saved_at = now
        logger.info("Design saved", session_id=str(session_id), document_id=record["id"])
        return record

    async def open_design(self, document_id: str) -> EditingSession:
        """Open a saved design in a new session.

        Raises:
            DocumentNotFoundError: If no design has that id.
            DocumentFormatError: If the stored record is malformed.
        """
        document = document_from_record(await self.storage.load(document_id))
        editor = CanvasEditor.from_document(
            document,
            max_history=self.max_history,
            export_sink=self.export_service.sink,
        )
        return self._register(editor)

    async def get_design(self, document_id: str) -> DesignRecord:
        """Get a saved design record.

        Raises:
            DocumentNotFoundError: If no design has that id.
        """
        return await self.storage.load(document_id)

    async def list_designs(self) -> list[DesignRecord]:
        """List saved designs, most recently updated first."""
        return await self.storage.list()

    async def delete_design(self, document_id: str) -> bool:
        """Delete a saved design.

        Returns:
            True if a design was deleted, False if none existed.
        """
        return await self.storage.delete(document_id)

    # Export and generation
    async def export(
        self,
        session_id: UUID,
        format: ExportFormat | str = ExportFormat.PNG,  # noqa: A002
        *,
        pixel_density: float | None = None,
    ) -> ExportResult:
        """Export a session's document as PNG, JPEG or SVG.

        Raises:
            SessionNotFoundError: If no session has that id.
            InvalidPatchError: If the format or density is invalid.
            ExportFailedError: If raster encoding fails.
        """
        editor = self.get_session(session_id).editor
        document = editor.document
        pixel_density = self.pixel_density if pixel_density is None else pixel_density
        description = editor.render(pixel_density=pixel_density)

        if format == SVG_FORMAT:
            content = self.export_service.to_svg(document, pixel_density=pixel_density).encode()
            media_type = "image/svg+xml"
        else:
            try:
                export_format = ExportFormat(format)
            except ValueError:
                msg = "format must be one of: png, jpg, svg"
                raise InvalidPatchError(msg, field="format") from None
            content = await editor.export_raster(export_format, pixel_density=pixel_density)
            media_type = export_format.media_type

        return ExportResult(
            filename=self.export_service.filename(document, format),
            content=content,
            width=description.width,
            height=description.height,
            media_type=media_type,
        )

    async def export_batch(
        self,
        session_id: UUID,
        platform_ids: Iterable[str],
        format: ExportFormat | str = ExportFormat.PNG,  # noqa: A002
        *,
        pixel_density: float | None = None,
    ) -> list[ExportResult]:
        """Export a session's document to several platform sizes.

        Raises:
            SessionNotFoundError: If no session has that id.
        """
        document = self.get_session(session_id).editor.snapshot()
        pixel_density = self.pixel_density if pixel_density is None else pixel_density
        return await self.export_service.export_batch(document, platform_ids, format, pixel_density=pixel_density)

    async def generate_image(self, session_id: UUID, prompt: str, **props: Any) -> str:
        """Generate an image and add it to a session's document.

        Returns:
            The id of the new image element.

        Raises:
            SessionNotFoundError: If no session has that id.
            ImageGenerationError: If no generator is configured or generation fails.
        """
        editor = self.get_session(session_id).editor
        if self.generator is None:
            msg = "No image generator configured"
            raise ImageGenerationError(msg)
        return await editor.add_generated_image(self.generator, prompt, **props)
