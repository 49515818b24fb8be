"""Custom exceptions for postcanvas."""

from __future__ import annotations


class PostCanvasError(Exception):
    """Base exception class for all postcanvas errors."""


class InvalidPlatformError(PostCanvasError):
    """Raised when an unknown platform id is requested.

    Attributes:
        platform_id: The platform id that could not be resolved.
    """

    def __init__(self, platform_id: str) -> None:
        """Initialize the exception with the platform id.

        Args:
            platform_id: The platform id that could not be resolved.
        """
        self.platform_id = platform_id
        super().__init__(f"Unknown platform: {platform_id}")


class InvalidPatchError(PostCanvasError):
    """Raised when element properties violate a field's type or constraints.

    The element the patch targeted is left unchanged.

    Attributes:
        field: Name of the offending field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Description of why the patch was rejected.
            field: Name of the offending field, if known.
        """
        self.field = field
        super().__init__(message)


class InvalidBackgroundError(InvalidPatchError):
    """Raised when a background value does not match its variant's shape."""


class ElementNotFoundError(PostCanvasError):
    """Raised when an element with the specified id cannot be found.

    Attributes:
        element_id: The id of the element that was not found.
    """

    def __init__(self, element_id: str) -> None:
        """Initialize the exception with the element id.

        Args:
            element_id: The id of the element that was not found.
        """
        self.element_id = element_id
        super().__init__(f"Element with ID {element_id} not found")


class TemplateNotFoundError(PostCanvasError):
    """Raised when a template with the specified id cannot be found."""

    def __init__(self, template_id: str) -> None:
        """Initialize the exception with the template id.

        Args:
            template_id: The id of the template that was not found.
        """
        self.template_id = template_id
        super().__init__(f"Template with ID {template_id} not found")


class SessionNotFoundError(PostCanvasError):
    """Raised when an editing session cannot be found."""

    def __init__(self, session_id: object) -> None:
        """Initialize the exception with the session id.

        Args:
            session_id: The id of the session that was not found.
        """
        self.session_id = session_id
        super().__init__(f"Editing session {session_id} not found")


class ExportFailedError(PostCanvasError):
    """Raised when the export sink cannot produce an encoded image.

    Attributes:
        cause: The underlying exception, if any.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Description of the failure.
            cause: The underlying exception that made the export fail.
        """
        self.cause = cause
        super().__init__(message)


class PersistenceError(PostCanvasError):
    """Raised when a storage operation fails."""


class DocumentNotFoundError(PersistenceError):
    """Raised when a saved design cannot be found in storage."""

    def __init__(self, document_id: str) -> None:
        """Initialize the exception with the document id.

        Args:
            document_id: The id of the design that was not found.
        """
        self.document_id = document_id
        super().__init__(f"Design not found: {document_id}")


class DocumentFormatError(PersistenceError):
    """Raised when a persisted record cannot be turned back into a document."""


class ImageGenerationError(PostCanvasError):
    """Raised when the image generation proxy does not return an image."""
