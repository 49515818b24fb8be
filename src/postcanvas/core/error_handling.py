"""Error handling and exception handlers for postcanvas.

Provides structured JSON error responses with correlation IDs and maps domain
exceptions to HTTP status codes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

if TYPE_CHECKING:
    from litestar import Request
    from litestar.exceptions import HTTPException, ValidationException

logger = structlog.get_logger(__name__)

ExceptionHandler = Callable[["Request", Exception], Response[dict[str, Any]]]

_HTTP_ERROR_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


@dataclass
class ErrorDetail:
    """Details about a specific error."""

    field: str | None = None
    message: str = ""
    code: str = "error"


@dataclass
class ErrorResponse:
    """Structured error response format."""

    status: str = "error"
    message: str = ""
    code: str = "internal_error"
    correlation_id: str | None = None
    details: list[ErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "code": self.code,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        if self.details:
            result["details"] = [{"field": d.field, "message": d.message, "code": d.code} for d in self.details]
        return result


def get_correlation_id(request: Request) -> str | None:
    """Extract correlation ID from request state or headers."""
    correlation_id = request.scope.get("state", {}).get("correlation_id")
    if correlation_id:
        return correlation_id
    return request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID")


def _json_response(error: ErrorResponse, status_code: int) -> Response[dict[str, Any]]:
    return Response(content=error.to_dict(), status_code=status_code, media_type="application/json")


def validation_exception_handler(request: Request, exc: ValidationException) -> Response[dict[str, Any]]:
    """Handle request validation errors with per-field details."""
    correlation_id = get_correlation_id(request)

    details: list[ErrorDetail] = []
    for error in exc.extra or []:
        if isinstance(error, dict):
            details.append(
                ErrorDetail(
                    field=error.get("key"),
                    message=error.get("message", str(error)),
                    code=error.get("type", "validation_error"),
                )
            )
        else:
            details.append(ErrorDetail(message=str(error), code="validation_error"))
    if not details:
        details.append(ErrorDetail(message=str(exc.detail), code="validation_error"))

    logger.warning("Validation error", path=request.url.path, method=request.method, error_count=len(details))
    error = ErrorResponse(
        message="Validation failed",
        code="validation_error",
        correlation_id=correlation_id,
        details=details,
    )
    return _json_response(error, HTTP_422_UNPROCESSABLE_ENTITY)


def http_exception_handler(request: Request, exc: HTTPException) -> Response[dict[str, Any]]:
    """Handle Litestar HTTP exceptions, keeping their status code."""
    error_code = _HTTP_ERROR_CODES.get(exc.status_code, "error")
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    log_method = logger.warning if exc.status_code < 500 else logger.error
    log_method("HTTP exception", path=request.url.path, status_code=exc.status_code, error_code=error_code)

    error = ErrorResponse(message=message, code=error_code, correlation_id=get_correlation_id(request))
    return _json_response(error, exc.status_code)


def domain_error_handler(status_code: int, code: str, field_attr: str | None = None) -> ExceptionHandler:
    """Build a handler that renders a domain exception with a fixed status.

    Args:
        status_code: HTTP status to answer with.
        code: Machine-readable error code.
        field_attr: Exception attribute holding the offending field or id.

    Returns:
        An exception handler for Litestar.
    """

    def handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
        correlation_id = get_correlation_id(request)
        subject = getattr(exc, field_attr, None) if field_attr else None

        log_method = logger.warning if status_code < 500 else logger.error
        log_method(
            "Request failed",
            path=request.url.path,
            error_code=code,
            error=str(exc),
            cause=repr(getattr(exc, "cause", None) or exc.__cause__) if status_code >= 500 else None,
        )

        details: list[ErrorDetail] = []
        if field_attr == "field" and subject is not None:
            details.append(ErrorDetail(field=str(subject), message=str(exc), code=code))
        elif subject is not None:
            details.append(ErrorDetail(field=field_attr, message=str(subject), code=code))
        error = ErrorResponse(message=str(exc), code=code, correlation_id=correlation_id, details=details)
        return _json_response(error, status_code)

    return handler


def generic_exception_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Handle unexpected exceptions with a generic error response.

    Logs the full exception but returns a safe message to the client.
    """
    correlation_id = get_correlation_id(request)
    logger.exception(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        exc_info=exc,
    )
    error = ErrorResponse(
        message="An unexpected error occurred. Please try again later.",
        code="internal_error",
        correlation_id=correlation_id,
    )
    return _json_response(error, HTTP_500_INTERNAL_SERVER_ERROR)


def get_exception_handlers() -> dict:
    """Get all exception handlers for the application.

    Litestar picks the handler of the closest class in the exception's MRO,
    so the not-found subclasses of PersistenceError answer 404, not 503.

    Returns:
        Dictionary mapping exception types to handler functions.
    """
    from litestar.exceptions import HTTPException, ValidationException

    from postcanvas.exceptions import (
        DocumentNotFoundError,
        ElementNotFoundError,
        ExportFailedError,
        ImageGenerationError,
        InvalidBackgroundError,
        InvalidPatchError,
        InvalidPlatformError,
        PersistenceError,
        SessionNotFoundError,
        TemplateNotFoundError,
    )

    return {
        ValidationException: validation_exception_handler,
        HTTPException: http_exception_handler,
        InvalidPlatformError: domain_error_handler(HTTP_400_BAD_REQUEST, "invalid_platform", "platform_id"),
        InvalidPatchError: domain_error_handler(HTTP_422_UNPROCESSABLE_ENTITY, "invalid_patch", "field"),
        InvalidBackgroundError: domain_error_handler(HTTP_422_UNPROCESSABLE_ENTITY, "invalid_background", "field"),
        ElementNotFoundError: domain_error_handler(HTTP_404_NOT_FOUND, "element_not_found", "element_id"),
        TemplateNotFoundError: domain_error_handler(HTTP_404_NOT_FOUND, "template_not_found", "template_id"),
        SessionNotFoundError: domain_error_handler(HTTP_404_NOT_FOUND, "session_not_found", "session_id"),
        DocumentNotFoundError: domain_error_handler(HTTP_404_NOT_FOUND, "design_not_found", "document_id"),
        ExportFailedError: domain_error_handler(HTTP_502_BAD_GATEWAY, "export_failed"),
        ImageGenerationError: domain_error_handler(HTTP_502_BAD_GATEWAY, "generation_failed"),
        PersistenceError: domain_error_handler(HTTP_503_SERVICE_UNAVAILABLE, "persistence_failed"),
        Exception: generic_exception_handler,
    }
