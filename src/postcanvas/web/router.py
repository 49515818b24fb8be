"""Router configuration for the postcanvas API."""

from __future__ import annotations

from litestar import Router

from postcanvas.web.controllers import (
    DesignController,
    ElementController,
    PlatformController,
    SessionController,
    TemplateController,
)


def create_router(path: str = "/api") -> Router:
    """Create the postcanvas API router.

    Args:
        path: The base path for all API routes. Defaults to "/api".

    Returns:
        A configured Litestar Router instance.

    Example:
        >>> router = create_router("/api/v1")
    """
    return Router(
        path=path,
        route_handlers=[PlatformController, TemplateController, SessionController, ElementController, DesignController],
    )
