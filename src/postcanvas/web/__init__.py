"""Web layer for postcanvas: controllers, DTOs and routing."""

from postcanvas.web.router import create_router

__all__ = ["create_router"]
