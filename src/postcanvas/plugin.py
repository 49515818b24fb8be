"""Litestar plugin for postcanvas integration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from postcanvas.core.models import DEFAULT_PLATFORM_ID
from postcanvas.services.design import DesignService
from postcanvas.services.export import DEFAULT_FETCH_TIMEOUT, ExportService, PillowExportSink
from postcanvas.services.templates import InMemoryTemplateProvider
from postcanvas.storage.memory import InMemoryDocumentStorage
from postcanvas.web.router import create_router

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from postcanvas.services.export import ExportSink
    from postcanvas.services.generation import ImageGenerator
    from postcanvas.services.templates import TemplateProvider
    from postcanvas.storage.base import DocumentStorage


@dataclass
class PostCanvasConfig:
    """Configuration for the PostCanvas plugin.

    Scalar settings fall back to environment variables so a deployment can be
    tuned without code changes.

    Attributes:
        storage: Backend for saved designs. If None, InMemoryDocumentStorage
            is used.
        templates: Template provider. If None, the built-in catalog is served.
        export_sink: Raster encoder. If None, a PillowExportSink is built
            with ``fetch_timeout``.
        generator: Optional AI image generator.
        default_platform: Platform for sessions opened without one
            (``POSTCANVAS_DEFAULT_PLATFORM``).
        pixel_density: Default export density (``POSTCANVAS_PIXEL_DENSITY``).
        max_history: Undo history size per session (``POSTCANVAS_MAX_HISTORY``).
        fetch_timeout: Timeout in seconds for fetching remote images during
            export (``POSTCANVAS_FETCH_TIMEOUT``).
        enable_api: Whether to mount the REST API routes. Defaults to True.
        api_path: Base path for mounting API routes. Defaults to "/api".
        dependency_key: Dependency injection key for DesignService.
            Defaults to "design_service".

    Example:
        >>> config = PostCanvasConfig(api_path="/api/v1", max_history=50)
    """

    storage: DocumentStorage | None = None
    templates: TemplateProvider | None = None
    export_sink: ExportSink | None = None
    generator: ImageGenerator | None = None
    default_platform: str = field(
        default_factory=lambda: os.getenv("POSTCANVAS_DEFAULT_PLATFORM", DEFAULT_PLATFORM_ID)
    )
    pixel_density: float = field(default_factory=lambda: float(os.getenv("POSTCANVAS_PIXEL_DENSITY", "1.0")))
    max_history: int = field(default_factory=lambda: int(os.getenv("POSTCANVAS_MAX_HISTORY", "100")))
    fetch_timeout: float = field(
        default_factory=lambda: float(os.getenv("POSTCANVAS_FETCH_TIMEOUT", str(DEFAULT_FETCH_TIMEOUT)))
    )
    enable_api: bool = True
    api_path: str = "/api"
    dependency_key: str = "design_service"


class PostCanvasPlugin(InitPluginProtocol):
    """Litestar plugin for postcanvas integration.

    Builds the design and export services from the configuration, registers
    them with dependency injection and optionally mounts the REST API.

    Example:
        >>> from litestar import Litestar
        >>> from postcanvas import PostCanvasPlugin, PostCanvasConfig
        >>>
        >>> app = Litestar(plugins=[PostCanvasPlugin(PostCanvasConfig())])

        Accessing the service in route handlers:

        >>> from litestar import get
        >>> from postcanvas.services.design import DesignService
        >>>
        >>> @get("/custom")
        ... async def custom_handler(design_service: DesignService) -> dict:
        ...     designs = await design_service.list_designs()
        ...     return {"count": len(designs)}
    """

    def __init__(self, config: PostCanvasConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, PostCanvasConfig with default
                values will be used.
        """
        self._config = config or PostCanvasConfig()
        self._service: DesignService | None = None
        self._export_service: ExportService | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Register services and routes during application startup.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        config = self._config
        sink = config.export_sink or PillowExportSink(fetch_timeout=config.fetch_timeout)
        self._export_service = ExportService(sink)
        self._service = DesignService(
            config.storage or InMemoryDocumentStorage(),
            config.templates or InMemoryTemplateProvider(),
            self._export_service,
            generator=config.generator,
            default_platform=config.default_platform,
            max_history=config.max_history,
            pixel_density=config.pixel_density,
        )

        def provide_service() -> DesignService:
            """Dependency provider for DesignService."""
            if self._service is None:
                msg = "Service not initialized"
                raise RuntimeError(msg)
            return self._service

        def provide_export_service() -> ExportService:
            """Dependency provider for ExportService."""
            if self._export_service is None:
                msg = "Export service not initialized"
                raise RuntimeError(msg)
            return self._export_service

        app_config.dependencies[config.dependency_key] = Provide(provide_service, sync_to_thread=False)
        app_config.dependencies["export_service"] = Provide(provide_export_service, sync_to_thread=False)

        if config.enable_api:
            app_config.route_handlers.append(create_router(path=config.api_path))

        return app_config

    @property
    def service(self) -> DesignService:
        """Get the initialized design service.

        Raises:
            RuntimeError: If the plugin has not been initialized yet
                (on_app_init not called).
        """
        if self._service is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._service

    @property
    def export_service(self) -> ExportService:
        """Get the initialized export service.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._export_service is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._export_service
