"""Main Litestar application for postcanvas.

This module provides the application factory and a configured app instance
for running postcanvas as a standalone service.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from litestar import Litestar

from postcanvas import __version__
from postcanvas.core.error_handling import get_exception_handlers
from postcanvas.core.logging import configure_logging, get_middleware
from postcanvas.core.openapi import get_openapi_config
from postcanvas.plugin import PostCanvasConfig, PostCanvasPlugin
from postcanvas.web.health import HealthController

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from postcanvas.storage.db.setup import DatabaseManager

logger = structlog.get_logger(__name__)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def database_lifespan(db_manager: DatabaseManager) -> Callable[[Litestar], AsyncGenerator[None, None]]:
    """Build a lifespan handler that opens and closes the database.

    Args:
        db_manager: Manager whose engine backs the design storage.

    Returns:
        An async context manager factory for Litestar's ``lifespan``.
    """

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
        await db_manager.init()
        app.state.db_manager = db_manager
        logger.info("Database initialized", url=db_manager.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            await db_manager.close()
            logger.info("Database closed")

    return lifespan


def create_app(
    *,
    config: PostCanvasConfig | None = None,
    use_database: bool | None = None,
    debug: bool = False,
    json_logs: bool = False,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        config: Plugin configuration. If None, defaults are read from the
            environment.
        use_database: Whether to store designs in the SQL database. If None,
            the database is used when ``DATABASE_URL`` is set. Ignored when
            ``config`` already carries a storage backend.
        debug: Whether to enable debug mode.
        json_logs: Whether to output logs as JSON (for production).

    Returns:
        Configured Litestar application instance.
    """
    configure_logging(debug=debug, json_logs=json_logs)

    config = config or PostCanvasConfig()
    if use_database is None:
        use_database = bool(os.environ.get("DATABASE_URL"))

    lifespan = []
    if use_database and config.storage is None:
        from postcanvas.storage.db import DatabaseDocumentStorage, DatabaseManager

        db_manager = DatabaseManager()
        config.storage = DatabaseDocumentStorage(db_manager.session)
        lifespan.append(database_lifespan(db_manager))

    return Litestar(
        route_handlers=[HealthController],
        plugins=[PostCanvasPlugin(config)],
        debug=debug,
        lifespan=lifespan,
        middleware=get_middleware(),
        exception_handlers=get_exception_handlers(),
        openapi_config=get_openapi_config(__version__),
    )


# Default application instance for uvicorn
# Use POSTCANVAS_DEBUG=true for dev mode, POSTCANVAS_JSON_LOGS=true for JSON logs
app = create_app(debug=_env_flag("POSTCANVAS_DEBUG"), json_logs=_env_flag("POSTCANVAS_JSON_LOGS"))
