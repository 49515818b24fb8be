"""OpenAPI configuration and UI plugins for postcanvas."""

from __future__ import annotations

from litestar.openapi import OpenAPIConfig
from litestar.openapi.plugins import ScalarRenderPlugin, SwaggerRenderPlugin


def get_openapi_plugins() -> list[ScalarRenderPlugin | SwaggerRenderPlugin]:
    """Get the configured OpenAPI UI plugins.

    Returns:
        List of OpenAPI UI plugins with Scalar as primary and Swagger as secondary.

    Endpoints (relative to OpenAPIConfig.path which is /schema):
        - /schema/ - Scalar UI (default)
        - /schema/swagger - Swagger UI
        - /schema/openapi.json - OpenAPI schema
    """
    return [
        ScalarRenderPlugin(path="/"),
        SwaggerRenderPlugin(path="/swagger"),
    ]


def get_openapi_config(version: str) -> OpenAPIConfig:
    """Build the OpenAPI configuration for the application.

    Args:
        version: API version shown in the schema.
    """
    return OpenAPIConfig(
        title="postcanvas API",
        version=version,
        description="Social media graphics editor: canvas sessions, templates, exports and saved designs",
        path="/schema",
        render_plugins=get_openapi_plugins(),
        use_handler_docstrings=True,
    )
