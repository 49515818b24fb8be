"""Minimal example showing postcanvas usage with Litestar.

This example demonstrates how to create a basic Litestar application with
postcanvas integration using the plugin system.

The application will:
    - Configure the DesignService with in-memory storage and the built-in templates
    - Export rasters with the Pillow sink at double density
    - Mount REST API endpoints at /api
    - Inject the DesignService into a custom route handler

Running the Application:
    python examples/app.py

Then visit:
    - http://127.0.0.1:8000/schema - OpenAPI documentation
    - http://127.0.0.1:8000/api/platforms - Platform sizes

Example API Usage:
    # Open a session on an Instagram post canvas
    curl -X POST http://127.0.0.1:8000/api/sessions \\
        -H "Content-Type: application/json" \\
        -d '{"platform_id": "instagram-post", "name": "Summer Sale"}'

    # Add a headline
    curl -X POST http://127.0.0.1:8000/api/sessions/{session_id}/elements \\
        -H "Content-Type: application/json" \\
        -d '{"type": "text", "props": {"content": "50% off", "fontSize": 96}}'

    # Download it as PNG
    curl -OJ http://127.0.0.1:8000/api/sessions/{session_id}/export/png

    # Start from the most popular quote template
    curl -X POST http://127.0.0.1:8000/sessions/quick-quote
"""

from __future__ import annotations

from litestar import Litestar, post

from postcanvas import DesignService, PostCanvasConfig, PostCanvasPlugin


@post("/sessions/quick-quote")
async def quick_quote(design_service: DesignService) -> dict:
    """Open a session pre-filled with the most liked quote template."""
    templates = await design_service.list_templates(category="quote")
    session = design_service.open_session(templates[0].platform_id)
    await design_service.load_template(session.id, templates[0].id)
    return {"session_id": str(session.id), "template_id": templates[0].id}


# Create the Litestar app with postcanvas plugin
app = Litestar(
    route_handlers=[quick_quote],
    plugins=[
        PostCanvasPlugin(
            PostCanvasConfig(
                # Use InMemoryDocumentStorage (default)
                storage=None,
                # Export at retina density unless a request asks otherwise
                pixel_density=2.0,
                # Enable REST API endpoints
                enable_api=True,
                # Mount API routes at /api
                api_path="/api",
            )
        )
    ],
    debug=True,
)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
