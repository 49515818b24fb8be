"""Hand-off to an AI image generation proxy."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from postcanvas.exceptions import ImageGenerationError

logger = structlog.get_logger(__name__)


@runtime_checkable
class ImageGenerator(Protocol):
    """Protocol for AI image generation.

    A generator turns a prompt into one image source (URL or data URI) that is
    added to a design with ``CanvasEditor.add_element("image", {"src": ...})``.
    """

    async def generate(self, prompt: str) -> str:
        """Generate an image for a prompt.

        Args:
            prompt: Text prompt.

        Returns:
            URL or data URI of the generated image.
        """
        ...


class HttpImageGenerator:
    """Image generator that calls an HTTP generation proxy.

    The proxy receives ``{"prompt": ..., **options}`` as JSON and answers with
    ``{"image_url": ...}``. Provider selection, credits and authentication are
    the proxy's concern.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
        **options: Any,
    ) -> None:
        """Initialize the generator.

        Args:
            endpoint: URL of the generation proxy.
            headers: Extra request headers, e.g. an ``Authorization`` bearer.
            timeout: Request timeout in seconds.
            client: Client to reuse. If None, one is created per request.
            **options: Extra fields sent with every request (style, quality, ...).
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._headers = headers or {}
        self._client = client
        self._options = options

    async def generate(self, prompt: str) -> str:
        """Ask the proxy for an image.

        Raises:
            ImageGenerationError: If the request fails, the proxy answers with
                an error status, or the response carries no image URL.
        """
        payload = {"prompt": prompt, **self._options}
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.endpoint, json=payload, headers=self._headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.endpoint, json=payload, headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Generation proxy request failed", endpoint=self.endpoint, error=str(exc))
            msg = f"Generation proxy request failed: {exc}"
            raise ImageGenerationError(msg) from exc
        except ValueError as exc:
            msg = "Generation proxy returned invalid JSON"
            raise ImageGenerationError(msg) from exc

        image_url = data.get("image_url") if isinstance(data, dict) else None
        if not isinstance(image_url, str) or not image_url:
            msg = "Generation proxy returned no image_url"
            raise ImageGenerationError(msg)
        logger.info("Image generated", endpoint=self.endpoint, prompt_length=len(prompt))
        return image_url
