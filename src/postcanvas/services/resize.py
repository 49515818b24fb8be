"""Magic resize: re-lay out a design for another platform size."""

from __future__ import annotations

import copy
from uuid import uuid4

from postcanvas.core.models import Document, ImageElement, ShapeElement, TextElement
from postcanvas.core.patches import apply_patch, validate_patch
from postcanvas.core.platforms import get_platform


def resize_document(document: Document, platform_id: str) -> Document:
    """Derive a copy of a document laid out for another platform.

    Positions scale per axis so elements keep their relative placement.
    Sizes and font sizes scale uniformly by the smaller axis factor so nothing
    is distorted, then clamp into their field ranges. Element ids are kept;
    the copy gets a fresh document id.

    Args:
        document: The source document. It is not modified.
        platform_id: The target platform id.

    Returns:
        The resized copy.

    Raises:
        InvalidPlatformError: If either platform id is unknown.
    """
    source = get_platform(document.platform_id)
    target = get_platform(platform_id)
    sx = target.width / source.width
    sy = target.height / source.height
    uniform = min(sx, sy)

    resized = copy.deepcopy(document)
    resized.id = str(uuid4())
    resized.platform_id = target.id

    for element in resized.elements:
        patch: dict[str, object] = {"x": element.x * sx, "y": element.y * sy}
        if isinstance(element, TextElement):
            patch["font_size"] = element.font_size * uniform
            if element.max_width is not None:
                patch["max_width"] = element.max_width * uniform
        elif isinstance(element, ImageElement | ShapeElement):
            patch["width"] = element.width * uniform
            patch["height"] = element.height * uniform
        apply_patch(element, validate_patch(element.kind, patch))

    return resized
