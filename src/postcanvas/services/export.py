"""Export sink and export service for rendering designs to various formats."""

from __future__ import annotations

import asyncio
import base64
import io
import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx
import structlog
from PIL import Image, ImageDraw, ImageFont

from postcanvas.core.editor import CanvasEditor
from postcanvas.core.models import GradientBackground
from postcanvas.core.platforms import get_platform
from postcanvas.core.render import (
    FilledShape,
    ImageRect,
    TextRun,
    gradient_angle,
    gradient_line,
    render_document,
)
from postcanvas.core.serialization import document_to_record
from postcanvas.core.types import ExportFormat, FontWeight, ShapeKind, TextAlign
from postcanvas.exceptions import InvalidPatchError
from postcanvas.services.resize import resize_document

if TYPE_CHECKING:
    from collections.abc import Iterable

    from postcanvas.core.models import Background, Document
    from postcanvas.core.render import RenderDescription

logger = structlog.get_logger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_JPEG_QUALITY = 92

_FONT_DIRECTORIES: tuple[Path, ...] = (
    Path("assets/fonts"),
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/share/fonts/truetype/liberation"),
    Path("/usr/share/fonts/TTF"),
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("C:/Windows/Fonts"),
)
_BOLD_WEIGHTS = frozenset({FontWeight.SEMIBOLD, FontWeight.BOLD, FontWeight.EXTRABOLD, FontWeight.BLACK})


def slugify(value: str, default: str = "design") -> str:
    """Turn a design name into a file-name-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or default


@runtime_checkable
class ExportSink(Protocol):
    """Protocol for turning a render description into encoded image bytes."""

    async def encode(
        self,
        description: RenderDescription,
        format: ExportFormat,  # noqa: A002
        pixel_density: float,
    ) -> bytes:
        """Encode a render description.

        Args:
            description: The frame to draw, already in output pixels.
            format: Target raster format.
            pixel_density: Density the description was rendered for.

        Returns:
            The encoded image, exactly ``description.size`` pixels.
        """
        ...


class PillowExportSink:
    """Export sink that draws render descriptions with Pillow.

    Image sources are resolved before drawing: ``data:`` URIs are decoded in
    process and ``http(s)`` URLs are fetched with httpx. Any failure to load
    an image, draw, or encode propagates to the caller.

    Attributes:
        fetch_timeout: Timeout in seconds for fetching remote images.
        jpeg_quality: Quality used for JPEG encoding.
    """

    def __init__(
        self,
        *,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        http_client: httpx.AsyncClient | None = None,
        font_directories: Iterable[Path] | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            fetch_timeout: Timeout in seconds for fetching remote images.
            jpeg_quality: Quality used for JPEG encoding.
            http_client: Client used for remote images. If None, a short-lived
                client is created per fetch.
            font_directories: Directories searched for TrueType fonts before
                the system locations.
        """
        self.fetch_timeout = fetch_timeout
        self.jpeg_quality = jpeg_quality
        self._client = http_client
        self._font_directories = (*(font_directories or ()), *_FONT_DIRECTORIES)
        self._fonts: dict[tuple[str, bool, int], ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    async def encode(
        self,
        description: RenderDescription,
        format: ExportFormat,  # noqa: A002
        pixel_density: float,
    ) -> bytes:
        """Draw and encode a render description.

        Args:
            description: The frame to draw.
            format: PNG or JPEG.
            pixel_density: Density the description was rendered for; written as
                the file's DPI.

        Returns:
            The encoded image bytes.
        """
        images = await self._resolve_images(description)

        canvas = self._draw_background(description.background, description.size)
        for primitive in description.primitives:
            layer = Image.new("RGBA", description.size, (0, 0, 0, 0))
            if isinstance(primitive, FilledShape):
                self._draw_shape(layer, primitive)
            elif isinstance(primitive, ImageRect):
                self._draw_image(layer, primitive, images[primitive.src])
            elif isinstance(primitive, TextRun):
                self._draw_text(layer, primitive)
            canvas = Image.alpha_composite(canvas, layer)

        dpi = (round(72 * pixel_density), round(72 * pixel_density))
        buffer = io.BytesIO()
        export_format = ExportFormat(format)
        if export_format is ExportFormat.JPG:
            canvas.convert("RGB").save(buffer, format=export_format.pillow_format, quality=self.jpeg_quality, dpi=dpi)
        else:
            canvas.save(buffer, format=export_format.pillow_format, dpi=dpi)
        return buffer.getvalue()

    # Image sources
    async def _resolve_images(self, description: RenderDescription) -> dict[str, Image.Image]:
        sources = list(dict.fromkeys(p.src for p in description.primitives if isinstance(p, ImageRect)))
        loaded = await asyncio.gather(*(self._load_image(src) for src in sources))
        return dict(zip(sources, loaded, strict=True))

    async def _load_image(self, src: str) -> Image.Image:
        if src.startswith("data:"):
            header, sep, payload = src.partition(",")
            if not sep or not header.endswith(";base64"):
                msg = "Only base64 data URIs are supported"
                raise ValueError(msg)
            raw = base64.b64decode(payload, validate=True)
        elif src.startswith(("http://", "https://")):
            raw = await self._fetch(src)
        else:
            msg = f"Unsupported image source: {src[:40]!r}"
            raise ValueError(msg)

        image = Image.open(io.BytesIO(raw))
        image.load()
        return image.convert("RGBA")

    async def _fetch(self, url: str) -> bytes:
        if self._client is not None:
            response = await self._client.get(url, timeout=self.fetch_timeout)
        else:
            async with httpx.AsyncClient(timeout=self.fetch_timeout, follow_redirects=True) as client:
                response = await client.get(url)
        response.raise_for_status()
        logger.debug("Image fetched", url=url, size=len(response.content))
        return response.content

    # Drawing
    def _parse_color(self, color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
        """Parse a ``#RRGGBB`` colour to an RGBA tuple."""
        color = color.lstrip("#")
        r, g, b = int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)
        return (r, g, b, round(255 * opacity))

    def _draw_background(self, background: Background, size: tuple[int, int]) -> Image.Image:
        if not isinstance(background, GradientBackground):
            return Image.new("RGBA", size, self._parse_color(background.value))

        # A vertical ramp on a square large enough to cover the frame at any
        # angle, rotated into place and cropped back to the frame.
        width, height = size
        angle = gradient_angle(background.direction)
        theta = math.radians(angle)
        length = max(1, round(abs(width * math.sin(theta)) + abs(height * math.cos(theta))))
        side = math.ceil(math.hypot(width, height)) + 2

        mask = Image.new("L", (side, side), 0)
        top = (side - length) // 2
        mask.paste(255, (0, top + length, side, side))
        mask.paste(Image.linear_gradient("L").resize((side, length)), (0, top))
        mask = mask.rotate(180 - angle, resample=Image.Resampling.BICUBIC)

        left, upper = (side - width) // 2, (side - height) // 2
        mask = mask.crop((left, upper, left + width, upper + height))
        start = Image.new("RGBA", size, self._parse_color(background.start))
        end = Image.new("RGBA", size, self._parse_color(background.end))
        return Image.composite(end, start, mask)

    def _draw_shape(self, layer: Image.Image, shape: FilledShape) -> None:
        draw = ImageDraw.Draw(layer)
        box = [shape.left, shape.top, shape.left + shape.width, shape.top + shape.height]
        fill = self._parse_color(shape.fill, shape.opacity)
        if shape.shape_kind == ShapeKind.CIRCLE:
            draw.ellipse(box, fill=fill)
        else:
            draw.rectangle(box, fill=fill)

    def _draw_image(self, layer: Image.Image, rect: ImageRect, source: Image.Image) -> None:
        size = (max(1, round(rect.width)), max(1, round(rect.height)))
        image = source.resize(size, Image.Resampling.LANCZOS)
        if rect.opacity < 1.0:
            alpha = image.getchannel("A").point(lambda a: round(a * rect.opacity))
            image.putalpha(alpha)
        layer.paste(image, (round(rect.left), round(rect.top)), image)

    def _load_font(self, family: str, weight: FontWeight, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        """Find a TrueType font for a family, falling back to Pillow's default font."""
        bold = weight in _BOLD_WEIGHTS
        key = (family, bold, size)
        if key in self._fonts:
            return self._fonts[key]

        compact = family.replace(" ", "")
        style = "Bold" if bold else "Regular"
        names = [f"{compact}-{style}.ttf", f"{compact}{'-Bold' if bold else ''}.ttf", f"{compact}.ttf"]
        names += ["DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf", "Arial Bold.ttf" if bold else "Arial.ttf"]

        font: ImageFont.FreeTypeFont | ImageFont.ImageFont | None = None
        for directory in self._font_directories:
            for name in names:
                path = directory / name
                if path.exists():
                    try:
                        font = ImageFont.truetype(str(path), size=size)
                    except OSError:
                        continue
                    break
            if font is not None:
                break
        if font is None:
            font = ImageFont.load_default(size=size)

        self._fonts[key] = font
        return font

    def _wrap(self, draw: ImageDraw.ImageDraw, text: str, font: Any, max_width: float) -> str:
        lines: list[str] = []
        for paragraph in text.split("\n"):
            words = paragraph.split()
            if not words:
                lines.append("")
                continue
            current = words[0]
            for word in words[1:]:
                trial = f"{current} {word}"
                if draw.textlength(trial, font=font) <= max_width:
                    current = trial
                else:
                    lines.append(current)
                    current = word
            lines.append(current)
        return "\n".join(lines)

    def _draw_text(self, layer: Image.Image, run: TextRun) -> None:
        if not run.content.strip():
            return
        draw = ImageDraw.Draw(layer)
        font = self._load_font(run.font_family, run.font_weight, max(1, round(run.font_size)))
        text = run.content if run.max_width is None else self._wrap(draw, run.content, font, run.max_width)
        spacing = max(2, round(run.font_size * 0.2))
        align = run.align.value

        left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font, spacing=spacing, align=align)
        width, height = right - left, bottom - top
        block_width = width if run.max_width is None else max(width, run.max_width)
        block_left = run.x - block_width / 2
        # multiline_text aligns lines against the widest one; place that inside the block
        if run.align == TextAlign.LEFT:
            x = block_left
        elif run.align == TextAlign.RIGHT:
            x = block_left + block_width - width
        else:
            x = run.x - width / 2
        y = run.y - height / 2

        draw.multiline_text(
            (x - left, y - top),
            text,
            font=font,
            fill=self._parse_color(run.color),
            spacing=spacing,
            align=align,
        )


@dataclass(frozen=True)
class ExportResult:
    """One encoded file produced by an export.

    Attributes:
        filename: Suggested file name.
        content: Encoded bytes.
        width: Image width in pixels.
        height: Image height in pixels.
        media_type: MIME type of ``content``.
    """

    filename: str
    content: bytes
    width: int
    height: int
    media_type: str


class ExportService:
    """Service for exporting designs to various formats.

    Supports exporting to:
    - JSON: The persisted design record
    - SVG: Vector graphics representation
    - PNG / JPEG: Raster images through an export sink, including batch
      export to several platform sizes at once
    """

    def __init__(self, sink: ExportSink | None = None) -> None:
        """Initialize the export service.

        Args:
            sink: Sink used for raster exports; defaults to PillowExportSink.
        """
        self.sink = sink or PillowExportSink()

    def to_dict(self, document: Document) -> dict[str, Any]:
        """Export a design to its persisted record.

        Args:
            document: The design to export.

        Returns:
            Dictionary representation of the design.
        """
        return document_to_record(document)

    def to_json(self, document: Document, *, indent: int | None = 2) -> str:
        """Export a design to JSON format.

        Args:
            document: The design to export.
            indent: JSON indentation level (None for compact).

        Returns:
            JSON string representation of the design.
        """
        return json.dumps(self.to_dict(document), indent=indent)

    def to_svg(self, document: Document, *, pixel_density: float = 1.0) -> str:
        """Export a design to SVG format.

        Text is emitted one ``<tspan>`` per explicit line; automatic wrapping at
        ``max_width`` is left to the SVG viewer's font metrics and not applied.

        Args:
            document: The design to export.
            pixel_density: Multiplier applied to the platform size.

        Returns:
            SVG string representation of the design.
        """
        description = render_document(document, pixel_density=pixel_density)
        width, height = description.size

        defs = ""
        background = description.background
        if isinstance(background, GradientBackground):
            (x1, y1), (x2, y2) = gradient_line(gradient_angle(background.direction), width, height)
            defs = (
                "  <defs>\n"
                f'    <linearGradient id="background" gradientUnits="userSpaceOnUse" '
                f'x1="{_num(x1)}" y1="{_num(y1)}" x2="{_num(x2)}" y2="{_num(y2)}">\n'
                f'      <stop offset="0" stop-color="{background.start}"/>\n'
                f'      <stop offset="1" stop-color="{background.end}"/>\n'
                "    </linearGradient>\n"
                "  </defs>\n"
            )
            fill = "url(#background)"
        else:
            fill = background.value

        svg_elements = [
            svg for svg in (self._primitive_to_svg(primitive) for primitive in description.primitives) if svg
        ]

        return f"""<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg"
     width="{width}"
     height="{height}"
     viewBox="0 0 {width} {height}">
  <title>{self._escape_xml(document.name)}</title>
{defs}  <rect width="100%" height="100%" fill="{fill}"/>
{chr(10).join(svg_elements)}
</svg>"""

    async def to_raster(
        self,
        document: Document,
        format: ExportFormat | str = ExportFormat.PNG,  # noqa: A002
        *,
        pixel_density: float = 1.0,
    ) -> bytes:
        """Export a design to PNG or JPEG bytes.

        Args:
            document: The design to export.
            format: ``png`` or ``jpg``.
            pixel_density: Multiplier applied to the platform size.

        Returns:
            The encoded image.

        Raises:
            ExportFailedError: If the sink fails.
        """
        editor = CanvasEditor.from_document(document, max_history=0, export_sink=self.sink)
        return await editor.export_raster(format, pixel_density=pixel_density)

    def filename(self, document: Document, format: ExportFormat | str) -> str:  # noqa: A002
        """Build the download file name for a design, e.g. ``summer-sale.png``."""
        return f"{slugify(document.name)}.{format}"

    async def export_batch(
        self,
        document: Document,
        platform_ids: Iterable[str],
        format: ExportFormat | str = ExportFormat.PNG,  # noqa: A002
        *,
        pixel_density: float = 1.0,
    ) -> list[ExportResult]:
        """Export a design to several platform sizes at once.

        Each platform gets a magic-resized copy of the design; the source
        document is not modified.

        Args:
            document: The design to export.
            platform_ids: Target platform ids, in output order.
            format: ``png`` or ``jpg``.
            pixel_density: Multiplier applied to each platform size.

        Returns:
            One result per platform, named ``<platform>-<w>x<h>.<ext>``.

        Raises:
            InvalidPlatformError: If a platform id is unknown.
            ExportFailedError: If any export fails.
        """
        try:
            export_format = ExportFormat(format)
        except ValueError:
            msg = "format must be one of: png, jpg"
            raise InvalidPatchError(msg, field="format") from None
        platforms = [get_platform(platform_id) for platform_id in platform_ids]
        results = []
        for platform in platforms:
            resized = resize_document(document, platform.id)
            content = await self.to_raster(resized, export_format, pixel_density=pixel_density)
            width = max(1, round(platform.width * pixel_density))
            height = max(1, round(platform.height * pixel_density))
            results.append(
                ExportResult(
                    filename=f"{platform.id}-{platform.width}x{platform.height}.{export_format}",
                    content=content,
                    width=width,
                    height=height,
                    media_type=export_format.media_type,
                )
            )
        logger.info("Batch export finished", document_id=document.id, count=len(results), format=export_format.value)
        return results

    def _primitive_to_svg(self, primitive: Any) -> str | None:
        """Convert a render primitive to SVG markup."""
        if isinstance(primitive, FilledShape):
            return self._shape_to_svg(primitive)
        if isinstance(primitive, ImageRect):
            return (
                f'  <image href="{self._escape_xml(primitive.src)}" '
                f'x="{_num(primitive.left)}" y="{_num(primitive.top)}" '
                f'width="{_num(primitive.width)}" height="{_num(primitive.height)}" '
                f'preserveAspectRatio="none" opacity="{_num(primitive.opacity)}"/>'
            )
        if isinstance(primitive, TextRun):
            return self._text_to_svg(primitive)
        return None

    def _shape_to_svg(self, shape: FilledShape) -> str:
        """Convert a filled shape to an SVG element."""
        common_attrs = f'fill="{shape.fill}" opacity="{_num(shape.opacity)}"'
        if shape.shape_kind == ShapeKind.CIRCLE:
            cx = shape.left + shape.width / 2
            cy = shape.top + shape.height / 2
            return (
                f'  <ellipse cx="{_num(cx)}" cy="{_num(cy)}" '
                f'rx="{_num(shape.width / 2)}" ry="{_num(shape.height / 2)}" {common_attrs}/>'
            )
        return (
            f'  <rect x="{_num(shape.left)}" y="{_num(shape.top)}" '
            f'width="{_num(shape.width)}" height="{_num(shape.height)}" {common_attrs}/>'
        )

    def _text_to_svg(self, run: TextRun) -> str:
        """Convert a text run to an SVG text element."""
        # Without a block width lines can only be centred on x
        anchor, line_x = "middle", run.x
        if run.max_width is not None and run.align == TextAlign.LEFT:
            anchor, line_x = "start", run.x - run.max_width / 2
        elif run.max_width is not None and run.align == TextAlign.RIGHT:
            anchor, line_x = "end", run.x + run.max_width / 2
        lines = run.content.split("\n")
        first_dy = -(len(lines) - 1) * 0.6
        tspans = "".join(
            f'<tspan x="{_num(line_x)}" dy="{_num(first_dy if index == 0 else 1.2)}em">{self._escape_xml(line)}</tspan>'
            for index, line in enumerate(lines)
        )
        return (
            f'  <text x="{_num(line_x)}" y="{_num(run.y)}" '
            f'font-family="{self._escape_xml(run.font_family)}" '
            f'font-size="{_num(run.font_size)}" '
            f'font-weight="{run.font_weight.value}" '
            f'fill="{run.color}" '
            f'text-anchor="{anchor}" dominant-baseline="middle">'
            f"{tspans}</text>"
        )

    def _escape_xml(self, text: str) -> str:
        """Escape special XML characters."""
        return (
            text.replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;")
        )


def _num(value: float) -> str:
    return f"{value:g}"
