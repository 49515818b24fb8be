"""Template provider protocol and the built-in template catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from postcanvas.core.models import GradientBackground, ShapeElement, Template, TextElement
from postcanvas.core.platforms import get_platform
from postcanvas.core.types import FontWeight, ShapeKind
from postcanvas.exceptions import TemplateNotFoundError
from postcanvas.services.export import slugify

if TYPE_CHECKING:
    from collections.abc import Iterable

# Platform family used by the catalog -> platform size the template is laid out for.
_FAMILY_PLATFORMS = {
    "instagram": "instagram-post",
    "facebook": "facebook-post",
    "twitter": "twitter-post",
    "linkedin": "linkedin-post",
    "youtube": "youtube-thumbnail",
}

CATEGORIES = ("promotion", "announcement", "quote", "product", "event", "holiday", "stats", "testimonial")

# (name, category, family, start colour, end colour, premium, likes)
_CATALOG: tuple[tuple[str, str, str, str, str, bool, int], ...] = (
    ("Flash Sale Banner", "promotion", "instagram", "#FF6B6B", "#4ECDC4", False, 1240),
    ("Limited Offer", "promotion", "facebook", "#6C63FF", "#F5576C", False, 890),
    ("Discount Code", "promotion", "twitter", "#00C9FF", "#92FE9D", False, 756),
    ("BOGO Deal", "promotion", "instagram", "#FA709A", "#FEE140", True, 2100),
    ("Clearance Sale", "promotion", "facebook", "#667EEA", "#764BA2", False, 543),
    ("New Product Launch", "announcement", "instagram", "#8E2DE2", "#4A00E0", True, 3200),
    ("Coming Soon", "announcement", "twitter", "#11998E", "#38EF7D", False, 1890),
    ("Grand Opening", "announcement", "facebook", "#FC466B", "#3F5EFB", True, 2456),
    ("Now Hiring", "announcement", "linkedin", "#0077B5", "#00A0DC", False, 987),
    ("Feature Update", "announcement", "twitter", "#1DA1F2", "#14171A", False, 654),
    ("Minimal Quote", "quote", "instagram", "#FFFFFF", "#1A1A2E", False, 4500),
    ("Gradient Quote", "quote", "instagram", "#DA22FF", "#9733EE", False, 3890),
    ("Photo Quote", "quote", "facebook", "#000000", "#FFFFFF", True, 2345),
    ("Motivational", "quote", "instagram", "#F2994A", "#F2C94C", False, 5670),
    ("Business Wisdom", "quote", "linkedin", "#2C3E50", "#3498DB", False, 1234),
    ("Product Spotlight", "product", "instagram", "#FF9966", "#FF5E62", True, 2890),
    ("Before & After", "product", "instagram", "#56CCF2", "#2F80ED", True, 3456),
    ("Feature Highlight", "product", "twitter", "#00B4DB", "#0083B0", False, 876),
    ("Product Compare", "product", "facebook", "#ED213A", "#93291E", True, 1567),
    ("Unboxing", "product", "youtube", "#FF0000", "#282828", False, 2100),
    ("Webinar Invite", "event", "linkedin", "#6441A5", "#2A0845", False, 1890),
    ("Workshop", "event", "facebook", "#FF416C", "#FF4B2B", False, 1234),
    ("Live Stream", "event", "instagram", "#C31432", "#240B36", True, 2567),
    ("Conference", "event", "linkedin", "#1A2980", "#26D0CE", True, 987),
    ("Meetup", "event", "twitter", "#F37335", "#FDC830", False, 654),
    ("Christmas Sale", "holiday", "instagram", "#C41E3A", "#165B33", False, 5670),
    ("New Year", "holiday", "facebook", "#FFD700", "#000000", False, 4532),
    ("Valentines Day", "holiday", "instagram", "#FF69B4", "#FFB6C1", True, 3456),
    ("Halloween", "holiday", "instagram", "#FF6600", "#1A1A1A", False, 2890),
    ("Black Friday", "holiday", "facebook", "#000000", "#FFD700", True, 6789),
    ("Infographic", "stats", "linkedin", "#3498DB", "#2C3E50", True, 3456),
    ("Pie Chart", "stats", "twitter", "#9B59B6", "#3498DB", False, 1234),
    ("Growth Stats", "stats", "linkedin", "#27AE60", "#2ECC71", False, 2100),
    ("Customer Review", "testimonial", "instagram", "#FFD93D", "#FFFFFF", False, 4567),
    ("Star Rating", "testimonial", "facebook", "#FFB800", "#1A1A1A", False, 3210),
    ("Case Study", "testimonial", "linkedin", "#0A66C2", "#FFFFFF", True, 1678),
    ("Tips & Tricks", "announcement", "instagram", "#00B09B", "#96C93D", False, 3456),
    ("Behind Scenes", "product", "instagram", "#373B44", "#4286F4", False, 2100),
    ("Giveaway", "promotion", "instagram", "#F953C6", "#B91D73", True, 5678),
    ("Tutorial Steps", "announcement", "facebook", "#4776E6", "#8E54E9", False, 2345),
)

_TAGLINES = {
    "promotion": "Up to 50% off this week only",
    "announcement": "Something new is on the way",
    "quote": "Make every day count.",
    "product": "Designed for the way you work",
    "event": "Join us live - save your spot",
    "holiday": "Celebrate with us",
    "stats": "Numbers that speak for themselves",
    "testimonial": "Loved by thousands of customers",
}


def _text_color(start: str, end: str) -> str:
    """Pick black or white text depending on the average background luminance."""
    channels = [int(color[i : i + 2], 16) for color in (start, end) for i in (1, 3, 5)]
    r = (channels[0] + channels[3]) / 2
    g = (channels[1] + channels[4]) / 2
    b = (channels[2] + channels[5]) / 2
    return "#1A1A1A" if 0.299 * r + 0.587 * g + 0.114 * b > 160 else "#FFFFFF"


def build_template(
    name: str,
    category: str,
    platform_id: str,
    start: str,
    end: str,
    *,
    premium: bool = False,
    likes: int = 0,
) -> Template:
    """Lay out a headline template on a gradient for one platform size.

    Args:
        name: Template name, also used as the headline.
        category: Library category.
        platform_id: Platform the template is laid out for.
        start: Gradient start colour.
        end: Gradient end colour.
        premium: Whether the template is reserved for paid plans.
        likes: Popularity counter.

    Returns:
        The template with a headline, a tagline and an accent bar.
    """
    width, height = get_platform(platform_id).size
    template_id = slugify(name, default="template")
    color = _text_color(start, end)
    unit = min(width, height)
    elements = (
        ShapeElement(
            id=f"{template_id}-accent",
            x=width / 2,
            y=height * 0.62,
            shape_kind=ShapeKind.RECTANGLE,
            width=max(10.0, width * 0.25),
            height=max(10.0, unit * 0.015),
            fill=color,
            opacity=0.8,
        ),
        TextElement(
            id=f"{template_id}-headline",
            x=width / 2,
            y=height * 0.45,
            content=name,
            font_size=max(8, min(200, round(unit * 0.09))),
            font_weight=FontWeight.BLACK,
            color=color,
            max_width=width * 0.8,
        ),
        TextElement(
            id=f"{template_id}-tagline",
            x=width / 2,
            y=height * 0.72,
            content=_TAGLINES.get(category, ""),
            font_size=max(8, min(200, round(unit * 0.04))),
            font_weight=FontWeight.NORMAL,
            color=color,
            max_width=width * 0.8,
        ),
    )
    return Template(
        id=template_id,
        name=name,
        platform_id=platform_id,
        background=GradientBackground(start=start, end=end, direction="135deg"),
        elements=elements,
        category=category,
        premium=premium,
        likes=likes,
    )


def default_templates() -> list[Template]:
    """Build the built-in template catalog."""
    return [
        build_template(
            name,
            category,
            _FAMILY_PLATFORMS[family],
            start,
            end,
            premium=premium,
            likes=likes,
        )
        for name, category, family, start, end, premium, likes in _CATALOG
    ]


@runtime_checkable
class TemplateProvider(Protocol):
    """Protocol for supplying templates to editing sessions."""

    async def fetch_by_platform(self, platform_id: str) -> list[Template]:
        """Return the templates laid out for a platform.

        Args:
            platform_id: Platform id, e.g. ``instagram-post``.

        Returns:
            Matching templates, most popular first.
        """
        ...

    async def get(self, template_id: str) -> Template:
        """Return one template.

        Raises:
            TemplateNotFoundError: If no template has that id.
        """
        ...

    async def search(
        self,
        query: str | None = None,
        category: str | None = None,
        platform: str | None = None,
    ) -> list[Template]:
        """Filter templates by text, category and platform.

        Args:
            query: Case-insensitive substring of the name or category.
            category: Exact category, or None for all.
            platform: Platform family (``instagram``) or platform id.

        Returns:
            Matching templates, most popular first.
        """
        ...


class InMemoryTemplateProvider:
    """Template provider serving a fixed list of templates from memory.

    Templates are frozen and loading them into an editor copies their
    elements, so the same instances are safely shared between sessions.
    """

    def __init__(self, templates: Iterable[Template] | None = None) -> None:
        """Initialize the provider.

        Args:
            templates: Templates to serve. If None, the built-in catalog is used.
        """
        catalog = default_templates() if templates is None else list(templates)
        self._templates: dict[str, Template] = {template.id: template for template in catalog}

    @staticmethod
    def _by_popularity(templates: Iterable[Template]) -> list[Template]:
        return sorted(templates, key=lambda t: t.likes, reverse=True)

    async def fetch_by_platform(self, platform_id: str) -> list[Template]:
        """Return the templates laid out for a platform, most popular first."""
        return self._by_popularity(t for t in self._templates.values() if t.platform_id == platform_id)

    async def get(self, template_id: str) -> Template:
        """Return one template.

        Raises:
            TemplateNotFoundError: If no template has that id.
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id) from None

    async def search(
        self,
        query: str | None = None,
        category: str | None = None,
        platform: str | None = None,
    ) -> list[Template]:
        """Filter templates by text, category and platform, most popular first."""
        results = list(self._templates.values())
        if category and category != "all":
            results = [t for t in results if t.category == category]
        if platform:
            results = [t for t in results if t.platform_id == platform or t.platform_id.startswith(f"{platform}-")]
        if query:
            needle = query.lower()
            results = [t for t in results if needle in t.name.lower() or needle in t.category.lower()]
        return self._by_popularity(results)
