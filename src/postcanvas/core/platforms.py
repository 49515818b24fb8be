"""Catalog of supported platform canvas sizes."""

from __future__ import annotations

from postcanvas.core.models import PlatformSize
from postcanvas.exceptions import InvalidPlatformError

_SIZES: tuple[PlatformSize, ...] = (
    PlatformSize("instagram-post", 1080, 1080, "Instagram Post"),
    PlatformSize("instagram-portrait", 1080, 1350, "Instagram Post (Portrait)"),
    PlatformSize("instagram-landscape", 1080, 566, "Instagram Post (Landscape)"),
    PlatformSize("instagram-story", 1080, 1920, "Instagram Story"),
    PlatformSize("facebook-post", 1200, 630, "Facebook Post"),
    PlatformSize("facebook-cover", 820, 312, "Facebook Cover"),
    PlatformSize("facebook-event-cover", 1920, 1005, "Facebook Event Cover"),
    PlatformSize("facebook-story", 1080, 1920, "Facebook Story"),
    PlatformSize("facebook-ad", 1200, 628, "Facebook Ad"),
    PlatformSize("twitter-post", 1200, 675, "Twitter Post"),
    PlatformSize("twitter-header", 1500, 500, "Twitter Header"),
    PlatformSize("twitter-card", 800, 418, "Twitter Card"),
    PlatformSize("linkedin-post", 1200, 627, "LinkedIn Post"),
    PlatformSize("linkedin-cover", 1584, 396, "LinkedIn Cover"),
    PlatformSize("linkedin-story", 1080, 1920, "LinkedIn Story"),
    PlatformSize("youtube-thumbnail", 1280, 720, "YouTube Thumbnail"),
    PlatformSize("youtube-channel-art", 2560, 1440, "YouTube Channel Art"),
    PlatformSize("youtube-shorts", 1080, 1920, "YouTube Shorts"),
    PlatformSize("pinterest-pin", 1000, 1500, "Pinterest Standard Pin"),
    PlatformSize("pinterest-square", 1000, 1000, "Pinterest Square Pin"),
    PlatformSize("pinterest-long", 1000, 2100, "Pinterest Long Pin"),
    PlatformSize("tiktok-video", 1080, 1920, "TikTok Video"),
)

PLATFORM_SIZES: dict[str, PlatformSize] = {size.id: size for size in _SIZES}


def get_platform(platform_id: str) -> PlatformSize:
    """Look up a platform size by id.

    Args:
        platform_id: The platform id, e.g. ``instagram-post``.

    Returns:
        The matching platform size.

    Raises:
        InvalidPlatformError: If the id is not in the catalog.
    """
    try:
        return PLATFORM_SIZES[platform_id]
    except KeyError:
        raise InvalidPlatformError(platform_id) from None


def list_platforms(prefix: str | None = None) -> list[PlatformSize]:
    """List catalog entries, optionally restricted to one platform family.

    Args:
        prefix: Platform family such as ``instagram``; None lists everything.

    Returns:
        Matching platform sizes in catalog order.
    """
    if prefix is None:
        return list(_SIZES)
    return [size for size in _SIZES if size.id.startswith(f"{prefix}-")]
