from __future__ import annotations

from aiohttp import web

from instagrab.config import settings
from instagrab.errors import InvalidInput
from instagrab.utils.link_detector import PostReference, is_allowed_media_url, parse_post_url

INVALID_POST_URL = (
    "Invalid Instagram URL. Supported formats: posts (/p/), reels (/reel/), and IGTV (/tv/)"
)


async def read_post_url(request: web.Request) -> PostReference:
    """Pull the post URL out of a ``{"url": ...}`` JSON body and validate it.

    Surrounding whitespace is ignored. Raises InvalidInput when the body is
    unreadable, the URL is missing, or it is not an Instagram post URL.
    """
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidInput("Request body must be JSON") from exc

    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("URL is required")

    post = parse_post_url(url.strip())
    if post is None:
        raise InvalidInput(INVALID_POST_URL)
    return post


def read_media_url(request: web.Request) -> str:
    """Return the ``url`` query parameter if it points at an allowed media host."""
    url = request.query.get("url", "").strip()
    if not url:
        raise InvalidInput("URL parameter is required")
    if not is_allowed_media_url(url, settings.allowed_media_domains):
        raise InvalidInput("Invalid media URL")
    return url
