from __future__ import annotations

import json
from typing import Any

import aiohttp
import structlog

from instagrab.config import settings
from instagrab.scrapers.base import (
    BaseScraper,
    ContentSource,
    ExtractionResult,
    MediaItem,
    MediaType,
    Strategy,
)
from instagrab.utils.jsonld import find_jsonld_object
from instagrab.utils.link_detector import with_query_param
from instagrab.utils.opengraph import parse_opengraph

logger = structlog.get_logger()

_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

# Desktop navigation headers; Instagram serves a login wall to obvious bots
_BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": _USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Upgrade-Insecure-Requests": "1",
}

# Asks Instagram for the post as JSON instead of HTML
_API_QUERY_MARKER = "__a=1"


def _dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    for key in path:
        if isinstance(key, int):
            if not isinstance(data, list) or not -len(data) <= key < len(data):
                return None
        elif not isinstance(data, dict):
            return None
        data = data[key] if isinstance(data, list) else data.get(key)
    return data


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _media_from_node(node: Any) -> MediaItem | None:
    """Map one GraphQL media node to a MediaItem.

    Videos need a playable ``video_url``; anything else is treated as an
    image and needs a ``display_url``.
    """
    if not isinstance(node, dict):
        return None

    display_url = _text(node.get("display_url"))
    video_url = _text(node.get("video_url"))

    if node.get("is_video") and video_url:
        thumbnail = display_url if display_url and display_url != video_url else None
        return MediaItem(url=video_url, media_type=MediaType.VIDEO, thumbnail=thumbnail)
    if display_url:
        return MediaItem(url=display_url, media_type=MediaType.IMAGE)
    return None


def parse_graphql(body: str) -> ExtractionResult | None:
    """Read media from the ``graphql.shortcode_media`` JSON payload."""
    try:
        payload = json.loads(body)
    except ValueError:
        return None

    post = _dig(payload, "graphql", "shortcode_media")
    if not isinstance(post, dict):
        return None

    edges = _dig(post, "edge_sidecar_to_children", "edges")
    if isinstance(edges, list):
        nodes = [_dig(edge, "node") for edge in edges]
    else:
        nodes = [post]

    media = [item for item in map(_media_from_node, nodes) if item is not None]
    if not media:
        return None

    return ExtractionResult(
        media=media,
        caption=_text(_dig(post, "edge_media_to_caption", "edges", 0, "node", "text")),
        username=_text(_dig(post, "owner", "username")),
    )


def parse_jsonld(html: str) -> ExtractionResult | None:
    """Read a single image from the page's first ``ImageObject`` JSON-LD block."""
    image_object = find_jsonld_object(html, "ImageObject")
    if image_object is None:
        return None

    content_url = _text(image_object.get("contentUrl")).strip()
    if not content_url:
        return None

    author = image_object.get("author")
    if isinstance(author, list):
        author = author[0] if author else None

    return ExtractionResult(
        media=[MediaItem(url=content_url, media_type=MediaType.IMAGE)],
        caption=_text(image_object.get("caption")),
        username=_text(_dig(author, "alternateName")),
    )


def parse_opengraph_media(html: str) -> ExtractionResult | None:
    """Read one video or image from og:video / og:image meta tags."""
    og = parse_opengraph(html)

    if og.video:
        thumbnail = og.image if og.image != og.video else None
        item = MediaItem(url=og.video, media_type=MediaType.VIDEO, thumbnail=thumbnail)
    elif og.image:
        item = MediaItem(url=og.image, media_type=MediaType.IMAGE)
    else:
        return None

    # Meta tags never carry the author handle
    return ExtractionResult(media=[item], caption=og.description or "", username="")


class InstagramScraper(BaseScraper):
    """Extract media from a public Instagram post, reel or IGTV video.

    Strategies run from most to least structured: the JSON payload
    (carousels included), then JSON-LD, then OpenGraph tags. The JSON
    payload is best-effort; only a failure fetching the HTML page is fatal.
    """

    optional_sources = frozenset({ContentSource.API})

    @property
    def strategies(self) -> list[Strategy]:
        return [
            Strategy("graphql", ContentSource.API, parse_graphql),
            Strategy("jsonld", ContentSource.PAGE, parse_jsonld),
            Strategy("opengraph", ContentSource.PAGE, parse_opengraph_media),
        ]

    async def fetch(
        self, session: aiohttp.ClientSession, source: ContentSource, url: str
    ) -> str:
        target = with_query_param(url, _API_QUERY_MARKER) if source == ContentSource.API else url

        async with session.get(
            target,
            headers=_BROWSER_HEADERS,
            timeout=aiohttp.ClientTimeout(total=settings.extract_timeout_seconds),
            allow_redirects=True,
            max_redirects=settings.max_redirects,
        ) as resp:
            resp.raise_for_status()
            return await resp.text(errors="replace")
