from __future__ import annotations

import structlog
from aiohttp import hdrs, web

from instagrab.config import settings
from instagrab.scrapers.base import BaseScraper
from instagrab.utils.media_handler import fetch_media
from instagrab.web.filters import read_media_url, read_post_url

logger = structlog.get_logger()

routes = web.RouteTableDef()

SCRAPER_KEY = web.AppKey("scraper", BaseScraper)


@routes.post("/extract")
async def extract_media(request: web.Request) -> web.Response:
    """Return the media list, caption and username of an Instagram post."""
    post = await read_post_url(request)
    scraper = request.app[SCRAPER_KEY]

    result = await scraper.extract(post.url)
    logger.info(
        "post_extracted",
        shortcode=post.shortcode,
        kind=post.kind,
        method=result.method_used,
        media_count=len(result.media),
    )
    return web.json_response(result.to_dict())


@routes.get("/proxy-download")
async def proxy_download(request: web.Request) -> web.Response:
    """Relay a CDN media file back to the caller as a forced download.

    Browsers cannot fetch Instagram CDN URLs directly because of hotlink and
    CORS restrictions, so the bytes go through this endpoint.
    """
    url = read_media_url(request)
    media = await fetch_media(url)

    return web.Response(
        body=media.data,
        headers={
            hdrs.CONTENT_TYPE: media.content_type,
            hdrs.CONTENT_DISPOSITION: "attachment",
            hdrs.CACHE_CONTROL: f"public, max-age={settings.download_cache_max_age}",
        },
    )
