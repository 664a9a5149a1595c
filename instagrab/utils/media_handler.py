from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import NoReturn
from urllib.parse import urljoin

import aiohttp
import structlog
from aiohttp import hdrs

from instagrab.config import settings
from instagrab.errors import UpstreamFailure
from instagrab.utils.link_detector import is_allowed_media_url

logger = structlog.get_logger()

_MAX_BYTES = settings.max_file_size_mb * 1024 * 1024

_CHUNK_SIZE = 64 * 1024

_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

_DEFAULT_CONTENT_TYPE = "application/octet-stream"

_DOWNLOAD_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

DOWNLOAD_FAILED = "Failed to download media"


@dataclass
class FetchedMedia:
    """Media bytes fetched from a CDN, with the upstream content type."""

    data: bytes
    content_type: str = _DEFAULT_CONTENT_TYPE


async def fetch_media(
    url: str,
    session: aiohttp.ClientSession | None = None,
) -> FetchedMedia:
    """Download a single media file into memory.

    Redirects are followed by hand so every hop can be checked against the
    media host allow-list. Raises UpstreamFailure on network errors,
    timeouts, non-2xx responses, off-list or excessive redirects, empty
    bodies and bodies over MAX_FILE_SIZE_MB. Nothing is retried.
    """
    own_session = session is None
    if own_session:
        session = aiohttp.ClientSession()

    target = url
    try:
        for _ in range(settings.max_redirects + 1):
            async with session.get(
                target,
                headers=_DOWNLOAD_HEADERS,
                timeout=aiohttp.ClientTimeout(total=settings.download_timeout_seconds),
                allow_redirects=False,
            ) as resp:
                if resp.status in _REDIRECT_STATUSES:
                    target = _next_hop(target, resp.headers.get(hdrs.LOCATION))
                    continue

                resp.raise_for_status()
                content_type = resp.headers.get(hdrs.CONTENT_TYPE) or _DEFAULT_CONTENT_TYPE
                data = await _read_capped(resp, target)
                break
        else:
            logger.error("media_too_many_redirects", url=url, last=target)
            raise UpstreamFailure(DOWNLOAD_FAILED)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.error("media_download_failed", url=target, error=str(exc) or type(exc).__name__)
        raise UpstreamFailure(DOWNLOAD_FAILED) from exc
    finally:
        if own_session:
            await session.close()

    if not data:
        logger.error("media_download_empty", url=target)
        raise UpstreamFailure(DOWNLOAD_FAILED)

    logger.info("media_downloaded", url=target, content_type=content_type, size=len(data))
    return FetchedMedia(data=data, content_type=content_type)


def _next_hop(current: str, location: str | None) -> str:
    """Resolve a redirect target, refusing hosts outside the allow-list."""
    if not location:
        logger.error("media_redirect_without_location", url=current)
        raise UpstreamFailure(DOWNLOAD_FAILED)

    target = urljoin(current, location)
    if not is_allowed_media_url(target, settings.allowed_media_domains):
        logger.warning("media_redirect_refused", url=current, location=target)
        raise UpstreamFailure(DOWNLOAD_FAILED)
    return target


async def _read_capped(resp: aiohttp.ClientResponse, url: str) -> bytes:
    """Read the body, giving up as soon as it exceeds MAX_FILE_SIZE_MB."""
    if resp.content_length is not None and resp.content_length > _MAX_BYTES:
        _too_large(url, resp.content_length)

    buf = bytearray()
    async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
        buf.extend(chunk)
        if len(buf) > _MAX_BYTES:
            _too_large(url, len(buf))
    return bytes(buf)


def _too_large(url: str, size: int) -> NoReturn:
    logger.warning("media_too_large", url=url, size_mb=round(size / 1024 / 1024, 1))
    raise UpstreamFailure(DOWNLOAD_FAILED)
