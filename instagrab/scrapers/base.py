from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import aiohttp
import structlog

from instagrab.config import settings
from instagrab.errors import NotFound, UpstreamFailure

logger = structlog.get_logger()


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class ContentSource(StrEnum):
    """Where a strategy reads its input from."""

    API = "api"  # post URL with the JSON query marker
    PAGE = "page"  # plain post HTML


@dataclass
class MediaItem:
    """A single downloadable image or video."""

    url: str
    media_type: MediaType
    thumbnail: str | None = None  # preview image, videos only

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("MediaItem.url must not be empty")
        if self.media_type != MediaType.VIDEO:
            self.thumbnail = None

    def to_dict(self) -> dict[str, str]:
        data = {"type": str(self.media_type), "url": self.url}
        if self.thumbnail:
            data["thumbnail"] = self.thumbnail
        return data


@dataclass
class ExtractionResult:
    """Media located on a post, in the order the page lists them."""

    media: list[MediaItem] = field(default_factory=list)
    caption: str = ""
    username: str = ""
    method_used: str = "unknown"

    @property
    def has_media(self) -> bool:
        return len(self.media) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "media": [item.to_dict() for item in self.media],
            "caption": self.caption,
            "username": self.username,
        }


@dataclass(frozen=True)
class Strategy:
    """One way of reading media out of fetched content.

    ``parse`` must be a pure function returning None when the content does
    not hold what it looks for.
    """

    name: str
    source: ContentSource
    parse: Callable[[str], ExtractionResult | None]


def _dbg(event: str, **kwargs: object) -> None:
    """Log at info level when debug_mode is on, otherwise debug."""
    if settings.debug_mode:
        logger.info(event, **kwargs)
    else:
        logger.debug(event, **kwargs)


class BaseScraper(ABC):
    """Runs an ordered list of extraction strategies against a post URL.

    Each content source is fetched at most once per call, the first time a
    strategy needs it. Sources listed in ``optional_sources`` may fail
    quietly; a failure fetching any other source raises UpstreamFailure.
    """

    optional_sources: frozenset[ContentSource] = frozenset()

    @property
    @abstractmethod
    def strategies(self) -> list[Strategy]: ...

    @abstractmethod
    async def fetch(
        self, session: aiohttp.ClientSession, source: ContentSource, url: str
    ) -> str:
        """Fetch the raw content for *source*. Raise aiohttp errors on failure."""
        ...

    async def extract(self, url: str) -> ExtractionResult:
        """Run the strategy chain and return the first non-empty result."""
        contents: dict[ContentSource, str | None] = {}

        async with aiohttp.ClientSession() as session:
            for strategy in self.strategies:
                if strategy.source not in contents:
                    contents[strategy.source] = await self._load(session, strategy.source, url)

                content = contents[strategy.source]
                if content is None:
                    _dbg("extraction_method_skipped", url=url, method=strategy.name)
                    continue

                start = time.monotonic()
                try:
                    result = strategy.parse(content)
                except Exception as exc:
                    duration_ms = int((time.monotonic() - start) * 1000)
                    logger.warning(
                        "extraction_method_failed",
                        url=url,
                        method=strategy.name,
                        duration_ms=duration_ms,
                        error=str(exc),
                    )
                    continue

                duration_ms = int((time.monotonic() - start) * 1000)
                if result is None or not result.has_media:
                    _dbg(
                        "extraction_method_empty",
                        url=url,
                        method=strategy.name,
                        duration_ms=duration_ms,
                    )
                    continue

                result.method_used = strategy.name
                logger.info(
                    "media_extracted",
                    url=url,
                    method=strategy.name,
                    duration_ms=duration_ms,
                    media_count=len(result.media),
                )
                return result

        logger.warning("all_extraction_methods_failed", url=url)
        raise NotFound()

    async def _load(
        self, session: aiohttp.ClientSession, source: ContentSource, url: str
    ) -> str | None:
        start = time.monotonic()
        try:
            content = await self.fetch(session, source, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            duration_ms = int((time.monotonic() - start) * 1000)
            if source in self.optional_sources:
                _dbg(
                    "content_fetch_failed",
                    url=url,
                    source=source,
                    duration_ms=duration_ms,
                    error=str(exc) or type(exc).__name__,
                )
                return None
            logger.error(
                "content_fetch_failed",
                url=url,
                source=source,
                duration_ms=duration_ms,
                error=str(exc) or type(exc).__name__,
            )
            raise UpstreamFailure() from exc

        _dbg(
            "content_fetched",
            url=url,
            source=source,
            duration_ms=int((time.monotonic() - start) * 1000),
            size=len(content),
        )
        return content
