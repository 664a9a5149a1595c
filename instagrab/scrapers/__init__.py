from instagrab.scrapers.base import (
    BaseScraper,
    ContentSource,
    ExtractionResult,
    MediaItem,
    MediaType,
    Strategy,
)
from instagrab.scrapers.instagram import InstagramScraper

__all__ = [
    "BaseScraper",
    "ContentSource",
    "ExtractionResult",
    "MediaItem",
    "MediaType",
    "Strategy",
    "InstagramScraper",
]
