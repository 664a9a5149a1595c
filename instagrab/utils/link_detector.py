from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlparse


class PostKind(StrEnum):
    POST = "p"
    REEL = "reel"
    TV = "tv"


@dataclass(frozen=True)
class PostReference:
    url: str
    kind: PostKind
    shortcode: str
    username: str | None = None


# Accepted post URL shapes:
#   https://www.instagram.com/p/ABC123/
#   https://instagram.com/username/reel/ABC123
#   https://www.instagram.com/tv/ABC123/?utm_source=ig_web_copy_link
_POST_URL_PATTERN = re.compile(
    r"https?://(?:www\.)?instagram\.com/"
    r"(?:(?P<username>[A-Za-z0-9_.]+)/)?"
    r"(?P<kind>p|reel|tv)/"
    r"(?P<shortcode>[A-Za-z0-9_-]+)/?"
    r"(?:\?.*)?"
)


def parse_post_url(raw: str) -> PostReference | None:
    """Parse a post URL into its parts, or return None if it has the wrong shape."""
    match = _POST_URL_PATTERN.fullmatch(raw)
    if match is None:
        return None
    return PostReference(
        url=raw,
        kind=PostKind(match.group("kind")),
        shortcode=match.group("shortcode"),
        username=match.group("username"),
    )


def is_post_url(raw: str) -> bool:
    return parse_post_url(raw) is not None


def with_query_param(url: str, param: str) -> str:
    """Append a ``key=value`` pair to the URL's query string."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{param}"


def is_allowed_media_url(raw: str, domains: Iterable[str]) -> bool:
    """Check that a media URL is http(s) and hosted on one of *domains*.

    The hostname must equal a domain or be a subdomain of it. Plain substring
    containment does not count, so ``instagram.com.attacker.net`` is refused.
    """
    try:
        parsed = urlparse(raw)
        hostname = parsed.hostname
        # Raises on out-of-range or non-numeric ports
        parsed.port
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https") or not hostname:
        return False

    hostname = hostname.lower().rstrip(".")
    for domain in domains:
        domain = domain.lower().strip(".")
        if hostname == domain or hostname.endswith("." + domain):
            return True
    return False
