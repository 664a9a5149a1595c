"""Extract Open Graph media tags (og:video, og:image, og:description) from post HTML.

Used as the last-resort source of media for posts whose page carries no
structured data, since Instagram always renders social-preview tags.
"""

from __future__ import annotations

import html as html_lib
import re
from dataclasses import dataclass

# A whole <meta ...> tag; quoted attribute values may contain '>'
_META_TAG = re.compile(r"""<meta\b(?:[^>"']|"[^"]*"|'[^']*')*>""", re.IGNORECASE)

# name="value" / name='value' pairs inside a tag
_ATTRIBUTE = re.compile(r"""([\w:.-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


@dataclass
class OpenGraphData:
    image: str | None = None
    video: str | None = None
    description: str | None = None


def _meta_attributes(tag: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for match in _ATTRIBUTE.finditer(tag):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs.setdefault(match.group(1).lower(), html_lib.unescape(value))
    return attrs


def parse_opengraph(html: str) -> OpenGraphData:
    """Read Open Graph meta tags from an HTML document.

    Accepts both ``property=`` and ``name=``, in any attribute order. The
    first occurrence of each tag wins and empty values count as absent.
    """
    found: dict[str, str] = {}

    for tag in _META_TAG.finditer(html):
        attrs = _meta_attributes(tag.group(0))
        key = attrs.get("property") or attrs.get("name") or ""
        if not key.lower().startswith("og:"):
            continue
        value = attrs.get("content", "").strip()
        if value:
            found.setdefault(key[3:].lower(), value)

    return OpenGraphData(
        image=found.get("image"),
        video=found.get("video"),
        description=found.get("description"),
    )
