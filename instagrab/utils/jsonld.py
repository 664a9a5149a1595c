"""Read JSON-LD (``application/ld+json``) blocks embedded in a page."""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

import structlog

logger = structlog.get_logger()

_JSONLD_SCRIPT = re.compile(
    r"""<script\b[^>]*?type\s*=\s*["']application/ld\+json["'][^>]*>(.*?)</script\s*>""",
    re.IGNORECASE | re.DOTALL,
)


def iter_jsonld_objects(html: str) -> Iterator[dict[str, Any]]:
    """Yield every JSON object found in the page's JSON-LD script blocks.

    Blocks are parsed lazily, in document order. Malformed blocks are
    skipped and top-level arrays are flattened into their object members.
    """
    for match in _JSONLD_SCRIPT.finditer(html):
        try:
            data = json.loads(match.group(1))
        except ValueError as exc:
            logger.debug("jsonld_block_malformed", error=str(exc))
            continue

        candidates = data if isinstance(data, list) else [data]
        for candidate in candidates:
            if isinstance(candidate, dict):
                yield candidate


def _has_type(obj: dict[str, Any], type_name: str) -> bool:
    declared = obj.get("@type")
    if isinstance(declared, list):
        return type_name in declared
    return declared == type_name


def find_jsonld_object(html: str, type_name: str) -> dict[str, Any] | None:
    """Return the first JSON-LD object whose ``@type`` is *type_name*."""
    return next(
        (obj for obj in iter_jsonld_objects(html) if _has_type(obj, type_name)),
        None,
    )
