"""Cache key normalization.

Queries that differ only in case, surrounding or repeated whitespace, or
Unicode composition map to the same key, so a repeated search hits the cache
however it was typed. First pages and continuation pages never collide.
"""

from __future__ import annotations

import re
import unicodedata

FIRST_PAGE = "first"

# U+001F is whitespace to both str.split and \s, so it cannot survive in a
# normalized query and the last separator always starts the page segment.
KEY_SEPARATOR = "\x1f"

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(raw: str) -> str:
    """Canonicalise a raw query string.

    Steps (order matters):
      1. Unicode NFC composition
      2. Trim leading/trailing whitespace
      3. Collapse internal whitespace runs to a single space
      4. Lowercase
    """
    query = unicodedata.normalize("NFC", raw)
    query = query.strip()
    query = _WHITESPACE_RE.sub(" ", query)
    return query.lower()


def cache_key(raw_query: str, page_token: str | None = None) -> str:
    """Return the cache key for a query and optional continuation token."""
    return f"{normalize_query(raw_query)}{KEY_SEPARATOR}{page_token or FIRST_PAGE}"


def parse_cache_key(key: str) -> tuple[str, str | None]:
    """Split a key produced by :func:`cache_key` into ``(query, page_token)``."""
    query, _, page = key.rpartition(KEY_SEPARATOR)
    return query, None if page == FIRST_PAGE else page
