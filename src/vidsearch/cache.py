"""In-memory TTL store for normalized search results.

Expiry is lazy: an entry older than the TTL is deleted by the ``get`` that
finds it and nothing sweeps proactively. Reads never refresh an entry (this
is TTL-only, not LRU). The store takes no locks; callers rely on the
InFlightRegistry to keep a single writer per key and on the event loop to
make each get/set pair atomic between awaits.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from vidsearch.models.cache import CacheEntry

if TYPE_CHECKING:
    from collections.abc import Callable

    from vidsearch.models.video import SearchResult

log = structlog.get_logger()


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class TTLStore:
    """Maps cache keys to SearchResult payloads for ``ttl_ms`` milliseconds."""

    def __init__(
        self,
        ttl_ms: int,
        *,
        clock: Callable[[], float] = monotonic_ms,
        name: str = "search",
    ) -> None:
        self.ttl_ms = ttl_ms
        self.name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> SearchResult | None:
        """Return the payload for ``key``, or ``None`` on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.age_ms(self._clock()) >= self.ttl_ms:
            del self._entries[key]
            log.debug("cache_expired", cache=self.name, key=key)
            return None
        return entry.payload

    def set(self, key: str, payload: SearchResult) -> None:
        """Store ``payload``, replacing any previous entry and restarting its TTL."""
        self._entries[key] = CacheEntry(key=key, payload=payload, inserted_at=self._clock())
        log.debug("cache_set", cache=self.name, key=key, results=len(payload.results))

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        log.info("cache_cleared", cache=self.name, entries=count)

    def __len__(self) -> int:
        return len(self._entries)
