from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from vidsearch.models.video import SearchResult


class CacheEntry(BaseModel):
    """One TTL store slot. Overwritten, never merged."""

    model_config = ConfigDict(frozen=True)

    key: str  # Normalized query + page segment, see keys.cache_key
    payload: SearchResult
    inserted_at: float  # Monotonic milliseconds

    def age_ms(self, now: float) -> float:
        return now - self.inserted_at
