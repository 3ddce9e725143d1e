from __future__ import annotations

from vidsearch.models.cache import CacheEntry
from vidsearch.models.video import (
    SearchResult,
    Thumbnail,
    VideoDetails,
    VideoSummary,
    format_duration,
)

__all__ = [
    # video
    "Thumbnail",
    "VideoSummary",
    "VideoDetails",
    "SearchResult",
    "format_duration",
    # cache
    "CacheEntry",
]
