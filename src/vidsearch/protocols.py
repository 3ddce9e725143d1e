"""Protocol interfaces for swappable upstream components.

PaginatedSearchClient depends on these, not on the concrete HTTP backends.
This allows:
- Tests to drive the cache layer with scripted in-memory backends
- The same client to sit in front of the proxy or the YouTube API directly
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vidsearch.models.video import VideoDetails


class SearchBackendProtocol(Protocol):
    """An opaque paginated search endpoint.

    Returns the raw payload ``{query, results, totalResults, nextPageToken,
    error?}``; normalization happens in the client.
    """

    async def search_page(
        self,
        query: str,
        page_token: str | None = None,
        *,
        max_results: int,
    ) -> dict[str, Any]: ...


class DetailsBackendProtocol(Protocol):
    """Batch lookup of per-video duration and view count."""

    async def video_details(self, ids: Sequence[str]) -> dict[str, VideoDetails]: ...
