"""Genre browsing against the YouTube Data API.

Two caches, one per use: genre shelves and free-text search on the genre
page, each with the client TTL. Both share one in-flight registry. Every page
is enriched with duration and view count before it is cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from vidsearch.cache import TTLStore
from vidsearch.inflight import InFlightRegistry
from vidsearch.search import PaginatedSearchClient
from vidsearch.validation import validate_query
from vidsearch.youtube import YouTubeDataApi, YouTubeSearchBackend

if TYPE_CHECKING:
    import httpx

    from vidsearch.config import Settings
    from vidsearch.models.video import SearchResult
    from vidsearch.protocols import DetailsBackendProtocol, SearchBackendProtocol


@dataclass(frozen=True)
class Genre:
    name: str
    search_query: str
    category_id: str = "10"


DEFAULT_GENRES: tuple[Genre, ...] = (
    Genre("K-Pop", "kpop official music video"),
    Genre("Hip-Hop", "hip hop music video"),
    Genre("Ballad", "ballad songs"),
    Genre("Rock", "rock music video"),
    Genre("Jazz", "jazz music"),
    Genre("Classical", "classical music"),
    Genre("EDM", "edm music video"),
    Genre("Indie", "indie music"),
)


class GenreBrowser:
    def __init__(
        self,
        backend: SearchBackendProtocol,
        enricher: DetailsBackendProtocol,
        *,
        ttl_ms: int,
        genre_max_results: int = 8,
        search_max_results: int = 20,
        min_search_length: int = 2,
    ) -> None:
        registry = InFlightRegistry()
        self._genres = PaginatedSearchClient(
            backend,
            TTLStore(ttl_ms, name="genre"),
            registry,
            max_results=genre_max_results,
            enricher=enricher,
        )
        self._searches = PaginatedSearchClient(
            backend,
            TTLStore(ttl_ms, name="genre_search"),
            registry,
            max_results=search_max_results,
            enricher=enricher,
        )
        self._min_length = min_search_length

    async def browse(self, genre: Genre, page_token: str | None = None) -> SearchResult:
        """One page of a genre shelf. Shelves load independently of each other."""
        return await self._genres.search(
            genre.search_query, page_token, lane=f"genre:{genre.name}"
        )

    async def search(self, query: str, page_token: str | None = None) -> SearchResult:
        """Free-text search on the genre page; a newer search preempts an older one."""
        keyword = validate_query(query, self._min_length)
        return await self._searches.search(keyword, page_token, lane="genre_search")

    def clear(self) -> None:
        self._genres.clear()
        self._searches.clear()


def build_genre_browser(settings: Settings, http_client: httpx.AsyncClient) -> GenreBrowser:
    """Wire a GenreBrowser straight to YouTube with the configured credentials."""
    api = YouTubeDataApi(
        http_client,
        base_url=settings.youtube.api_url,
        api_key=settings.youtube.api_key,
        access_token=settings.youtube.access_token,
    )
    backend = YouTubeSearchBackend(
        api,
        playable_only=False,
        category_id=settings.youtube.category_id,
        safe_search=settings.youtube.safe_search,
    )
    return GenreBrowser(
        backend,
        api,
        ttl_ms=settings.cache.client_ttl_ms,
        genre_max_results=settings.search.genre_max_results,
        search_max_results=settings.search.max_results,
        min_search_length=settings.search.min_search_length,
    )
