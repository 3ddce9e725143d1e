"""Paginated search client: TTL cache + in-flight preemption + normalization.

Per call:
  1. Key the query (keys.cache_key) and serve a fresh store hit directly.
  2. Run the upstream call in its own task, registered under a lane in the
     InFlightRegistry. A later call on the same lane cancels it.
  3. Normalize (and optionally enrich) the payload into a SearchResult.
  4. Write through to the store only if the call still owns its lane.
Any failure releases the lane before propagating.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from vidsearch.errors import SearchCancelledError, UpstreamDataError, VidSearchError
from vidsearch.fetcher import error_message
from vidsearch.inflight import InFlightRegistry
from vidsearch.keys import cache_key, normalize_query
from vidsearch.models.video import SearchResult, VideoSummary

if TYPE_CHECKING:
    from collections.abc import Mapping

    from vidsearch.cache import TTLStore
    from vidsearch.protocols import DetailsBackendProtocol, SearchBackendProtocol

log = structlog.get_logger()


def normalize_search_result(raw: Mapping[str, Any], *, query: str) -> SearchResult:
    """Turn an upstream payload into a SearchResult, defaulting absent fields.

    Items that fail validation (no id, wrong types) are skipped, not fatal.
    """
    if raw.get("error"):
        raise UpstreamDataError(f"Search service error: {error_message(raw['error'])}")

    raw_results = raw.get("results")
    if raw_results is None:
        raw_results = []
    if not isinstance(raw_results, list):
        raise UpstreamDataError("Search payload 'results' is not a list")

    results: list[VideoSummary] = []
    for item in raw_results:
        try:
            results.append(VideoSummary.model_validate(item))
        except ValidationError:
            log.warning("search_item_skipped", query=query, item=repr(item)[:200])

    total = raw.get("totalResults")
    next_page_token = raw.get("nextPageToken") or None
    return SearchResult(
        query=raw.get("query") or query,
        results=tuple(results),
        total_results=(
            total if isinstance(total, int) and not isinstance(total, bool) else len(results)
        ),
        next_page_token=next_page_token if isinstance(next_page_token, str) else None,
    )


def _caller_cancelled() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0


class PaginatedSearchClient:
    """Cached, preemptive front for one SearchBackendProtocol.

    The store and registry are injected so several clients can share a
    registry (the genre browser does) and tests can supply a fake clock.
    """

    def __init__(
        self,
        backend: SearchBackendProtocol,
        store: TTLStore,
        registry: InFlightRegistry | None = None,
        *,
        max_results: int,
        enricher: DetailsBackendProtocol | None = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._registry = registry if registry is not None else InFlightRegistry()
        self._max_results = max_results
        self._enricher = enricher

    @property
    def store(self) -> TTLStore:
        return self._store

    @property
    def registry(self) -> InFlightRegistry:
        return self._registry

    async def search(
        self,
        query: str,
        page_token: str | None = None,
        *,
        lane: str | None = None,
    ) -> SearchResult:
        """Return one page of results for ``query``.

        ``lane`` names the in-flight slot this call occupies; it defaults to
        the cache key. Raises SearchCancelledError if a newer call on the
        same lane superseded this one, in which case nothing is cached.
        """
        key = cache_key(query, page_token)
        bound = log.bind(cache=self._store.name, query=query, page_token=page_token)

        cached = self._store.get(key)
        if cached is not None:
            bound.debug("cache_hit")
            return cached

        bound.info("cache_miss")
        fetch = asyncio.ensure_future(self._fetch(normalize_query(query), page_token))
        with self._registry.acquire(lane or key, fetch.cancel) as ticket:
            try:
                result = await fetch
            except asyncio.CancelledError:
                if _caller_cancelled() or self._registry.is_current(ticket):
                    raise
                raise SearchCancelledError(key) from None
            except VidSearchError as exc:
                if not self._registry.is_current(ticket):
                    raise SearchCancelledError(key) from exc
                bound.warning("search_failed", code=exc.code, message=exc.message)
                raise

            # Transports may ignore cancellation; a late response must not land.
            if not self._registry.is_current(ticket):
                bound.info("stale_response_dropped")
                raise SearchCancelledError(key)
            self._store.set(key, result)

        bound.info(
            "search_complete",
            results=len(result.results),
            has_more=result.has_more,
            preempted_previous=ticket.preempted_previous,
        )
        return result

    async def _fetch(self, query: str, page_token: str | None) -> SearchResult:
        raw = await self._backend.search_page(query, page_token, max_results=self._max_results)
        result = normalize_search_result(raw, query=query)
        if self._enricher is not None and result.results:
            details = await self._enricher.video_details([video.id for video in result.results])
            result = result.with_details(details)
        return result

    def clear(self) -> None:
        """Drop every cached page and cancel outstanding requests."""
        self._registry.cancel_all()
        self._store.clear()
