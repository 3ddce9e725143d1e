"""Search session: the reactive surface a UI binds to.

Owns one query lifecycle: a debounced controller in front, a result
accumulator behind, and the fields a view renders (``videos``, ``loading``,
``loading_more``, ``error``, ``has_more``). Every search opens a new query
epoch; pages, errors and loading flags from an older epoch are dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from vidsearch.accumulator import ResultAccumulator
from vidsearch.cache import TTLStore
from vidsearch.debounce import DebouncedQueryController, QueryState
from vidsearch.errors import QueryValidationError, SearchCancelledError, VidSearchError
from vidsearch.fetcher import ProxySearchBackend
from vidsearch.search import PaginatedSearchClient
from vidsearch.validation import MIN_SEARCH_LENGTH, validate_query

if TYPE_CHECKING:
    import httpx

    from vidsearch.config import Settings
    from vidsearch.models.video import VideoSummary

log = structlog.get_logger()


class SearchSession:
    def __init__(
        self,
        client: PaginatedSearchClient,
        *,
        min_search_length: int = MIN_SEARCH_LENGTH,
        debounce_delay_ms: int = 500,
        lane: str = "session",
    ) -> None:
        self._client = client
        self._min_length = min_search_length
        # First pages and "load more" share one lane: a new search preempts
        # whatever this session still has in flight.
        self._lane = lane
        self._accumulator = ResultAccumulator()
        self._controller = DebouncedQueryController(
            self._run_search,
            delay_ms=debounce_delay_ms,
            on_clear=self._clear_results,
        )
        self._epoch = 0
        self._next_page_token: str | None = None

        self.keyword = ""
        self.loading = False
        self.loading_more = False
        self.error: str | None = None

    @property
    def videos(self) -> tuple[VideoSummary, ...]:
        return self._accumulator.videos

    @property
    def has_more(self) -> bool:
        return self._next_page_token is not None

    @property
    def state(self) -> QueryState:
        return self._controller.state

    async def handle_search(self, query: str) -> None:
        """Search now (Enter key / button), bypassing the debounce."""
        # Submitting always discards the pending debounced search, valid or not.
        self._controller.cancel_pending()
        try:
            validate_query(query, self._min_length)
        except QueryValidationError as exc:
            self.error = exc.message
            return
        await self._controller.submit(query)

    def handle_input_change(self, query: str) -> None:
        """Feed a keystroke into the debounced path."""
        self._controller.input_changed(query)

    async def load_more(self) -> None:
        """Fetch and append the next page of the current query, if any."""
        if not self.keyword or self._next_page_token is None or self.loading_more:
            return

        epoch = self._epoch
        page_token = self._next_page_token
        self.loading_more = True
        try:
            result = await self._client.search(self.keyword, page_token, lane=self._lane)
        except SearchCancelledError:
            log.debug("load_more_superseded", keyword=self.keyword)
            return
        except VidSearchError as exc:
            if epoch == self._epoch:
                self.error = exc.message
            return
        finally:
            if epoch == self._epoch:
                self.loading_more = False

        if epoch != self._epoch:
            return
        appended = self._accumulator.append(result.results)
        self._next_page_token = result.next_page_token
        if appended == 0 and result.has_more:
            log.warning("load_more_no_new_items", keyword=self.keyword, page_token=page_token)

    async def settle(self) -> None:
        """Wait for any pending debounce timer and search to finish."""
        await self._controller.settle()

    def close(self) -> None:
        self._controller.close()
        self._new_epoch()

    async def _run_search(self, raw: str) -> None:
        try:
            keyword = validate_query(raw, self._min_length)
        except QueryValidationError as exc:
            self.error = exc.message
            return

        epoch = self._new_epoch()
        self.keyword = keyword
        self.error = None
        self.loading = True
        try:
            result = await self._client.search(keyword, lane=self._lane)
        except SearchCancelledError:
            log.debug("search_superseded", keyword=keyword)
            return
        except VidSearchError as exc:
            if epoch == self._epoch:
                self.error = exc.message
            return
        finally:
            if epoch == self._epoch:
                self.loading = False

        if epoch != self._epoch:
            return
        self._accumulator.append(result.results)
        self._next_page_token = result.next_page_token

    def _clear_results(self) -> None:
        self._new_epoch()
        self.keyword = ""
        self.error = None
        self.loading = False

    def _new_epoch(self) -> int:
        self._epoch += 1
        self._accumulator.reset()
        self._next_page_token = None
        self.loading_more = False
        return self._epoch


def build_search_session(settings: Settings, http_client: httpx.AsyncClient) -> SearchSession:
    """Wire a session to the search proxy with the client-side cache TTL."""
    backend = ProxySearchBackend(http_client, settings.backend.url)
    client = PaginatedSearchClient(
        backend,
        TTLStore(settings.cache.client_ttl_ms, name="session"),
        max_results=settings.search.max_results,
    )
    return SearchSession(
        client,
        min_search_length=settings.search.min_search_length,
        debounce_delay_ms=settings.search.debounce_delay_ms,
    )
