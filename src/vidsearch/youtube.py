"""YouTube Data API v3 backend.

Two calls per page: ``search.list`` for ids in relevance order, then
``videos.list`` for per-video details. The proxy keeps only playable videos
(public, embeddable, not region-blocked); the genre browser keeps everything
and enriches through :meth:`YouTubeDataApi.video_details`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from vidsearch.config import YOUTUBE_API_URL
from vidsearch.fetcher import get_json
from vidsearch.models.video import VideoDetails, youtube_video_id

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

log = structlog.get_logger()

# videos.list accepts at most 50 ids per call
VIDEOS_BATCH_SIZE = 50
MAX_RESULTS_CAP = 50

_PLAYABILITY_PARTS = ("status", "contentDetails", "snippet", "statistics")
_DETAIL_PARTS = ("contentDetails", "statistics")


class YouTubeDataApi:
    """Thin async wrapper over the two endpoints vidsearch needs.

    Authenticates with an API key (proxy) or an OAuth bearer token (genre
    browser); at least one must be given.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = YOUTUBE_API_URL,
        api_key: str = "",
        access_token: str = "",
    ) -> None:
        if not api_key and not access_token:
            raise ValueError("YouTubeDataApi needs an api_key or an access_token")
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._headers = {"Authorization": f"Bearer {access_token}"} if access_token else None

    def _params(self, **params: str | int) -> dict[str, str | int]:
        if self._api_key:
            params["key"] = self._api_key
        return params

    async def search(
        self,
        query: str,
        *,
        page_token: str | None = None,
        max_results: int,
        category_id: str | None = None,
        safe_search: str | None = None,
    ) -> dict[str, Any]:
        params = self._params(
            part="snippet",
            type="video",
            q=query,
            maxResults=min(max_results, MAX_RESULTS_CAP),
        )
        if page_token:
            params["pageToken"] = page_token
        if category_id:
            params["videoCategoryId"] = category_id
        if safe_search:
            params["safeSearch"] = safe_search
        log.info("upstream_request", backend="youtube", endpoint="search", query=query)
        return await get_json(
            self._client, f"{self._base_url}/search", params=params, headers=self._headers
        )

    async def videos(self, ids: Sequence[str], parts: Sequence[str]) -> list[dict[str, Any]]:
        """Fetch video resources for ``ids`` in batches of 50."""
        items: list[dict[str, Any]] = []
        for start in range(0, len(ids), VIDEOS_BATCH_SIZE):
            batch = ids[start : start + VIDEOS_BATCH_SIZE]
            log.info("upstream_request", backend="youtube", endpoint="videos", ids=len(batch))
            data = await get_json(
                self._client,
                f"{self._base_url}/videos",
                params=self._params(part=",".join(parts), id=",".join(batch)),
                headers=self._headers,
            )
            items.extend(data.get("items") or [])
        return items

    async def video_details(self, ids: Sequence[str]) -> dict[str, VideoDetails]:
        """DetailsBackendProtocol: duration and view count keyed by video id."""
        if not ids:
            return {}
        resources = await self.videos(ids, _DETAIL_PARTS)
        return _details_by_id(resources)


def _details_by_id(resources: list[dict[str, Any]]) -> dict[str, VideoDetails]:
    details: dict[str, VideoDetails] = {}
    for resource in resources:
        if not youtube_video_id(resource):
            continue
        try:
            detail = VideoDetails.model_validate(resource)
        except ValidationError:
            log.warning("video_details_skipped", video_id=youtube_video_id(resource))
            continue
        details[detail.id] = detail
    return details


class YouTubeSearchBackend:
    """SearchBackendProtocol over the YouTube Data API.

    Emits the proxy payload shape so the client's normalization step is the
    same whichever backend sits behind it.
    """

    def __init__(
        self,
        api: YouTubeDataApi,
        *,
        playable_only: bool = True,
        category_id: str | None = None,
        safe_search: str | None = None,
    ) -> None:
        self._api = api
        self._playable_only = playable_only
        self._category_id = category_id
        self._safe_search = safe_search

    async def search_page(
        self,
        query: str,
        page_token: str | None = None,
        *,
        max_results: int,
    ) -> dict[str, Any]:
        data = await self._api.search(
            query,
            page_token=page_token,
            max_results=max_results,
            category_id=self._category_id,
            safe_search=self._safe_search,
        )
        items = [item for item in data.get("items") or [] if youtube_video_id(item)]
        next_page_token = data.get("nextPageToken") or None

        if items and self._playable_only:
            items = await self._playable(items)

        return {
            "success": True,
            "query": query,
            "results": items,
            "totalResults": len(items),
            "nextPageToken": next_page_token,
        }

    async def _playable(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Keep playable items in search order, merging their details."""
        ids = [youtube_video_id(item) or "" for item in items]
        resources = {
            youtube_video_id(resource): resource
            for resource in await self._api.videos(ids, _PLAYABILITY_PARTS)
        }
        details = _details_by_id(list(resources.values()))

        kept = []
        for item, video_id in zip(items, ids, strict=True):
            detail = details.get(video_id)
            if detail is None or not detail.is_playable:
                continue
            resource = resources[video_id]
            kept.append(
                {
                    **item,
                    "contentDetails": resource.get("contentDetails"),
                    "statistics": resource.get("statistics"),
                }
            )
        if len(kept) < len(items):
            log.info("unplayable_filtered", kept=len(kept), dropped=len(items) - len(kept))
        return kept
