"""Integration test fixtures.

Provides a proxy AppState wired to a fake YouTube Data API served through
``httpx.MockTransport``, and an ASGI client for the proxy app.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pytest
from searchfakes import FakeClock

from vidsearch.cache import TTLStore
from vidsearch.config import Settings
from vidsearch.search import PaginatedSearchClient
from vidsearch.server import create_app
from vidsearch.state import AppState
from vidsearch.youtube import YouTubeDataApi, YouTubeSearchBackend

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.applications import Starlette

YOUTUBE_URL = "https://youtube.test/youtube/v3"


class FakeYouTube:
    """Scripted ``search`` and ``videos`` endpoints of the YouTube Data API."""

    def __init__(self) -> None:
        self.pages: dict[tuple[str, str | None], tuple[list[str], str | None]] = {}
        self.unplayable: set[str] = set()
        self.failure: tuple[int, dict[str, Any]] | None = None
        self.unreachable = False
        self.requests: list[httpx.Request] = []

    def add_page(
        self,
        query: str,
        ids: list[str],
        *,
        page_token: str | None = None,
        next_page_token: str | None = None,
    ) -> None:
        self.pages[(query, page_token)] = (ids, next_page_token)

    def search_calls(self) -> list[tuple[str, str | None]]:
        return [
            (r.url.params["q"], r.url.params.get("pageToken"))
            for r in self.requests
            if r.url.path.endswith("/search")
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.failure is not None:
            status, body = self.failure
            return httpx.Response(status, json=body)
        if request.url.path.endswith("/search"):
            key = (request.url.params["q"], request.url.params.get("pageToken"))
            ids, next_page_token = self.pages.get(key, ([], None))
            body: dict[str, Any] = {
                "items": [
                    {
                        "id": {"kind": "youtube#video", "videoId": video_id},
                        "snippet": {"title": f"Video {video_id}", "channelTitle": "Channel"},
                    }
                    for video_id in ids
                ]
            }
            if next_page_token:
                body["nextPageToken"] = next_page_token
            return httpx.Response(200, json=body)
        ids = request.url.params["id"].split(",")
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "id": video_id,
                        "status": {
                            "privacyStatus": "private" if video_id in self.unplayable else "public",
                            "embeddable": True,
                        },
                        "contentDetails": {"duration": "PT3M30S"},
                        "statistics": {"viewCount": "99"},
                    }
                    for video_id in ids
                ]
            },
        )


@pytest.fixture()
def youtube() -> FakeYouTube:
    return FakeYouTube()


@pytest.fixture()
def proxy_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
async def proxy_state(
    youtube: FakeYouTube, proxy_clock: FakeClock
) -> AsyncIterator[AppState]:
    settings = Settings(youtube={"api_url": YOUTUBE_URL, "api_key": "test-key"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(youtube.handler)) as http_client:
        api = YouTubeDataApi(http_client, base_url=YOUTUBE_URL, api_key="test-key")
        search_client = PaginatedSearchClient(
            YouTubeSearchBackend(api),
            TTLStore(settings.cache.proxy_ttl_ms, clock=proxy_clock, name="proxy"),
            max_results=settings.search.proxy_max_results,
        )
        yield AppState(settings=settings, search_client=search_client, http_client=http_client)


@pytest.fixture()
def proxy_app(proxy_state: AppState) -> Starlette:
    return create_app(state=proxy_state)


@pytest.fixture()
async def proxy(proxy_app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=proxy_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://proxy.test") as client:
        yield client
