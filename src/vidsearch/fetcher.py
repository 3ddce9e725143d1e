"""HTTP plumbing shared by the upstream backends.

All network I/O goes through one ``httpx.AsyncClient`` injected into each
backend; whoever builds the client (server lifespan, session factory) owns its
lifecycle. Every transport failure leaves here as an UpstreamError or
UpstreamDataError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from vidsearch.errors import UpstreamDataError, UpstreamError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from vidsearch.config import BackendSettings

log = structlog.get_logger()


def build_http_client(settings: BackendSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    timeout = settings.timeout_seconds if settings is not None else 30.0
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": "vidsearch/1.0"},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def error_message(error: object) -> str:
    """Pull a readable message out of an ``error`` field (string or object)."""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return "Unknown upstream error"


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, str | int],
    headers: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """GET ``url`` and return its JSON object body.

    Raises UpstreamError on network failures and non-2xx responses, and
    UpstreamDataError when a 2xx body is not a JSON object or carries an
    ``error`` field.
    """
    try:
        response = await client.get(url, params=params, headers=headers)
    except httpx.HTTPError as exc:
        raise UpstreamError(None, f"Network error fetching {url}: {exc}") from exc

    if not response.is_success:
        detail = _error_detail(response)
        log.warning("upstream_http_error", url=url, status_code=response.status_code)
        raise UpstreamError(
            response.status_code,
            f"HTTP {response.status_code} from search service" + (f": {detail}" if detail else ""),
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamDataError(f"Response from {url} is not valid JSON") from exc

    if not isinstance(data, dict):
        raise UpstreamDataError(f"Response from {url} is not a JSON object")
    if data.get("error"):
        message = error_message(data["error"])
        log.warning("upstream_data_error", url=url, message=message)
        raise UpstreamDataError(f"Search service error: {message}")
    return data


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict) and data.get("error"):
        return error_message(data["error"])
    return ""


class ProxySearchBackend:
    """Client-side backend: the search proxy's ``GET /search`` endpoint."""

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._url = base_url.rstrip("/") + "/search"

    async def search_page(
        self,
        query: str,
        page_token: str | None = None,
        *,
        max_results: int,
    ) -> dict[str, Any]:
        # The proxy decides its own page size; max_results only bounds direct backends.
        params: dict[str, str | int] = {"q": query}
        if page_token:
            params["pageToken"] = page_token
        log.info("upstream_request", backend="proxy", query=query, page_token=page_token)
        return await get_json(self._client, self._url, params=params)
