"""Proxy application state.

AppState is created once at server startup (inside the Starlette lifespan)
or handed to ``create_app`` directly by tests, and read by every request
handler from ``request.app.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from vidsearch.config import Settings
    from vidsearch.search import PaginatedSearchClient


@dataclass
class AppState:
    """Holds all shared runtime state of the proxy process."""

    settings: Settings
    search_client: PaginatedSearchClient
    http_client: httpx.AsyncClient | None = None
