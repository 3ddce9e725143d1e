"""Search proxy entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState in the Starlette lifespan
- Route /api/search and /api/health
- Start uvicorn
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from vidsearch import __version__
from vidsearch.cache import TTLStore
from vidsearch.config import Settings
from vidsearch.errors import (
    QueryValidationError,
    SearchCancelledError,
    UpstreamDataError,
    UpstreamError,
)
from vidsearch.fetcher import build_http_client
from vidsearch.keys import cache_key
from vidsearch.search import PaginatedSearchClient
from vidsearch.state import AppState
from vidsearch.validation import validate_query
from vidsearch.youtube import YouTubeDataApi, YouTubeSearchBackend

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx
    from starlette.requests import Request

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_app_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire the proxy's search client: one process-wide cache for all clients."""
    api = YouTubeDataApi(
        http_client,
        base_url=settings.youtube.api_url,
        api_key=settings.youtube.api_key,
    )
    search_client = PaginatedSearchClient(
        YouTubeSearchBackend(api, playable_only=True),
        TTLStore(settings.cache.proxy_ttl_ms, name="proxy"),
        max_results=settings.search.proxy_max_results,
    )
    return AppState(settings=settings, search_client=search_client, http_client=http_client)


@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
    """Create and tear down the shared HTTP client for the server's lifetime."""
    settings: Settings = app.state.settings
    http_client = build_http_client(settings.backend)
    app.state.vidsearch = build_app_state(settings, http_client)

    log.info(
        "server_started",
        version=__version__,
        host=settings.server.host,
        port=settings.server.port,
        cache_ttl_ms=settings.cache.proxy_ttl_ms,
    )
    try:
        yield
    finally:
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


async def search_endpoint(request: Request) -> JSONResponse:
    """``GET /api/search?q=<query>&pageToken=<token>``."""
    state: AppState = request.app.state.vidsearch
    page_token = request.query_params.get("pageToken") or None

    try:
        query = validate_query(
            request.query_params.get("q", ""),
            state.settings.search.min_search_length,
        )
    except QueryValidationError as exc:
        return _error_response(exc.message, 400)

    # Preemption is scoped per client: a client retyping the same query
    # supersedes its own request, never another client's.
    client_host = request.client.host if request.client else "anonymous"
    lane = f"{client_host}|{cache_key(query, page_token)}"

    try:
        result = await state.search_client.search(query, page_token, lane=lane)
    except UpstreamError as exc:
        return _error_response(exc.message, exc.status_code or 502)
    except UpstreamDataError as exc:
        return _error_response(exc.message, 400)
    except SearchCancelledError as exc:
        return _error_response(exc.message, 409)
    except Exception:
        log.error("search_unexpected_error", query=query, exc_info=True)
        return _error_response("Internal server error.", 500)

    return JSONResponse({"success": True, **result.model_dump(mode="json", by_alias=True)})


async def health_endpoint(request: Request) -> JSONResponse:
    state: AppState = request.app.state.vidsearch
    return JSONResponse(
        {
            "status": "OK",
            "message": "Video search proxy is running.",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": __version__,
            "cacheEntries": len(state.search_client.store),
        }
    )


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> Starlette:
    """Build the proxy ASGI app.

    With ``state`` given (tests), the lifespan is skipped and that state is
    served as-is.
    """
    if settings is None:
        settings = state.settings if state is not None else Settings()

    app = Starlette(
        routes=[
            Route("/api/search", search_endpoint, methods=["GET"]),
            Route("/api/health", health_endpoint, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=[settings.server.frontend_url],
                allow_credentials=True,
                allow_methods=["GET"],
                allow_headers=["*"],
            )
        ],
        lifespan=lifespan if state is None else None,
    )
    app.state.settings = settings
    if state is not None:
        app.state.vidsearch = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    if not settings.youtube.api_key:
        log.error(
            "youtube_api_key_missing",
            message="Set VIDSEARCH__YOUTUBE__API_KEY or youtube.api_key in vidsearch.yaml.",
        )
        sys.exit(1)

    log.info("server_starting", version=__version__)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
