from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_QUERY = "INVALID_QUERY"
    UPSTREAM_HTTP_ERROR = "UPSTREAM_HTTP_ERROR"
    UPSTREAM_UNREACHABLE = "UPSTREAM_UNREACHABLE"
    UPSTREAM_DATA_ERROR = "UPSTREAM_DATA_ERROR"
    REQUEST_SUPERSEDED = "REQUEST_SUPERSEDED"


class VidSearchError(Exception):
    """Base for every expected search failure.

    Raised at the PaginatedSearchClient boundary and caught by whoever owns
    the query lifecycle (a SearchSession or the proxy request handler).
    Nothing in the cache layer retries; a retry is always a fresh call.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class QueryValidationError(VidSearchError):
    """Query rejected before any cache or network interaction."""

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(ErrorCode.INVALID_QUERY, message, suggestion, recoverable=False)


class UpstreamError(VidSearchError):
    """Non-2xx response, or no response at all (``status_code`` is None)."""

    def __init__(self, status_code: int | None, message: str) -> None:
        code = ErrorCode.UPSTREAM_HTTP_ERROR if status_code else ErrorCode.UPSTREAM_UNREACHABLE
        super().__init__(
            code,
            message,
            suggestion="The video search service may be temporarily unavailable.",
            recoverable=True,
        )
        self.status_code = status_code


class UpstreamDataError(VidSearchError):
    """Success status, but the payload reports an error or is unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(
            ErrorCode.UPSTREAM_DATA_ERROR,
            message,
            suggestion="The video search service returned an unexpected response.",
            recoverable=True,
        )


class SearchCancelledError(VidSearchError):
    """The request was superseded by a newer one on the same lane.

    Not a user-visible failure: sessions drop it silently.
    """

    def __init__(self, key: str) -> None:
        super().__init__(ErrorCode.REQUEST_SUPERSEDED, f"Search superseded: {key!r}")
        self.key = key
