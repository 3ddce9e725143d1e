from __future__ import annotations

from vidsearch.errors import QueryValidationError

MIN_SEARCH_LENGTH = 2


def validate_query(raw: str, min_length: int = MIN_SEARCH_LENGTH) -> str:
    """Return the trimmed query, or raise QueryValidationError.

    Runs before the cache layer: rejected queries never reach a store,
    registry or upstream.
    """
    query = raw.strip()
    if not query:
        raise QueryValidationError(
            "Search query is empty.",
            suggestion="Enter a search term.",
        )
    if len(query) < min_length:
        raise QueryValidationError(
            f"Search query must be at least {min_length} characters.",
            suggestion=f"Enter {min_length} or more characters.",
        )
    return query
