from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from vidsearch.models.video import VideoSummary


class ResultAccumulator:
    """Order-preserving, id-deduplicated list of videos across pages.

    Reset at every query epoch; ``has_more`` lives with the caller, derived
    from the last page's continuation token.
    """

    def __init__(self) -> None:
        self._videos: list[VideoSummary] = []
        self._seen_ids: set[str] = set()

    @property
    def videos(self) -> tuple[VideoSummary, ...]:
        return tuple(self._videos)

    def reset(self) -> None:
        self._videos.clear()
        self._seen_ids.clear()

    def append(self, page: Iterable[VideoSummary]) -> int:
        """Append the videos of ``page`` not seen before; return how many were added."""
        appended = 0
        for video in page:
            if video.id in self._seen_ids:
                continue
            self._seen_ids.add(video.id)
            self._videos.append(video)
            appended += 1
        return appended

    def __len__(self) -> int:
        return len(self._videos)
