from __future__ import annotations

import html
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

_ISO_DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")


def format_duration(iso_duration: str | None) -> str:
    """Render an ISO-8601 video duration: ``"PT4M5S"`` → ``"4:05"``.

    Returns an empty string for missing or unrecognised values.
    """
    if not iso_duration:
        return ""
    match = _ISO_DURATION_RE.match(iso_duration)
    if not match:
        return ""
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    total = hours * 3600 + minutes * 60 + seconds
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def youtube_video_id(item: Mapping[str, Any]) -> str | None:
    """Extract the video id from a search item (``id.videoId``) or a video resource (``id``)."""
    raw_id = item.get("id")
    if isinstance(raw_id, Mapping):
        raw_id = raw_id.get("videoId")
    return raw_id if isinstance(raw_id, str) and raw_id else None


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Thumbnail(_WireModel):
    url: str
    width: int | None = None
    height: int | None = None


class VideoSummary(_WireModel):
    """One search hit. Immutable once received."""

    id: str = Field(min_length=1)
    title: str = ""
    channel_title: str = ""
    thumbnails: dict[str, Thumbnail] = {}
    duration: str | None = None  # ISO-8601, e.g. "PT4M13S"
    view_count: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_youtube_item(cls, data: Any) -> Any:
        # Raw YouTube items nest everything under "snippet"; flat dicts pass through.
        if not isinstance(data, Mapping) or "snippet" not in data:
            return data
        snippet = data.get("snippet") or {}
        content_details = data.get("contentDetails") or {}
        statistics = data.get("statistics") or {}
        return {
            "id": youtube_video_id(data),
            "title": html.unescape(snippet.get("title") or ""),
            "channelTitle": html.unescape(snippet.get("channelTitle") or ""),
            "thumbnails": snippet.get("thumbnails") or {},
            "duration": content_details.get("duration"),
            "viewCount": statistics.get("viewCount"),
        }

    @property
    def thumbnail_url(self) -> str | None:
        for size in ("medium", "default"):
            thumbnail = self.thumbnails.get(size)
            if thumbnail is not None:
                return thumbnail.url
        return None

    @property
    def duration_label(self) -> str:
        return format_duration(self.duration)


class VideoDetails(_WireModel):
    """Per-video detail record from the ``videos`` endpoint."""

    id: str = Field(min_length=1)
    duration: str | None = None
    view_count: int | None = None
    privacy_status: str | None = None
    embeddable: bool = False
    region_blocked: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _flatten_video_resource(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        if not any(part in data for part in ("status", "contentDetails", "statistics")):
            return data
        status = data.get("status") or {}
        content_details = data.get("contentDetails") or {}
        statistics = data.get("statistics") or {}
        restriction = content_details.get("regionRestriction") or {}
        return {
            "id": data.get("id"),
            "duration": content_details.get("duration"),
            "viewCount": statistics.get("viewCount"),
            "privacyStatus": status.get("privacyStatus"),
            "embeddable": status.get("embeddable") is True,
            "regionBlocked": tuple(restriction.get("blocked") or ()),
        }

    @property
    def is_playable(self) -> bool:
        """Public, embeddable, and not blocked in any region."""
        return self.privacy_status == "public" and self.embeddable and not self.region_blocked


class SearchResult(_WireModel):
    """Normalized page of results. ``next_page_token`` is None iff this is the last page."""

    query: str
    results: tuple[VideoSummary, ...] = ()
    total_results: int = 0
    next_page_token: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_page_token is not None

    def with_details(self, details: Mapping[str, VideoDetails]) -> SearchResult:
        """Return a copy with duration and view count merged in by video id."""
        enriched = []
        for video in self.results:
            detail = details.get(video.id)
            if detail is None:
                enriched.append(video)
                continue
            enriched.append(
                video.model_copy(
                    update={"duration": detail.duration, "view_count": detail.view_count}
                )
            )
        return self.model_copy(update={"results": tuple(enriched)})
