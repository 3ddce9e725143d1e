"""Unit tests for vidsearch.cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from vidsearch.cache import TTLStore
from vidsearch.models.video import SearchResult, VideoSummary

if TYPE_CHECKING:
    from searchfakes import FakeClock

TTL_MS = 900_000


def _result(query: str, *ids: str) -> SearchResult:
    return SearchResult(
        query=query,
        results=tuple(VideoSummary(id=video_id) for video_id in ids),
        total_results=len(ids),
    )


class TestGet:
    def test_miss_returns_none(self, store: TTLStore) -> None:
        assert store.get("nothing") is None

    def test_hit_returns_payload(self, store: TTLStore) -> None:
        payload = _result("kpop", "a")
        store.set("k", payload)
        assert store.get("k") == payload

    def test_served_just_before_ttl(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS - 1)
        assert store.get("k") is not None

    def test_expired_just_after_ttl(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS + 1)
        assert store.get("k") is None

    def test_expires_at_exactly_ttl(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS)
        assert store.get("k") is None

    def test_expired_entry_removed_on_read(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS + 1)
        assert len(store) == 1  # lazy: nothing sweeps before a read
        store.get("k")
        assert len(store) == 0

    def test_read_does_not_extend_lifetime(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS - 10)
        assert store.get("k") is not None
        clock.advance(20)
        assert store.get("k") is None


class TestSet:
    def test_overwrite_replaces_payload(self, store: TTLStore) -> None:
        store.set("k", _result("kpop", "a"))
        store.set("k", _result("kpop", "b"))
        payload = store.get("k")
        assert payload is not None
        assert [v.id for v in payload.results] == ["b"]

    def test_overwrite_resets_insertion_time(self, store: TTLStore, clock: FakeClock) -> None:
        store.set("k", _result("kpop", "a"))
        clock.advance(TTL_MS - 1)
        store.set("k", _result("kpop", "b"))
        clock.advance(TTL_MS - 1)
        assert store.get("k") is not None

    def test_empty_result_is_cacheable(self, store: TTLStore) -> None:
        store.set("k", _result("nothing-matches"))
        payload = store.get("k")
        assert payload is not None
        assert payload.results == ()


class TestDeleteAndClear:
    def test_delete(self, store: TTLStore) -> None:
        store.set("k", _result("kpop", "a"))
        store.delete("k")
        assert store.get("k") is None

    def test_delete_missing_is_noop(self, store: TTLStore) -> None:
        store.delete("missing")

    def test_clear_drops_everything(self, store: TTLStore) -> None:
        store.set("a", _result("a", "1"))
        store.set("b", _result("b", "2"))
        store.clear()
        assert len(store) == 0
        assert store.get("a") is None


def test_default_clock_is_monotonic_ms() -> None:
    store = TTLStore(60_000)
    store.set("k", _result("kpop", "a"))
    assert store.get("k") is not None
