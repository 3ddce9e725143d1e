"""Shared test fixtures for the vidsearch test suite."""

from __future__ import annotations

import pytest
from searchfakes import FakeClock, ScriptedBackend

from vidsearch.cache import TTLStore
from vidsearch.search import PaginatedSearchClient


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> TTLStore:
    return TTLStore(900_000, clock=clock)


@pytest.fixture()
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture()
def search_client(backend: ScriptedBackend, store: TTLStore) -> PaginatedSearchClient:
    return PaginatedSearchClient(backend, store, max_results=20)
