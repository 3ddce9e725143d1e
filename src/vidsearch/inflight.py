"""In-flight request registry.

At most one outstanding upstream request per key. A new request for a key
preempts the old one (cancel and replace) rather than joining it: the caller
pattern is a user retyping a query, and the most recent intent wins.

Each entry carries a generation number. Release and the pre-write check
compare generations, so a preempted request can neither remove its
successor's entry nor write its late response into the store.
"""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

log = structlog.get_logger()


@dataclass(frozen=True)
class InFlightTicket:
    """Proof of ownership handed out by ``begin``."""

    key: str
    generation: int
    preempted_previous: bool
    # Always True: the registry preempts, it never asks a caller to wait.
    is_new: bool = True


@dataclass
class InFlightEntry:
    key: str
    generation: int
    cancel: Callable[[], object]


class InFlightRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, InFlightEntry] = {}
        self._generations = itertools.count(1)

    def begin(self, key: str, cancel: Callable[[], object]) -> InFlightTicket:
        """Register a request for ``key``, cancelling any request it replaces."""
        previous = self._entries.get(key)
        if previous is not None:
            log.info("inflight_preempted", key=key, generation=previous.generation)
            previous.cancel()

        entry = InFlightEntry(key=key, generation=next(self._generations), cancel=cancel)
        self._entries[key] = entry
        return InFlightTicket(
            key=key,
            generation=entry.generation,
            preempted_previous=previous is not None,
        )

    def end(self, ticket: InFlightTicket) -> None:
        """Release ``ticket``'s entry if it still owns the key."""
        entry = self._entries.get(ticket.key)
        if entry is not None and entry.generation == ticket.generation:
            del self._entries[ticket.key]

    def is_current(self, ticket: InFlightTicket) -> bool:
        entry = self._entries.get(ticket.key)
        return entry is not None and entry.generation == ticket.generation

    @contextmanager
    def acquire(self, key: str, cancel: Callable[[], object]) -> Iterator[InFlightTicket]:
        """``begin`` on entry, ``end`` on every exit path."""
        ticket = self.begin(key, cancel)
        try:
            yield ticket
        finally:
            self.end(ticket)

    def cancel_all(self) -> None:
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            entry.cancel()
        if entries:
            log.info("inflight_cancelled_all", count=len(entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
