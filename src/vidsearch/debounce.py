"""Debounced query controller.

    IDLE ──input──▶ PENDING_DEBOUNCE ──quiet period──▶ SEARCHING ──settled──▶ IDLE
      ▲                   │  ▲ input (timer restarts)
      └──empty input──────┘  │
    submit (any state) ──────┴─────────────────────▶ SEARCHING

A cancelled timer never fires: the pending task is cancelled while it sleeps,
and the search starts synchronously after the sleep returns, with no await in
between.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = structlog.get_logger()


class QueryState(StrEnum):
    IDLE = "idle"
    PENDING_DEBOUNCE = "pending_debounce"
    SEARCHING = "searching"


class DebouncedQueryController:
    def __init__(
        self,
        on_search: Callable[[str], Awaitable[None]],
        *,
        delay_ms: int = 500,
        on_clear: Callable[[], None] | None = None,
    ) -> None:
        self._on_search = on_search
        self._on_clear = on_clear
        self._delay = delay_ms / 1000
        self._timer: asyncio.Task[None] | None = None
        self._search_task: asyncio.Task[None] | None = None
        self.state = QueryState.IDLE

    def input_changed(self, query: str) -> None:
        """Restart the quiet-period timer, or go idle if the input is empty."""
        self._cancel_timer()
        if not query.strip():
            self.state = QueryState.IDLE
            if self._on_clear is not None:
                self._on_clear()
            return
        self._timer = asyncio.get_running_loop().create_task(self._fire_after_quiet(query))
        self.state = QueryState.PENDING_DEBOUNCE

    def submit(self, query: str) -> asyncio.Task[None]:
        """Search immediately, discarding any pending debounced search."""
        self._cancel_timer()
        return self._start_search(query)

    async def _fire_after_quiet(self, query: str) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        log.debug("debounce_fired", query=query)
        self._start_search(query)

    def _start_search(self, query: str) -> asyncio.Task[None]:
        self.state = QueryState.SEARCHING
        task = asyncio.get_running_loop().create_task(self._run(query))
        self._search_task = task
        return task

    async def _run(self, query: str) -> None:
        try:
            await self._on_search(query)
        finally:
            # Only the latest search may settle the controller.
            if self._search_task is asyncio.current_task():
                self._search_task = None
                if self.state is QueryState.SEARCHING:
                    self.state = QueryState.IDLE

    def cancel_pending(self) -> None:
        """Drop a pending debounced search without starting one."""
        self._cancel_timer()
        if self.state is QueryState.PENDING_DEBOUNCE:
            self.state = QueryState.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def settle(self) -> None:
        """Wait until no debounce timer or search is outstanding."""
        while True:
            pending = {
                task
                for task in (self._timer, self._search_task)
                if task is not None and not task.done()
            }
            if not pending:
                return
            await asyncio.wait(pending)

    def close(self) -> None:
        self._cancel_timer()
        if self._search_task is not None:
            self._search_task.cancel()
            self._search_task = None
        self.state = QueryState.IDLE
