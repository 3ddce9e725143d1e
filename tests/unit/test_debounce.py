"""Unit tests for vidsearch.debounce."""

from __future__ import annotations

import asyncio

from vidsearch.debounce import DebouncedQueryController, QueryState


class _Recorder:
    def __init__(self, hold: asyncio.Event | None = None) -> None:
        self.queries: list[str] = []
        self.clears = 0
        self._hold = hold

    async def search(self, query: str) -> None:
        self.queries.append(query)
        if self._hold is not None:
            await self._hold.wait()

    def clear(self) -> None:
        self.clears += 1


def _controller(recorder: _Recorder, delay_ms: int = 20) -> DebouncedQueryController:
    return DebouncedQueryController(recorder.search, delay_ms=delay_ms, on_clear=recorder.clear)


class TestDebounce:
    async def test_keystroke_burst_collapses_to_one_search(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder, delay_ms=500)

        for text in ["k", "kp", "kpo", "kpop", "kpop mv"]:
            controller.input_changed(text)
            await asyncio.sleep(0.05)
        await asyncio.sleep(0.5)
        await controller.settle()

        assert recorder.queries == ["kpop mv"]
        assert controller.state is QueryState.IDLE

    async def test_input_enters_pending_state(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder)
        controller.input_changed("kpop")
        assert controller.state is QueryState.PENDING_DEBOUNCE
        assert recorder.queries == []
        controller.close()

    async def test_fires_after_quiet_period(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder)
        controller.input_changed("kpop")
        await controller.settle()
        assert recorder.queries == ["kpop"]

    async def test_state_is_searching_until_settled(self) -> None:
        hold = asyncio.Event()
        recorder = _Recorder(hold)
        controller = _controller(recorder)
        controller.input_changed("kpop")
        await asyncio.sleep(0.05)
        assert controller.state is QueryState.SEARCHING
        hold.set()
        await controller.settle()
        assert controller.state is QueryState.IDLE


class TestCancellation:
    async def test_empty_input_cancels_pending_timer(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder)
        controller.input_changed("kpop")
        controller.input_changed("   ")
        await asyncio.sleep(0.05)
        await controller.settle()

        assert recorder.queries == []
        assert recorder.clears == 1
        assert controller.state is QueryState.IDLE

    async def test_submit_bypasses_and_discards_timer(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder, delay_ms=100)
        controller.input_changed("kpo")
        await controller.submit("kpop")
        await asyncio.sleep(0.15)
        await controller.settle()

        assert recorder.queries == ["kpop"]

    async def test_submit_searches_immediately(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder, delay_ms=10_000)
        await controller.submit("kpop")
        assert recorder.queries == ["kpop"]
        assert controller.state is QueryState.IDLE

    async def test_close_cancels_everything(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder)
        controller.input_changed("kpop")
        controller.close()
        await asyncio.sleep(0.05)
        assert recorder.queries == []

    async def test_cancel_pending_drops_timer(self) -> None:
        recorder = _Recorder()
        controller = _controller(recorder)
        controller.input_changed("kpop")
        controller.cancel_pending()
        await asyncio.sleep(0.05)

        assert recorder.queries == []
        assert controller.state is QueryState.IDLE

    async def test_cancel_pending_leaves_running_search(self) -> None:
        hold = asyncio.Event()
        recorder = _Recorder(hold)
        controller = _controller(recorder)
        task = controller.submit("kpop")
        await asyncio.sleep(0)
        controller.cancel_pending()

        assert controller.state is QueryState.SEARCHING
        hold.set()
        await task
        assert recorder.queries == ["kpop"]


async def test_typing_during_search_keeps_pending_state() -> None:
    hold = asyncio.Event()
    recorder = _Recorder(hold)
    controller = _controller(recorder, delay_ms=50)
    task = controller.submit("kpop")
    await asyncio.sleep(0)
    controller.input_changed("kpop mv")
    hold.set()
    await task
    # The old search settled, but a newer debounced search is still pending.
    assert controller.state is QueryState.PENDING_DEBOUNCE
    await controller.settle()
    assert recorder.queries == ["kpop", "kpop mv"]
