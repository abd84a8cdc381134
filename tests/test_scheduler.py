"""Tests for the manual and asyncio schedulers."""

import asyncio

import pytest

from power_snake.scheduler import AsyncioScheduler, ManualScheduler, TimerHandle


class TestTimerHandle:
    def test_cancel_idempotent(self):
        calls = []
        handle = TimerHandle()
        handle._cancel_hook = lambda: calls.append(1)
        handle.cancel()
        handle.cancel()
        assert handle.cancelled
        assert calls == [1]

    def test_repeating_flag(self):
        assert TimerHandle(100).repeating
        assert not TimerHandle().repeating


class TestManualScheduler:
    def test_clock_starts_at_zero(self):
        assert ManualScheduler().now() == 0.0
        assert ManualScheduler(start_ms=50).now() == 50.0

    def test_after_fires_once(self):
        sched = ManualScheduler()
        calls = []
        sched.after(100, lambda: calls.append(sched.now()))
        assert sched.advance(99) == 0
        assert calls == []
        assert sched.advance(1) == 1
        assert calls == [100.0]
        sched.advance(1000)
        assert calls == [100.0]

    def test_every_repeats(self):
        sched = ManualScheduler()
        calls = []
        sched.every(30, lambda: calls.append(sched.now()))
        sched.advance(100)
        assert calls == [30.0, 60.0, 90.0]
        assert sched.now() == 100.0

    def test_cancel_prevents_firing(self):
        sched = ManualScheduler()
        calls = []
        handle = sched.every(10, lambda: calls.append(1))
        sched.advance(25)
        handle.cancel()
        sched.advance(100)
        assert calls == [1, 1]
        assert sched.pending == 0

    def test_cancel_after_fire_is_noop(self):
        sched = ManualScheduler()
        handle = sched.after(10, lambda: None)
        sched.advance(10)
        handle.cancel()
        assert handle.cancelled

    def test_same_instant_fires_in_creation_order(self):
        sched = ManualScheduler()
        order = []
        sched.after(50, lambda: order.append("a"))
        sched.after(50, lambda: order.append("b"))
        sched.after(20, lambda: order.append("c"))
        sched.advance(50)
        assert order == ["c", "a", "b"]

    def test_callback_can_cancel_itself(self):
        sched = ManualScheduler()
        calls = []
        handle = None

        def _cb():
            calls.append(sched.now())
            handle.cancel()

        handle = sched.every(10, _cb)
        sched.advance(100)
        assert calls == [10.0]

    def test_callback_can_schedule(self):
        sched = ManualScheduler()
        calls = []
        sched.after(10, lambda: sched.after(5, lambda: calls.append(sched.now())))
        sched.advance(20)
        assert calls == [15.0]

    def test_next_due(self):
        sched = ManualScheduler()
        assert sched.next_due() is None
        first = sched.after(40, lambda: None)
        sched.after(70, lambda: None)
        assert sched.next_due() == 40.0
        first.cancel()
        assert sched.next_due() == 70.0

    def test_invalid_arguments(self):
        sched = ManualScheduler()
        with pytest.raises(ValueError, match="backwards"):
            sched.advance(-1)
        with pytest.raises(ValueError, match="positive"):
            sched.every(0, lambda: None)


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_after_fires(self):
        sched = AsyncioScheduler()
        fired = asyncio.Event()
        sched.after(10, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_every_and_cancel(self):
        sched = AsyncioScheduler()
        calls = []
        handle = sched.every(10, lambda: calls.append(1))
        await asyncio.sleep(0.1)
        handle.cancel()
        seen = len(calls)
        assert seen >= 3
        await asyncio.sleep(0.05)
        assert len(calls) == seen

    @pytest.mark.asyncio
    async def test_cancel_before_fire(self):
        sched = AsyncioScheduler()
        calls = []
        handle = sched.after(20, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)
        assert calls == []

    @pytest.mark.asyncio
    async def test_clock_in_milliseconds(self):
        sched = AsyncioScheduler()
        start = sched.now()
        await asyncio.sleep(0.05)
        assert sched.now() - start >= 40

    @pytest.mark.asyncio
    async def test_failing_callback_is_contained(self):
        errors = []
        sched = AsyncioScheduler(on_error=errors.append)
        calls = []

        def _boom():
            calls.append(1)
            raise RuntimeError("boom")

        handle = sched.every(10, _boom)
        await asyncio.sleep(0.08)
        assert calls == [1]
        assert handle.cancelled
        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
