"""Timer scheduling for ticks, magnet pulls, and power-up expiry.

The engine never touches a clock or an event loop directly. It talks to a
:class:`Scheduler`, which hands out cancellable :class:`TimerHandle`
objects. :class:`AsyncioScheduler` runs timers on an asyncio event loop;
:class:`ManualScheduler` keeps a fake clock that tests advance by hand.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    """Cancellation handle for a scheduled callback.

    Cancelling twice, or after a one-shot timer already fired, is a no-op.
    """

    __slots__ = ("interval_ms", "cancelled", "_cancel_hook")

    def __init__(self, interval_ms: float | None = None) -> None:
        self.interval_ms = interval_ms
        self.cancelled = False
        self._cancel_hook: Callback | None = None

    @property
    def repeating(self) -> bool:
        return self.interval_ms is not None

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._cancel_hook is not None:
            hook, self._cancel_hook = self._cancel_hook, None
            hook()


class Scheduler(Protocol):
    """Single-threaded timer source; callbacks never overlap."""

    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    def after(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Run *callback* once, *delay_ms* from now."""
        ...

    def every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        """Run *callback* every *interval_ms* until cancelled."""
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop's ``call_later``.

    Exceptions raised by callbacks are logged, the offending timer is
    cancelled, and *on_error* (if given) is notified.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._loop = loop
        self.on_error = on_error

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def after(self, delay_ms: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()
        self._arm(handle, delay_ms, callback)
        return handle

    def every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive.")
        handle = TimerHandle(interval_ms)
        self._arm(handle, interval_ms, callback)
        return handle

    def _arm(self, handle: TimerHandle, delay_ms: float, callback: Callback) -> None:
        due = self.now() + max(0.0, delay_ms)
        timer = self.loop.call_later(
            max(0.0, delay_ms) / 1000.0, self._fire, handle, due, callback,
        )
        handle._cancel_hook = timer.cancel

    def _fire(self, handle: TimerHandle, due: float, callback: Callback) -> None:
        if handle.cancelled:
            return
        try:
            callback()
        except Exception as exc:
            logger.exception("Scheduled callback failed.")
            handle.cancel()
            if self.on_error is not None:
                self.on_error(exc)
            return
        if handle.repeating and not handle.cancelled:
            # Re-arm from the previous due time so the period does not drift.
            next_due = due + handle.interval_ms
            self._arm(handle, next_due - self.now(), callback)


class _Entry:
    __slots__ = ("due", "handle", "callback")

    def __init__(self, due: float, handle: TimerHandle, callback: Callback) -> None:
        self.due = due
        self.handle = handle
        self.callback = callback


class ManualScheduler:
    """Deterministic scheduler driven by an explicit fake clock.

    Nothing fires until :meth:`advance` is called. Timers due at the same
    instant fire in the order they were scheduled.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, _Entry]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def after(self, delay_ms: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()
        self._push(_Entry(self._now + max(0.0, delay_ms), handle, callback))
        return handle

    def every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive.")
        handle = TimerHandle(interval_ms)
        self._push(_Entry(self._now + interval_ms, handle, callback))
        return handle

    def _push(self, entry: _Entry) -> None:
        heapq.heappush(self._queue, (entry.due, next(self._seq), entry))

    @property
    def pending(self) -> int:
        """Number of timers still waiting to fire."""
        return sum(1 for _, _, e in self._queue if not e.handle.cancelled)

    def next_due(self) -> float | None:
        """Due time of the earliest live timer, if any."""
        for due, _, entry in sorted(self._queue):
            if not entry.handle.cancelled:
                return due
        return None

    def advance(self, ms: float) -> int:
        """Move the clock forward by *ms*, firing every timer that falls due.

        Returns the number of callbacks run.
        """
        if ms < 0:
            raise ValueError("Cannot move the clock backwards.")
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, entry = heapq.heappop(self._queue)
            if entry.handle.cancelled:
                continue
            self._now = due
            entry.callback()
            fired += 1
            if entry.handle.repeating and not entry.handle.cancelled:
                entry.due = due + entry.handle.interval_ms
                self._push(entry)
        self._now = target
        return fired
