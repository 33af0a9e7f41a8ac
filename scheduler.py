"""scheduler.py — Pluggable clocks for driving the pacing engine."""

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Any, Protocol


class Scheduler(Protocol):
    def now(self) -> float:
        """Current time in milliseconds."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Any:
        """Run callback once after delay_ms. Returns a handle for cancel()."""

    def cancel(self, handle: Any) -> None:
        ...


class _ManualHandle:
    __slots__ = ("when", "callback", "cancelled")

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False


class ManualScheduler:
    """
    Simulated clock. Time only moves when advance() or run_until_idle() is called,
    so playback can be tested without real waits.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._queue: list[tuple[float, int, _ManualHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self._now + max(delay_ms, 0.0), callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def cancel(self, handle: _ManualHandle) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def _pop_due(self, until: float | None) -> _ManualHandle | None:
        while self._queue:
            when, _, handle = self._queue[0]
            if handle.cancelled:
                heapq.heappop(self._queue)
                continue
            if until is not None and when > until:
                return None
            heapq.heappop(self._queue)
            return handle
        return None

    def advance(self, ms: float) -> int:
        """Move the clock forward by ms, firing every callback that falls due. Returns the count fired."""
        target = self._now + ms
        fired = 0
        while (handle := self._pop_due(target)) is not None:
            self._now = handle.when
            handle.callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_callbacks: int = 1_000_000) -> int:
        """Fire callbacks in time order until none remain."""
        fired = 0
        while fired < max_callbacks and (handle := self._pop_due(None)) is not None:
            self._now = handle.when
            handle.callback()
            fired += 1
        return fired


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self._loop.time() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(delay_ms, 0.0) / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
