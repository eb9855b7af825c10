from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

# The engine never sleeps; it asks a scheduler to wake it later. Production
# uses the asyncio loop, tests and the simulator use VirtualScheduler.


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


@dataclass(order=True)
class _Wake:
    when: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Simulated clock that fires callbacks only when time is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[_Wake] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Wake:
        wake = _Wake(self.now + max(delay, 0.0), next(self._seq), callback)
        heapq.heappush(self._queue, wake)
        return wake

    def pending(self) -> int:
        return sum(1 for wake in self._queue if not wake.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that falls due. Returns how many fired."""
        deadline = self.now + seconds
        fired = 0
        while self._queue and self._queue[0].when <= deadline:
            wake = heapq.heappop(self._queue)
            if wake.cancelled:
                continue
            self.now = wake.when
            wake.callback()
            fired += 1
        self.now = deadline
        return fired

    def run_until(self, predicate: Callable[[], bool], limit: float = 3_600.0) -> bool:
        """Fire callbacks in order until ``predicate`` holds or ``limit`` seconds pass."""
        stop_at = self.now + limit
        while not predicate():
            while self._queue and self._queue[0].cancelled:
                heapq.heappop(self._queue)
            if not self._queue or self._queue[0].when > stop_at:
                return False
            wake = heapq.heappop(self._queue)
            self.now = wake.when
            wake.callback()
        return True
