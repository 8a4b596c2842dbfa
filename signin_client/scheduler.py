"""
Timers for the sign-in flow (popup close polling, delayed popup close, notice dismissal).

ManualScheduler keeps virtual time and runs callbacks only when advanced; LoopScheduler
hands them to an asyncio event loop.
"""
import asyncio
import heapq
import itertools
import logging
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Task(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Task: ...


class ManualTask:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.done = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler; time moves only through advance()."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, ManualTask]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (task.when, next(self._seq), task))
        return task

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def advance(self, seconds: float) -> None:
        """Move time forward, running due callbacks in order (including ones they schedule)."""
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self._now = when
            task.done = True
            task.callback()
        self._now = target


class LoopTask:
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class LoopScheduler:
    """Scheduler over an asyncio loop (Pyodide's webloop in a browser); wall-clock now()."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_event_loop()
        return self._loop

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> LoopTask:
        def run() -> None:
            try:
                callback()
            except Exception:
                logger.exception("Scheduled callback failed")

        return LoopTask(self.loop.call_later(max(0.0, delay), run))
