"""Deferred callbacks with cancel handles.

The engine and the assistant never sleep. They hand a callback and a delay to
a scheduler and keep the returned :class:`ScheduledCall` so a pending action
can be cancelled. Two realizations are provided: wall-clock timers for the
web application and a manual virtual clock for deterministic driving.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, ContextManager, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


@dataclass(eq=False)
class ScheduledCall:
    """Handle for one deferred callback."""

    callback: Callback
    delay: float
    cancelled: bool = False
    ran: bool = False
    _timer: Optional[threading.Timer] = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.cancelled or self.ran

    def cancel(self) -> None:
        if self.done:
            return
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def _run(self) -> None:
        if self.done:
            return
        self.ran = True
        self.callback()


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callback) -> ScheduledCall:
        ...


class ThreadingScheduler:
    """Runs callbacks on ``threading.Timer`` threads.

    When a lock is given the callback runs while holding it, so it is
    serialized with whatever else takes the same lock.
    """

    def __init__(self, lock: Optional[ContextManager] = None) -> None:
        self._lock = lock

    def schedule(self, delay: float, callback: Callback) -> ScheduledCall:
        call = ScheduledCall(callback=callback, delay=delay)

        def fire() -> None:
            logger.debug("Deferred call firing after %.3fs", delay)
            if self._lock is None:
                call._run()
                return
            with self._lock:
                call._run()

        timer = threading.Timer(max(0.0, delay), fire)
        timer.daemon = True
        call._timer = timer
        timer.start()
        return call


class ManualScheduler:
    """Virtual clock; callbacks run only when the clock is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def schedule(self, delay: float, callback: Callback) -> ScheduledCall:
        call = ScheduledCall(callback=callback, delay=delay)
        due = self.now + max(0.0, delay)
        heapq.heappush(self._queue, (due, next(self._counter), call))
        return call

    @property
    def pending(self) -> List[ScheduledCall]:
        return [call for _, _, call in sorted(self._queue) if not call.done]

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run what fell due. Returns the run count."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, call = heapq.heappop(self._queue)
            self.now = due
            if call.done:
                continue
            call._run()
            ran += 1
        self.now = target
        return ran

    def run_all(self) -> int:
        ran = 0
        while self._queue:
            due, _, call = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if call.done:
                continue
            call._run()
            ran += 1
        return ran
