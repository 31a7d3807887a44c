"""
MOOD CASINO — Round Scheduler

Every timed part of a round (reel spin, wheel spin, crash ticks, ball steps,
deal delay) is a scheduled callback on a single-threaded scheduler. Nothing
here starts a thread: callbacks run one at a time on whoever drives the
scheduler.

  • ManualScheduler — virtual clock, advanced explicitly. Used by tests,
    simulations and headless hosts.
  • AsyncioScheduler — thin wrapper over loop.call_later for a real UI loop.

Both hand back a ScheduledTask, which doubles as the cancellation token.

Usage:
    sched = ManualScheduler()
    task = sched.call_every(0.05, tick)
    sched.advance(1.0)      # runs 20 ticks
    task.cancel()
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger("moodcasino.scheduler")


class ScheduledTask:
    """Handle for a pending callback. cancel() is idempotent."""

    def __init__(self, callback: Callable[[], None], interval: Optional[float] = None):
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self.fired = 0
        self._handle = None

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        return not self.cancelled and (self.repeating or self.fired == 0)

    def cancel(self):
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        if self.cancelled:
            return
        self.fired += 1
        self.callback()


class Scheduler(ABC):

    @abstractmethod
    def now(self) -> float:
        ...

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run callback once, `delay` seconds from now."""
        ...

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        """Run callback every `interval` seconds (first run after one interval)."""
        ...


class ManualScheduler(Scheduler):
    """Virtual-time scheduler. Time only moves on advance()/run_until_idle()."""

    EPSILON = 1e-9

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def _push(self, due: float, task: ScheduledTask):
        heapq.heappush(self._queue, (due, next(self._seq), task))

    def call_later(self, delay, callback):
        task = ScheduledTask(callback)
        self._push(self._now + max(0.0, delay), task)
        return task

    def call_every(self, interval, callback):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        task = ScheduledTask(callback, interval=interval)
        self._push(self._now + interval, task)
        return task

    def _run_next(self) -> bool:
        due, _, task = heapq.heappop(self._queue)
        if task.cancelled:
            return False
        self._now = max(self._now, due)
        task._fire()
        if task.repeating and not task.cancelled:
            self._push(due + task.interval, task)
        return True

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that falls due. Returns callbacks run."""
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target + self.EPSILON:
            if self._run_next():
                ran += 1
        self._now = max(self._now, target)
        return ran

    def run_until_idle(self, max_callbacks: int = 100_000) -> int:
        """Fire callbacks in due order until nothing is pending."""
        ran = 0
        while self._queue:
            if ran >= max_callbacks:
                logger.warning(f"run_until_idle stopped after {ran} callbacks with work still queued")
                break
            if self._run_next():
                ran += 1
        return ran


class AsyncioScheduler(Scheduler):
    """Schedules on an asyncio event loop (the running loop unless one is given)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay, callback):
        task = ScheduledTask(callback)
        task._handle = self.loop.call_later(max(0.0, delay), task._fire)
        return task

    def call_every(self, interval, callback):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        task = ScheduledTask(callback, interval=interval)
        loop = self.loop

        def _tick():
            task._fire()
            if not task.cancelled:
                task._handle = loop.call_later(interval, _tick)

        task._handle = loop.call_later(interval, _tick)
        return task
