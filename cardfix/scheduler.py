from __future__ import annotations

import heapq
import itertools
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from cardfix.logging_setup import get_logger


class TimerHandle:
    """A deferred callback registered on a ``LogicalScheduler``."""

    __slots__ = ("due_ms", "seq", "callback", "args", "cancelled")

    def __init__(self, due_ms: float, seq: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.due_ms = due_ms
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: TimerHandle) -> bool:
        return (self.due_ms, self.seq) < (other.due_ms, other.seq)


class LogicalScheduler:
    """Single cooperative timeline measured in milliseconds.

    Nothing happens until the owner advances the clock, which keeps tests
    deterministic. Callbacks fire in due order; equal due times fire in the
    order they were registered.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime.now(tz=timezone.utc)
        self._now_ms = 0.0
        self._queue: list[TimerHandle] = []
        self._seq = itertools.count()
        self._logger = get_logger(self.__class__.__name__)

    @property
    def now_ms(self) -> float:
        return self._now_ms

    def now(self) -> datetime:
        return self._start + timedelta(milliseconds=self._now_ms)

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay must be >= 0, got {delay_ms}")
        handle = TimerHandle(self._now_ms + delay_ms, next(self._seq), callback, args)
        heapq.heappush(self._queue, handle)
        return handle

    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    def next_due_ms(self) -> float | None:
        self._drop_cancelled()
        return self._queue[0].due_ms if self._queue else None

    def advance(self, ms: float) -> int:
        """Move the clock forward by ``ms``, firing everything that falls due."""
        if ms < 0:
            raise ValueError("cannot move the clock backwards")
        return self._run_until(self._now_ms + ms)

    def run_until_idle(self, limit: int = 10_000) -> int:
        """Fire callbacks until none are left; returns how many ran."""
        fired = 0
        while True:
            due = self.next_due_ms()
            if due is None:
                return fired
            fired += self._run_until(due)
            if fired > limit:
                raise RuntimeError(f"scheduler did not go idle after {limit} callbacks")

    # Internals -----------------------------------------------------------------
    def _run_until(self, target_ms: float) -> int:
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0].due_ms > target_ms:
                break
            handle = heapq.heappop(self._queue)
            self._now_ms = max(self._now_ms, handle.due_ms)
            handle.callback(*handle.args)
            fired += 1
        self._now_ms = max(self._now_ms, target_ms)
        return fired

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)


def run_realtime(
    scheduler: LogicalScheduler,
    *,
    sleep_fn: Callable[[float], None] | None = None,
    max_ms: float | None = None,
) -> None:
    """Drive the logical timeline at wall-clock speed until it goes idle."""
    logger = get_logger("scheduler")
    sleep = sleep_fn or time.sleep
    try:
        while True:
            due = scheduler.next_due_ms()
            if due is None or (max_ms is not None and due > max_ms):
                break
            gap_ms = due - scheduler.now_ms
            if gap_ms > 0:
                sleep(gap_ms / 1000.0)
            scheduler.advance(max(gap_ms, 0))
    except KeyboardInterrupt:
        logger.info("Realtime run interrupted at t=%.0fms", scheduler.now_ms)


class Clock(Protocol):
    """What timed components need from a scheduler."""

    @property
    def now_ms(self) -> float:  # pragma: no cover - protocol
        ...

    def now(self) -> datetime:  # pragma: no cover - protocol
        ...

    def call_later(self, delay_ms: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:  # pragma: no cover - protocol
        ...
