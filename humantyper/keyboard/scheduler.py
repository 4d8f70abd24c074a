"""Cancellable delayed callbacks on one logical thread.

Callbacks are tagged with the run they belong to; cancelling a tag drops
every outstanding callback of that run at once. Ordering is by due time,
then by insertion, so callbacks built from one monotonically increasing
delay accumulator fire in the order they were planned.
"""

from __future__ import annotations
import asyncio
import heapq
import inspect
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..utils import HiResTimer
from .config import kcfg

logger = logging.getLogger(__name__)

Action = Callable[[], Any]


class MonotonicClock:
    """Wall-clock independent milliseconds."""

    def now(self) -> float:
        return time.monotonic() * 1000.0


class VirtualClock:
    """Manually driven clock for deterministic runs."""

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def set(self, ms: float) -> None:
        if ms < self._now:
            raise ValueError(f"virtual clock cannot go back ({ms} < {self._now})")
        self._now = float(ms)

    def advance(self, ms: float) -> None:
        self.set(self._now + ms)


@dataclass(order=True)
class Timer:
    due_ms: float
    seq: int
    tag: str = field(compare=False)
    action: Action = field(compare=False, repr=False)
    label: str = field(compare=False, default="")
    cancelled: bool = field(compare=False, default=False)


class TimerQueue:
    def __init__(self, clock=None):
        self.clock = clock or MonotonicClock()
        self._heap: List[Timer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.clock.now()

    def post(self, delay_ms: float, action: Action, *, tag: str, label: str = "") -> Timer:
        """Run `action` (sync or async) `delay_ms` from now."""
        timer = Timer(
            due_ms=self.clock.now() + max(0.0, float(delay_ms)),
            seq=next(self._seq),
            tag=tag,
            action=action,
            label=label,
        )
        heapq.heappush(self._heap, timer)
        return timer

    def cancel(self, tag: str) -> int:
        """Drop every outstanding callback carrying `tag`."""
        count = 0
        for timer in self._heap:
            if timer.tag == tag and not timer.cancelled:
                timer.cancelled = True
                count += 1
        self._compact()
        if count:
            logger.debug("cancelled %d callbacks for %s", count, tag)
        return count

    def cancel_all(self) -> int:
        count = sum(1 for t in self._heap if not t.cancelled)
        self._heap.clear()
        if count:
            logger.debug("cancelled all %d callbacks", count)
        return count

    def pending(self, tag: Optional[str] = None) -> int:
        return sum(
            1
            for t in self._heap
            if not t.cancelled and (tag is None or t.tag == tag)
        )

    def next_due(self) -> Optional[float]:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].due_ms if self._heap else None

    def _compact(self) -> None:
        self._heap = [t for t in self._heap if not t.cancelled]
        heapq.heapify(self._heap)

    async def _fire(self, timer: Timer) -> None:
        try:
            result = timer.action()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning(
                "callback %s/%s failed (skipped)", timer.tag, timer.label, exc_info=True
            )

    async def run_due(self) -> int:
        """Fire every callback due by now, including ones posted while firing."""
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > self.clock.now():
                return fired
            timer = heapq.heappop(self._heap)
            await self._fire(timer)
            fired += 1

    async def advance(self, ms: float) -> int:
        """Move a `VirtualClock` forward, firing callbacks at their own due times."""
        target = self.clock.now() + ms
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self.clock.set(max(due, self.clock.now()))
            fired += await self.run_due()
        self.clock.set(target)
        return fired

    async def drain(self, limit_ms: float = 600_000.0) -> int:
        """Advance a `VirtualClock` until nothing is pending (bounded by `limit_ms`)."""
        start = self.clock.now()
        fired = 0
        while True:
            due = self.next_due()
            if due is None or due - start > limit_ms:
                return fired
            fired += await self.advance(max(0.0, due - self.clock.now()))

    async def run_forever(self, stop: asyncio.Event) -> None:
        """Pump the queue on the running loop until `stop` is set."""
        with HiResTimer():
            while not stop.is_set():
                await self.run_due()
                due = self.next_due()
                wait_s = kcfg.PUMP_IDLE_S
                if due is not None:
                    wait_s = min(wait_s, max(0.0, (due - self.clock.now()) / 1000.0))
                try:
                    await asyncio.wait_for(stop.wait(), timeout=wait_s)
                except asyncio.TimeoutError:
                    pass
