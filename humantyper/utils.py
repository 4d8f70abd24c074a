from __future__ import annotations
import ctypes
import logging
import platform
import random
from typing import Any, Awaitable, Tuple


class HiResTimer:
    """Context manager to request 1ms Windows system timer resolution.

    On Windows this reduces sleep jitter/latency for the scheduler pump.
    On other platforms, it is a no-op.
    """

    def __enter__(self):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeBeginPeriod(1)
        return self

    def __exit__(self, exc_type, exc, tb):
        if ctypes and platform.system() == "Windows":
            ctypes.windll.winmm.timeEndPeriod(1)


def random_ms(bounds: Tuple[int, int], rng: Any = None) -> int:
    """Return a random integer delay in [lo, hi] ms, agnostic to order.

    `rng` is anything exposing `randint` (a `random.Random` or the module).
    """
    rng = rng or random
    a, b = bounds
    lo, hi = (a, b) if a <= b else (b, a)
    return rng.randint(int(lo), int(hi))


def preview(text: str, limit: int = 40) -> str:
    """Shorten text for log lines."""
    flat = text.replace("\n", "\\n")
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


async def attempt(call: Awaitable[Any], label: str, default: Any = False) -> Any:
    """Await one node capability call; a stale or raising node yields `default`."""
    try:
        return await call
    except Exception:
        logging.getLogger(__name__).debug("%s failed (node gone?)", label, exc_info=True)
        return default
