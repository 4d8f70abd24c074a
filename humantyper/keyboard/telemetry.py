from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path as FSPath
from typing import Awaitable, Callable, List, Optional
import logging
import time

TimelineCallback = Optional[Callable[[FSPath], Awaitable[None]]]
_TIMELINE_CALLBACK: TimelineCallback = None


def set_timeline_callback(cb: TimelineCallback) -> None:
    """Register an async callback invoked whenever a typing timeline JPEG is saved."""
    global _TIMELINE_CALLBACK
    _TIMELINE_CALLBACK = cb
    logging.getLogger(__name__).info(
        "Typing timeline callback %s", "registered" if cb else "cleared"
    )


@dataclass(frozen=True)
class KeystrokeEvent:
    t: float  # ms, on the scheduler clock when given, else since recorder start
    kind: str  # 'clear' | 'char' | 'delete' | 'retype' | 'paste' | 'rejected'
    value: str  # field content after the event
    dt: float  # planned delay of the step (ms, relative to plan start)


@dataclass
class KeystrokeRecorder:
    events: List[KeystrokeEvent] = field(default_factory=list)
    start_ts: float = field(default_factory=lambda: time.perf_counter())
    correction_count: int = 0
    paste_count: int = 0

    def _now(self) -> float:
        return (time.perf_counter() - self.start_ts) * 1000.0

    def log(self, kind: str, value: str, dt: float, t: Optional[float] = None) -> None:
        self.events.append(KeystrokeEvent(self._now() if t is None else t, kind, value, dt))
        if kind == "delete":
            self.correction_count += 1
        elif kind == "paste":
            self.paste_count += 1

    def reset(self) -> None:
        self.events.clear()
        self.start_ts = time.perf_counter()
        self.correction_count = 0
        self.paste_count = 0


recorder = KeystrokeRecorder()
