from __future__ import annotations
from .keyboard import build_plan, TimerQueue, summarize_typing, save_typing_timeline_jpeg
from .registry import SelectorConfig, SelectorDirectory
from .send import SendOutcome, try_send
from .sentences import SentenceRepository
from .session import EventKind, EventTracker, SessionGuard, UiEvent
from .settings import Settings

__all__ = [
    "build_plan",
    "TimerQueue",
    "summarize_typing",
    "save_typing_timeline_jpeg",
    "SelectorConfig",
    "SelectorDirectory",
    "SendOutcome",
    "try_send",
    "SentenceRepository",
    "EventKind",
    "EventTracker",
    "SessionGuard",
    "UiEvent",
    "Settings",
]
