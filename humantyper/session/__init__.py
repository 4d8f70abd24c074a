from .guard import CooldownTable, SessionGuard, SessionState, WindowIdentity
from .tracker import EventKind, EventTracker, UiEvent
from .telemetry import StatusRecorder

__all__ = [
    "CooldownTable",
    "SessionGuard",
    "SessionState",
    "WindowIdentity",
    "EventKind",
    "EventTracker",
    "UiEvent",
    "StatusRecorder",
]
