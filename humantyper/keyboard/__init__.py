from .plan import PlanStep, TypingPlan, build_plan, replay
from .scheduler import TimerQueue, VirtualClock, MonotonicClock
from .behaviors import PlanRunner
from .analysis import summarize_typing, print_typing_summary
from .render import save_typing_timeline_jpeg
from .telemetry import recorder, set_timeline_callback

__all__ = [
    "PlanStep",
    "TypingPlan",
    "build_plan",
    "replay",
    "TimerQueue",
    "VirtualClock",
    "MonotonicClock",
    "PlanRunner",
    "summarize_typing",
    "print_typing_summary",
    "save_typing_timeline_jpeg",
    "recorder",
    "set_timeline_callback",
]
