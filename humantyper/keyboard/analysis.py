from __future__ import annotations
import logging
from typing import Optional
from .telemetry import KeystrokeRecorder, recorder as global_recorder

# Route debug prints in this module through logging
print = logging.getLogger(__name__).debug


def summarize_typing(rec: Optional[KeystrokeRecorder] = None) -> str:
    """
    Reports:
      - Total duration of the applied steps
      - Avg WPM over typed characters (retypes count, deletes do not)
      - Characters, corrections, pastes and rejected mutations
    """
    rec = rec or global_recorder
    evs = rec.events
    if len(evs) < 2:
        return "No typing data"

    total_ms = max(0.0, evs[-1].t - evs[0].t)
    if total_ms <= 0:
        return "Invalid timing data"

    typed = sum(1 for e in evs if e.kind in ("char", "retype"))
    rejected = sum(1 for e in evs if e.kind == "rejected")
    cps = typed / (total_ms / 1000.0)
    wpm = (cps * 60.0) / 5.0

    return (
        "Typing Summary:\n"
        f"  Total duration: {total_ms / 1000.0:.2f}s\n"
        f"  Avg WPM: {wpm:.2f}\n"
        f"  Typed chars: {typed}\n"
        f"  Corrections: {rec.correction_count}\n"
        f"  Pastes: {rec.paste_count}\n"
        f"  Rejected mutations: {rejected}"
    )


def print_typing_summary(rec: Optional[KeystrokeRecorder] = None) -> None:
    """Log the summary at debug level."""
    print(summarize_typing(rec))
