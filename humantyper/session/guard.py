"""
Per-window run guard.

States are Idle -> Running -> Idle, keyed by window identity:

- a window-identity change replaces the SessionState wholesale
- a run may start only while Idle, armed, configured, off cooldown and not
  yet typed on this window (typed_once latches for the window's lifetime)
- completion or interrupt drops back to Idle; the stop command also clears
  the latch and disarms
"""

from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..registry import SelectorConfig
from ..send.outcomes import SendOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowIdentity:
    app_id: Optional[str]
    window_id: Optional[str]


@dataclass
class SessionState:
    identity: WindowIdentity
    config: Optional[SelectorConfig] = None
    typed_once: bool = False
    in_progress: bool = False
    last_incoming_signature: Optional[str] = None
    run_tag: Optional[str] = None

    @property
    def app_id(self) -> Optional[str]:
        return self.identity.app_id


@dataclass
class CooldownTable:
    """Last successful send per app (ms). Outlives every session."""

    last_sent: Dict[str, float] = field(default_factory=dict)

    def last(self, app_id: str) -> Optional[float]:
        return self.last_sent.get(app_id)

    def record(self, app_id: str, now_ms: float) -> None:
        self.last_sent[app_id] = now_ms

    def remaining(self, app_id: str, now_ms: float, cooldown_ms: float) -> float:
        """Milliseconds left before `app_id` may run again (0 when ready)."""
        last = self.last_sent.get(app_id)
        if cooldown_ms <= 0 or last is None:
            return 0.0
        return max(0.0, cooldown_ms - (now_ms - last))

    def ready(self, app_id: str, now_ms: float, cooldown_ms: float) -> bool:
        return self.remaining(app_id, now_ms, cooldown_ms) <= 0

    def clear(self) -> None:
        self.last_sent.clear()


def incoming_signature(app_id: Optional[str], texts: List[str]) -> Optional[str]:
    """Cheap fingerprint of what the window currently shows as incoming text."""
    if not texts:
        return None
    latest = texts[-1].strip()
    return f"{app_id}|{hash(latest)}|{len(texts)}"


class SessionGuard:
    def __init__(self, cooldowns: Optional[CooldownTable] = None):
        self.cooldowns = cooldowns if cooldowns is not None else CooldownTable()
        self.state = SessionState(WindowIdentity(None, None))
        self.armed = False
        self._runs = itertools.count(1)

    # -- window lifecycle -------------------------------------------------

    def is_new_window(self, identity: WindowIdentity) -> bool:
        return identity != self.state.identity

    def on_window_changed(
        self, identity: WindowIdentity, config: Optional[SelectorConfig]
    ) -> SessionState:
        """Start a fresh session for `identity`; the old one is discarded."""
        previous = self.state
        self.state = SessionState(identity=identity, config=config)
        logger.debug(
            "session %s -> %s (%s)",
            previous.identity,
            identity,
            "configured" if config is not None else "no config",
        )
        return self.state

    # -- run gating -------------------------------------------------------

    def blocked_reason(self, now_ms: float, cooldown_ms: float) -> Optional[str]:
        """Why a run may not start now, or None when it may."""
        s = self.state
        if not self.armed:
            return "not armed"
        if s.config is None:
            return "no config for this window"
        if s.in_progress:
            return "run in progress"
        if s.typed_once:
            return "already typed on this window"
        if s.app_id is not None:
            left = self.cooldowns.remaining(s.app_id, now_ms, cooldown_ms)
            if left > 0:
                return f"cooldown ({left:.0f} ms left)"
        return None

    def can_start(self, now_ms: float, cooldown_ms: float) -> bool:
        return self.blocked_reason(now_ms, cooldown_ms) is None

    def begin_run(self) -> str:
        """Idle -> Running. Returns the tag that owns this run's callbacks."""
        s = self.state
        if s.in_progress or s.typed_once:
            raise RuntimeError("begin_run() while a run is active or already done")
        s.typed_once = True
        s.in_progress = True
        s.run_tag = f"run-{next(self._runs)}"
        logger.info("Run %s started for %s", s.run_tag, s.app_id)
        return s.run_tag

    def finish_run(
        self, tag: str, outcome: Optional[SendOutcome], now_ms: float
    ) -> bool:
        """Running -> Idle. Records the cooldown on a committed send.

        Returns False when `tag` no longer owns the session (window changed).
        """
        s = self.state
        if s.run_tag != tag:
            logger.debug("finish for stale run %s ignored", tag)
            return False
        s.in_progress = False
        if outcome is not None and outcome.committed and s.app_id is not None:
            self.cooldowns.record(s.app_id, now_ms)
        return True

    def interrupt(self) -> None:
        """Abort the current run; the latch stays so the screen is not retried."""
        self.state.in_progress = False

    def stop(self) -> None:
        self.state.in_progress = False
        self.state.typed_once = False
        self.armed = False

    def arm(self) -> None:
        self.armed = True

    # -- incoming text ----------------------------------------------------

    def observe_incoming(self, texts: List[str]) -> Optional[str]:
        """Return the latest incoming text if it is new for this window, else None."""
        sig = incoming_signature(self.state.app_id, texts)
        if sig is None or sig == self.state.last_incoming_signature:
            return None
        self.state.last_incoming_signature = sig
        return texts[-1].strip()
