from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Protocol
import logging
import time

from ..send.outcomes import SendOutcome, describe

logger = logging.getLogger(__name__)


class StatusSink(Protocol):
    def send_outcome(self, app_id: Optional[str], outcome: SendOutcome) -> None: ...

    def scan_result(self, app_id: Optional[str], found: bool) -> None: ...

    def incoming_text(self, app_id: Optional[str], text: str) -> None: ...


@dataclass(frozen=True)
class StatusEvent:
    t: float
    kind: str  # 'send' | 'scan' | 'incoming'
    app_id: Optional[str]
    value: object


@dataclass
class StatusRecorder:
    """Default status sink: logs every report and keeps it for inspection."""

    events: List[StatusEvent] = field(default_factory=list)
    start_ts: float = field(default_factory=lambda: time.perf_counter())

    def _now(self) -> float:
        return time.perf_counter() - self.start_ts

    def send_outcome(self, app_id: Optional[str], outcome: SendOutcome) -> None:
        logger.info("%s (%s)", describe(outcome), app_id)
        self.events.append(StatusEvent(self._now(), "send", app_id, outcome))

    def scan_result(self, app_id: Optional[str], found: bool) -> None:
        logger.debug("scan: input %s in %s", "found" if found else "not found", app_id)
        self.events.append(StatusEvent(self._now(), "scan", app_id, found))

    def incoming_text(self, app_id: Optional[str], text: str) -> None:
        logger.debug("Latest incoming (%s): %s", app_id, text)
        self.events.append(StatusEvent(self._now(), "incoming", app_id, text))

    def of_kind(self, kind: str) -> List[StatusEvent]:
        return [e for e in self.events if e.kind == kind]

    def reset(self) -> None:
        self.events.clear()
        self.start_ts = time.perf_counter()
