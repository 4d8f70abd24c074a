from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ..settings import INPUT_MODES, MODE_APPEND, MODE_CLEAR, MODE_SKIP
from ..utils import preview, random_ms
from .config import kcfg

logger = logging.getLogger(__name__)

STEP_CLEAR = "clear"
STEP_CHAR = "char"
STEP_DELETE = "delete"
STEP_RETYPE = "retype"


@dataclass(frozen=True)
class PlanStep:
    delay_ms: int  # relative to the moment the plan was built
    text: str  # field content after this step
    kind: str


@dataclass(frozen=True)
class TypingPlan:
    """Timed field mutations for one run, plus when to send."""

    target: str
    mode: str
    base_text: str  # field content the plan starts from
    final_text: str
    steps: Tuple[PlanStep, ...]
    send_delay_ms: int
    correction_index: Optional[int] = None

    @property
    def char_steps(self) -> List[PlanStep]:
        return [s for s in self.steps if s.kind == STEP_CHAR]

    @property
    def probe_step(self) -> Optional[PlanStep]:
        """First character step; its outcome decides direct typing vs paste."""
        return next((s for s in self.steps if s.kind == STEP_CHAR), None)

    @property
    def correction(self) -> Optional[Tuple[PlanStep, PlanStep]]:
        delete = next((s for s in self.steps if s.kind == STEP_DELETE), None)
        retype = next((s for s in self.steps if s.kind == STEP_RETYPE), None)
        if delete is None or retype is None:
            return None
        return delete, retype

    @property
    def paste_text(self) -> str:
        """What a single paste into a field holding `base_text` must insert."""
        return self.final_text[len(self.base_text) :]


def build_plan(
    target: str,
    mode: str = MODE_CLEAR,
    existing_text: str = "",
    *,
    rng: Any = None,
    separator: str = kcfg.APPEND_SEPARATOR,
) -> Optional[TypingPlan]:
    """
    Turn `target` into timed mutation steps.

    - skip:   returns None when the field already has non-blank content
    - clear:  a clear-to-empty step at delay 0 precedes the typing
    - append: typing continues after `existing_text + separator`

    Delays accumulate monotonically. For targets longer than
    `kcfg.MIN_CORRECTION_LENGTH` one interior character is followed by a
    delete step and a retype step; the pair nets to zero.
    """
    if mode not in INPUT_MODES:
        raise ValueError(f"unknown input mode {mode!r}; expected one of {INPUT_MODES}")
    if not target:
        raise ValueError("target sentence is empty")

    rng = rng or random
    existing = existing_text or ""
    if mode == MODE_SKIP and existing.strip():
        logger.debug("skip mode: field already holds %r", preview(existing))
        return None

    steps: List[PlanStep] = []
    if mode == MODE_CLEAR:
        base = ""
        current = ""
        steps.append(PlanStep(0, "", STEP_CLEAR))
    elif mode == MODE_APPEND and existing.strip():
        base = existing
        current = existing + separator
    else:
        # blank field: typing overwrites it, so the plan starts from empty
        base = ""
        current = ""

    correction_index: Optional[int] = None
    if len(target) > kcfg.MIN_CORRECTION_LENGTH:
        correction_index = rng.randint(1, len(target) - 2)

    delay = 0
    for i, ch in enumerate(target):
        bounds = kcfg.WHITESPACE_DELAY_MS if ch.isspace() else kcfg.CHAR_DELAY_MS
        delay += random_ms(bounds, rng)
        current += ch
        steps.append(PlanStep(delay, current, STEP_CHAR))

        if i == correction_index:
            delete_at = delay + random_ms(kcfg.CORRECTION_PAUSE_MS, rng)
            steps.append(PlanStep(delete_at, current[:-1], STEP_DELETE))
            retype_at = delete_at + random_ms(kcfg.RETYPE_PAUSE_MS, rng)
            steps.append(PlanStep(retype_at, current, STEP_RETYPE))
            # next character waits for the fix
            delay = retype_at

    send_delay = delay + random_ms(kcfg.SEND_PAUSE_MS, rng)
    plan = TypingPlan(
        target=target,
        mode=mode,
        base_text=base,
        final_text=current,
        steps=tuple(steps),
        send_delay_ms=send_delay,
        correction_index=correction_index,
    )
    logger.debug(
        "plan: %d steps, correction at %s, send at %d ms for %r",
        len(plan.steps),
        correction_index,
        send_delay,
        preview(target),
    )
    return plan


def replay(plan: TypingPlan, start: str = "") -> str:
    """Apply the steps in delay order to a field holding `start`; return its content."""
    field = start
    for step in sorted(plan.steps, key=lambda s: s.delay_ms):
        field = step.text
    return field
