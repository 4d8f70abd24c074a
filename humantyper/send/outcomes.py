from __future__ import annotations
from enum import Enum


class SendOutcome(str, Enum):
    COMMITTED_BY_ID = "committed_by_id"
    COMMITTED_BY_ANCESTOR_CLICK = "committed_by_ancestor_click"
    COMMITTED_BY_GESTURE = "committed_by_gesture"
    COMMITTED_BY_TEXT_MATCH = "committed_by_text_match"
    COMMITTED_BY_IME_FALLBACK = "committed_by_ime_fallback"
    FAILED = "failed"

    @property
    def committed(self) -> bool:
        return self is not SendOutcome.FAILED


_DESCRIPTIONS = {
    SendOutcome.COMMITTED_BY_ID: "clicked explicit id",
    SendOutcome.COMMITTED_BY_ANCESTOR_CLICK: "clicked ancestor",
    SendOutcome.COMMITTED_BY_GESTURE: "gesture tap",
    SendOutcome.COMMITTED_BY_TEXT_MATCH: "by description/text",
    SendOutcome.COMMITTED_BY_IME_FALLBACK: "newline fallback",
    SendOutcome.FAILED: "failed (no control found)",
}


def describe(outcome: SendOutcome) -> str:
    return f"Send: {_DESCRIPTIONS[outcome]}"
