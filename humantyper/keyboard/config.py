from __future__ import annotations
from typing import Tuple


class kcfg:
    # Per-character delay (ms); whitespace is slower to mimic word boundaries
    CHAR_DELAY_MS: Tuple[int, int] = (90, 220)
    WHITESPACE_DELAY_MS: Tuple[int, int] = (160, 320)

    # One simulated mis-type + fix per sentence, only above this length
    MIN_CORRECTION_LENGTH = 3
    CORRECTION_PAUSE_MS: Tuple[int, int] = (180, 320)  # "oops" before deleting
    RETYPE_PAUSE_MS: Tuple[int, int] = (90, 160)

    # Settle before the send cascade runs
    SEND_PAUSE_MS: Tuple[int, int] = (260, 520)
    PASTE_SEND_PAUSE_MS: Tuple[int, int] = (400, 800)

    # Append mode joins existing text and the new sentence with this
    APPEND_SEPARATOR = "\n"

    # Long-press menu: wait for it to render, then look for one of these labels
    MENU_SETTLE_MS = 350
    PASTE_MENU_LABELS: Tuple[str, ...] = ("paste",)

    # Timer pump: longest idle sleep when nothing is due
    PUMP_IDLE_S = 0.05
