from __future__ import annotations
from typing import Tuple


class scfg:
    # Case-insensitive substrings that mark a node as a send control
    SEND_KEYWORDS: Tuple[str, ...] = ("send",)

    # How far up the tree to look for a clickable wrapper of a send icon
    MAX_ANCESTOR_HOPS = 4

    # Many inputs submit on a trailing newline
    IME_COMMIT_SUFFIX = "\n"
