"""
Send cascade. First success wins:

1. configured send selectors: click, clickable ancestor, tap at center
2. any visible node whose text/description mentions a send keyword
3. append a newline to the input (many fields submit on Enter)

Nothing here raises: every failure falls through to the next strategy and
the cascade ends in SendOutcome.FAILED.
"""

from __future__ import annotations
import logging
from typing import Optional

from ..errors import (
    AllSendStrategiesFailed,
    GestureDispatchFailed,
    NoSendControlFound,
)
from ..registry import SelectorConfig
from ..tree.locator import find_first
from ..tree.nodes import UiNode, UiTree
from ..utils import attempt
from .config import scfg
from .outcomes import SendOutcome

logger = logging.getLogger(__name__)


async def first_clickable_ancestor(
    node: UiNode, max_hops: int = scfg.MAX_ANCESTOR_HOPS
) -> Optional[UiNode]:
    cur = await attempt(node.parent(), "parent", default=None)
    hops = 0
    while cur is not None and hops < max_hops:
        if await attempt(cur.is_clickable(), "is_clickable"):
            return cur
        cur = await attempt(cur.parent(), "parent", default=None)
        hops += 1
    return None


async def tap_center(tree: UiTree, node: UiNode) -> None:
    """Tap the node's bounding-box center; raises GestureDispatchFailed."""
    rect = await attempt(node.bounds(), "bounds", default=None)
    if rect is None or rect.is_empty():
        raise GestureDispatchFailed("node has no usable bounds")
    if not await attempt(tree.tap(rect.cx, rect.cy), "tap"):
        raise GestureDispatchFailed(f"tap at ({rect.cx:.0f}, {rect.cy:.0f}) was not dispatched")


async def _click_cascade(
    tree: UiTree, node: UiNode, *, clicked: SendOutcome, via_ancestor: SendOutcome
) -> Optional[SendOutcome]:
    if await attempt(node.click(), "click"):
        return clicked
    ancestor = await first_clickable_ancestor(node)
    if ancestor is not None and await attempt(ancestor.click(), "click[ancestor]"):
        return via_ancestor
    try:
        await tap_center(tree, node)
    except GestureDispatchFailed as exc:
        logger.debug("gesture fallback failed: %s", exc)
        return None
    return SendOutcome.COMMITTED_BY_GESTURE


def _mentions_send(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in scfg.SEND_KEYWORDS)


async def find_send_candidate(tree: UiTree, input_node: Optional[UiNode]) -> UiNode:
    """BFS for a visible node labelled like a send control; raises NoSendControlFound."""

    async def _looks_like_send(node: UiNode) -> bool:
        if input_node is not None and node == input_node:
            return False
        label = f"{await node.description()}\n{await node.text()}"
        return _mentions_send(label) and await node.is_visible()

    candidate = await find_first(tree.root, _looks_like_send)
    if candidate is None:
        raise NoSendControlFound(f"no visible node mentions {scfg.SEND_KEYWORDS}")
    return candidate


async def _by_selectors(tree: UiTree, config: SelectorConfig) -> Optional[SendOutcome]:
    for selector in config.send_selectors:
        try:
            matches = await tree.query(selector)
        except Exception:
            logger.debug("send selector %r query failed", selector, exc_info=True)
            continue
        if not matches:
            continue
        outcome = await _click_cascade(
            tree,
            matches[0],
            clicked=SendOutcome.COMMITTED_BY_ID,
            via_ancestor=SendOutcome.COMMITTED_BY_ANCESTOR_CLICK,
        )
        if outcome is not None:
            return outcome
        logger.debug("send selector %r matched but nothing took the click", selector)
    return None


async def _by_keyword(tree: UiTree, input_node: UiNode) -> Optional[SendOutcome]:
    try:
        candidate = await find_send_candidate(tree, input_node)
    except NoSendControlFound as exc:
        logger.debug("%s", exc)
        return None
    return await _click_cascade(
        tree,
        candidate,
        clicked=SendOutcome.COMMITTED_BY_TEXT_MATCH,
        via_ancestor=SendOutcome.COMMITTED_BY_TEXT_MATCH,
    )


async def _by_newline(input_node: UiNode) -> SendOutcome:
    current = await attempt(input_node.text(), "text", default=None)
    if current is None:
        raise AllSendStrategiesFailed("input field went away before the newline fallback")
    if await attempt(input_node.set_text(current + scfg.IME_COMMIT_SUFFIX), "set_text[newline]"):
        return SendOutcome.COMMITTED_BY_IME_FALLBACK
    raise AllSendStrategiesFailed("input field refused the trailing newline")


async def try_send(
    tree: Optional[UiTree], input_node: UiNode, config: SelectorConfig
) -> SendOutcome:
    """Commit the typed message; returns which strategy worked, or FAILED."""
    if tree is None:
        logger.info("Send skipped: no active window tree")
        return SendOutcome.FAILED

    outcome = await _by_selectors(tree, config)
    if outcome is None:
        outcome = await _by_keyword(tree, input_node)
    if outcome is not None:
        return outcome
    try:
        return await _by_newline(input_node)
    except AllSendStrategiesFailed as exc:
        logger.info("Send cascade exhausted: %s", exc)
        return SendOutcome.FAILED
