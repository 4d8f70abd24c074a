"""
Live backend: a zendriver tab's DOM as the foreign UI tree.

Application id is the page host, window id is the target id plus the path,
so in-app navigation counts as a new screen. Selectors are CSS selectors.
"""

from __future__ import annotations
import asyncio
import json
import logging
import random
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from zendriver import cdp

from ..keyboard.config import kcfg
from ..session.tracker import EventKind, EventTracker, UiEvent
from .nodes import Rect

logger = logging.getLogger(__name__)

CDP_SEND_TIMEOUT_S: float = 0.35
CLICK_DOWN_UP_DELAY_S: Tuple[float, float] = (0.028, 0.065)  # randomized within
LONG_PRESS_HOLD_S: Tuple[float, float] = (0.550, 0.750)
POLL_INTERVAL_S: float = 0.25

_JS_GET_TEXT = "(el) => ('value' in el && el.tagName !== 'DIV') ? (el.value || '') : (el.innerText || '')"
_JS_IS_FOCUSED = "(el) => document.activeElement === el"
_JS_IS_VISIBLE = "(el) => !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length)"
_JS_IS_CLICKABLE = """(el) => {
    const tag = el.tagName;
    if (tag === 'BUTTON' || tag === 'A' || el.getAttribute('role') === 'button') return true;
    if (el.onclick || el.hasAttribute('onclick')) return true;
    return window.getComputedStyle(el).cursor === 'pointer';
}"""
_JS_SNAPSHOT = """(() => {
    const b = document.body;
    const a = document.activeElement;
    const focus = a ? a.tagName + '#' + (a.id || '') : '';
    return b ? b.innerHTML.length + '|' + b.childElementCount + '|' + focus : '';
})()"""


def _js_set_text(value: str) -> str:
    v = json.dumps(value)
    return f"""(el) => {{
    if ('value' in el && el.tagName !== 'DIV') {{
        if (el.readOnly || el.disabled) return false;
        el.value = {v};
    }} else if (el.isContentEditable) {{
        el.textContent = {v};
    }} else {{
        return false;
    }}
    el.dispatchEvent(new InputEvent('input', {{bubbles: true}}));
    return true;
}}"""


async def _send_cdp_event(page, fn: Callable[[], Awaitable[Any]], *, label: str) -> bool:
    """Send a CDP event with a short timeout; a stalled send finishes in background."""
    task = asyncio.create_task(fn())
    try:
        await asyncio.wait_for(asyncio.shield(task), timeout=CDP_SEND_TIMEOUT_S)
        return True
    except asyncio.TimeoutError:
        logger.warning(
            "CDP %s stalled >%.0f ms; continuing in background",
            label,
            CDP_SEND_TIMEOUT_S * 1000.0,
        )
        return True
    except Exception:
        logger.warning("CDP %s failed (skipped this event)", label, exc_info=True)
        return False


def _quad_to_rect(quad: Sequence[float]) -> Optional[Rect]:
    """Convert an 8-number quad to its bounding Rect."""
    if not quad or len(quad) < 8:
        return None
    xs = [quad[0], quad[2], quad[4], quad[6]]
    ys = [quad[1], quad[3], quad[5], quad[7]]
    x_min, y_min = min(xs), min(ys)
    return Rect(x_min, y_min, max(0.0, max(xs) - x_min), max(0.0, max(ys) - y_min))


class ElementNode:
    """UiNode over a zendriver Element."""

    def __init__(self, tree: "PageTree", element):
        self.tree = tree
        self.element = element

    def _key(self) -> Any:
        return getattr(self.element, "backend_node_id", None) or id(self.element)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ElementNode) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"ElementNode(<{self.class_name}> id={self.node_id!r})"

    def _attr(self, name: str) -> Optional[str]:
        attrs = getattr(self.element, "attrs", None) or {}
        value = attrs.get(name)
        return str(value) if value is not None else None

    async def _eval(self, js: str) -> Any:
        return await self.element.apply(js, return_by_value=True)

    @property
    def node_id(self) -> Optional[str]:
        return self._attr("id")

    @property
    def class_name(self) -> Optional[str]:
        tag = getattr(self.element, "tag_name", None)
        return tag.lower() if tag else None

    async def text(self) -> str:
        return str(await self._eval(_JS_GET_TEXT) or "")

    async def description(self) -> str:
        return self._attr("aria-label") or self._attr("title") or ""

    async def set_text(self, value: str) -> bool:
        return bool(await self._eval(_js_set_text(value)))

    async def click(self) -> bool:
        await self.element.click()
        return True

    async def focus(self) -> bool:
        await self.element.focus()
        return True

    async def is_focused(self) -> bool:
        return bool(await self._eval(_JS_IS_FOCUSED))

    async def is_visible(self) -> bool:
        return bool(await self._eval(_JS_IS_VISIBLE))

    async def is_clickable(self) -> bool:
        return bool(await self._eval(_JS_IS_CLICKABLE))

    async def parent(self) -> Optional["ElementNode"]:
        parent = getattr(self.element, "parent", None)
        return ElementNode(self.tree, parent) if parent is not None else None

    async def children(self) -> List["ElementNode"]:
        out = []
        for child in getattr(self.element, "children", None) or []:
            node = getattr(child, "node", None)
            if getattr(node, "node_type", 1) == 1:  # elements only, no text nodes
                out.append(ElementNode(self.tree, child))
        return out

    async def bounds(self) -> Optional[Rect]:
        backend_id = getattr(self.element, "backend_node_id", None)
        if backend_id is None:
            return None
        model = await self.tree.tab.send(cdp.dom.get_box_model(backend_node_id=backend_id))
        return _quad_to_rect(getattr(model, "content", None))

    async def paste(self) -> bool:
        if self.tree.clipboard is None:
            return False
        await self.element.focus()
        return await _send_cdp_event(
            self.tree.tab,
            lambda: self.tree.tab.send(cdp.input_.insert_text(text=self.tree.clipboard)),
            label="insertText",
        )


class PageTree:
    """UiTree over a zendriver tab."""

    def __init__(self, tab, root_element):
        self.tab = tab
        self._root = ElementNode(self, root_element)
        self.clipboard: Optional[str] = None

    @classmethod
    async def capture(cls, tab) -> Optional["PageTree"]:
        body = await tab.query_selector("body")
        return cls(tab, body) if body is not None else None

    @property
    def root(self) -> ElementNode:
        return self._root

    async def query(self, selector: str) -> List[ElementNode]:
        return [ElementNode(self, el) for el in await self.tab.query_selector_all(selector)]

    async def _press(self, x: float, y: float, hold: Tuple[float, float], label: str) -> bool:
        button = cdp.input_.MouseButton.LEFT
        ok = await _send_cdp_event(
            self.tab,
            lambda: self.tab.send(
                cdp.input_.dispatch_mouse_event(
                    type_="mousePressed", x=float(x), y=float(y), button=button, click_count=1
                )
            ),
            label=f"{label}Pressed",
        )
        if not ok:
            return False
        await asyncio.sleep(random.uniform(*hold))
        return await _send_cdp_event(
            self.tab,
            lambda: self.tab.send(
                cdp.input_.dispatch_mouse_event(
                    type_="mouseReleased", x=float(x), y=float(y), button=button, click_count=1
                )
            ),
            label=f"{label}Released",
        )

    async def tap(self, x: float, y: float) -> bool:
        return await self._press(x, y, CLICK_DOWN_UP_DELAY_S, "tap")

    async def long_press(self, x: float, y: float) -> bool:
        return await self._press(x, y, LONG_PRESS_HOLD_S, "longPress")

    async def set_clipboard(self, text: str) -> bool:
        # insertText is the paste primitive, so the clipboard stays in-process
        self.clipboard = text
        return True


def window_identity(tab) -> Tuple[Optional[str], Optional[str]]:
    target = getattr(tab, "target", None)
    url = getattr(target, "url", None) or ""
    parts = urlsplit(url)
    target_id = getattr(target, "target_id", None)
    return parts.hostname, f"{target_id}:{parts.path}"


async def watch_tab(
    tab,
    tracker: EventTracker,
    stop: asyncio.Event,
    *,
    interval_s: float = POLL_INTERVAL_S,
) -> None:
    """
    Notification source for a tab: poll identity, content and focus, feed the
    tracker, and pump its timer queue on this same task.
    """
    last_identity: Optional[Tuple[Optional[str], Optional[str]]] = None
    last_snapshot: Optional[str] = None
    last_focus: Optional[str] = None

    while not stop.is_set():
        app_id, window_id = window_identity(tab)
        try:
            snapshot = str(await tab.evaluate(_JS_SNAPSHOT, return_by_value=True) or "")
        except Exception:
            logger.warning("Tab snapshot failed; retrying", exc_info=True)
            snapshot = None

        if snapshot is not None:
            focus = snapshot.rsplit("|", 1)[-1]
            kind: Optional[EventKind] = None
            if (app_id, window_id) != last_identity:
                kind = EventKind.WINDOW_CHANGED
            elif focus != last_focus:
                kind = EventKind.FOCUS_CHANGED
            elif snapshot != last_snapshot:
                kind = EventKind.CONTENT_CHANGED

            if kind is not None:
                try:
                    tree = await PageTree.capture(tab)
                except Exception:
                    logger.warning("Could not capture the DOM tree", exc_info=True)
                    tree = None
                if tree is not None:
                    await tracker.on_event(UiEvent(kind, app_id, window_id, tree))
                    last_identity = (app_id, window_id)
                    last_snapshot, last_focus = snapshot, focus

        await tracker.queue.run_due()
        due = tracker.queue.next_due()
        wait_s = interval_s
        if due is not None:
            wait_s = min(wait_s, max(0.0, (due - tracker.queue.now()) / 1000.0))
        try:
            await asyncio.wait_for(stop.wait(), timeout=max(wait_s, kcfg.PUMP_IDLE_S / 10))
        except asyncio.TimeoutError:
            pass
