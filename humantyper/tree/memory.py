"""Synthetic in-memory UI tree.

Implements the same capability interface as the live backends so the whole
pipeline can run without a device or a browser. Every capability call is
appended to `MemoryTree.actions` for inspection.
"""

from __future__ import annotations
from collections import deque
from typing import Callable, Iterable, List, Optional, Tuple

from .nodes import Rect


class StaleNodeError(RuntimeError):
    """Raised by a node flagged as stale, like a recycled platform handle."""


class MemoryNode:
    def __init__(
        self,
        node_id: Optional[str] = None,
        class_name: Optional[str] = None,
        text: str = "",
        *,
        description: str = "",
        clickable: bool = False,
        visible: bool = True,
        focused: bool = False,
        bounds: Optional[Rect] = None,
        children: Iterable["MemoryNode"] = (),
        accepts_text: bool = True,
        accepts_paste: bool = True,
        click_result: Optional[bool] = None,
        on_click: Optional[Callable[[], None]] = None,
        stale: bool = False,
    ):
        self._node_id = node_id
        self._class_name = class_name
        self._text = text
        self._description = description
        self.clickable = clickable
        self.visible = visible
        self.focused = focused
        self.rect = bounds
        self.accepts_text = accepts_text
        self.accepts_paste = accepts_paste
        self.click_result = click_result
        self.on_click = on_click
        self.stale = stale
        self.history: List[str] = []  # every accepted text value, in order
        self._parent: Optional[MemoryNode] = None
        self._children: List[MemoryNode] = []
        self.tree: Optional[MemoryTree] = None
        for child in children:
            self.add_child(child)

    def __repr__(self) -> str:
        return f"MemoryNode({self._node_id!r}, {self._class_name!r}, {self._text!r})"

    def add_child(self, child: "MemoryNode") -> "MemoryNode":
        child._parent = self
        self._children.append(child)
        if self.tree is not None:
            self.tree._adopt(child)
        return child

    def _check(self) -> None:
        if self.stale:
            raise StaleNodeError(f"node {self._node_id!r} is no longer attached")

    def _log(self, kind: str, detail: object = None) -> None:
        if self.tree is not None:
            self.tree.actions.append((kind, self._node_id, detail))

    @property
    def node_id(self) -> Optional[str]:
        self._check()
        return self._node_id

    @property
    def class_name(self) -> Optional[str]:
        self._check()
        return self._class_name

    @property
    def current_text(self) -> str:
        return self._text

    async def text(self) -> str:
        self._check()
        return self._text

    async def description(self) -> str:
        self._check()
        return self._description

    async def set_text(self, value: str) -> bool:
        self._check()
        if not self.accepts_text:
            self._log("set_text_rejected", value)
            return False
        self._text = value
        self.history.append(value)
        self._log("set_text", value)
        return True

    async def click(self) -> bool:
        self._check()
        ok = self.clickable if self.click_result is None else self.click_result
        self._log("click", ok)
        if ok and self.on_click is not None:
            self.on_click()
        return ok

    async def focus(self) -> bool:
        self._check()
        self.focused = True
        self._log("focus")
        return True

    async def is_focused(self) -> bool:
        self._check()
        return self.focused

    async def is_visible(self) -> bool:
        self._check()
        return self.visible

    async def is_clickable(self) -> bool:
        self._check()
        return self.clickable

    async def parent(self) -> Optional["MemoryNode"]:
        self._check()
        return self._parent

    async def children(self) -> List["MemoryNode"]:
        self._check()
        return list(self._children)

    async def bounds(self) -> Optional[Rect]:
        self._check()
        return self.rect

    async def paste(self) -> bool:
        self._check()
        clip = self.tree.clipboard if self.tree is not None else None
        if not self.accepts_paste or clip is None:
            self._log("paste_rejected")
            return False
        self._text += clip
        self.history.append(self._text)
        self._log("paste", clip)
        return True


class MemoryTree:
    """Root wrapper with selector lookup, gestures and a clipboard."""

    def __init__(
        self,
        root: MemoryNode,
        *,
        gestures_ok: bool = True,
        clipboard_ok: bool = True,
        on_long_press: Optional[Callable[[float, float], None]] = None,
    ):
        self._root = root
        self.gestures_ok = gestures_ok
        self.clipboard_ok = clipboard_ok
        self.on_long_press = on_long_press
        self.clipboard: Optional[str] = None
        self.actions: List[Tuple[str, Optional[str], object]] = []
        self._adopt(root)

    def _adopt(self, node: MemoryNode) -> None:
        node.tree = self
        for child in node._children:
            self._adopt(child)

    @property
    def root(self) -> MemoryNode:
        return self._root

    def walk(self) -> List[MemoryNode]:
        out: List[MemoryNode] = []
        queue = deque([self._root])
        while queue:
            node = queue.popleft()
            out.append(node)
            queue.extend(node._children)
        return out

    def find(self, node_id: str) -> Optional[MemoryNode]:
        """Test helper: first node carrying `node_id`, ignoring staleness."""
        return next((n for n in self.walk() if n._node_id == node_id), None)

    async def query(self, selector: str) -> List[MemoryNode]:
        self.actions.append(("query", selector, None))
        return [n for n in self.walk() if n._node_id == selector]

    async def tap(self, x: float, y: float) -> bool:
        self.actions.append(("tap", None, (x, y)))
        return self.gestures_ok

    async def long_press(self, x: float, y: float) -> bool:
        self.actions.append(("long_press", None, (x, y)))
        if self.gestures_ok and self.on_long_press is not None:
            self.on_long_press(x, y)
        return self.gestures_ok

    async def set_clipboard(self, text: str) -> bool:
        self.actions.append(("set_clipboard", None, text))
        if not self.clipboard_ok:
            return False
        self.clipboard = text
        return True

    def kinds(self) -> List[str]:
        """Action kinds in order, without selector queries."""
        return [kind for kind, _, _ in self.actions if kind != "query"]
