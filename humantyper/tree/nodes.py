from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple


@dataclass(frozen=True)
class Rect:
    """Screen-space bounding rectangle of a node."""

    x: float
    y: float
    width: float
    height: float

    @property
    def cx(self) -> float:
        return self.x + self.width / 2.0

    @property
    def cy(self) -> float:
        return self.y + self.height / 2.0

    @property
    def center(self) -> Tuple[float, float]:
        return self.cx, self.cy

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class UiNode(Protocol):
    """Handle into a live foreign UI tree.

    Handles are only valid for one scan. Any method may raise if the node went
    stale; callers treat that as "not found" or "failed" for that node.
    """

    @property
    def node_id(self) -> Optional[str]: ...

    @property
    def class_name(self) -> Optional[str]: ...

    async def text(self) -> str: ...

    async def description(self) -> str: ...

    async def set_text(self, value: str) -> bool: ...

    async def click(self) -> bool: ...

    async def focus(self) -> bool: ...

    async def is_focused(self) -> bool: ...

    async def is_visible(self) -> bool: ...

    async def is_clickable(self) -> bool: ...

    async def parent(self) -> Optional["UiNode"]: ...

    async def children(self) -> List["UiNode"]: ...

    async def bounds(self) -> Optional[Rect]: ...

    async def paste(self) -> bool: ...


class UiTree(Protocol):
    """Root-level capabilities of a foreign UI tree."""

    @property
    def root(self) -> UiNode: ...

    async def query(self, selector: str) -> List[UiNode]: ...

    async def tap(self, x: float, y: float) -> bool: ...

    async def long_press(self, x: float, y: float) -> bool: ...

    async def set_clipboard(self, text: str) -> bool: ...
