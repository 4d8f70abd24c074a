from __future__ import annotations
import logging
from collections import deque
from typing import Awaitable, Callable, List, Optional

from ..errors import NoFieldFound
from ..registry import SelectorConfig
from .nodes import UiNode, UiTree

logger = logging.getLogger(__name__)

# Upper bound on nodes visited by one breadth-first scan
MAX_TREE_NODES = 4000

NodePredicate = Callable[[UiNode], Awaitable[bool]]


async def _children_or_empty(node: UiNode) -> List[UiNode]:
    try:
        return [c for c in await node.children() if c is not None]
    except Exception:
        logger.debug("children() failed on a stale node; skipping subtree")
        return []


def _class_of(node: UiNode) -> Optional[str]:
    try:
        return node.class_name
    except Exception:
        return None


async def _query(tree: UiTree, selector: str) -> List[UiNode]:
    try:
        return list(await tree.query(selector))
    except Exception:
        logger.debug("query %r failed; treated as no match", selector, exc_info=True)
        return []


async def find_first(
    root: UiNode, predicate: NodePredicate, *, max_nodes: int = MAX_TREE_NODES
) -> Optional[UiNode]:
    """Breadth-first search for the first node matching `predicate`.

    A node whose predicate raises counts as a non-match; traversal continues.
    """
    queue = deque([root])
    visited = 0
    while queue and visited < max_nodes:
        node = queue.popleft()
        visited += 1
        try:
            if await predicate(node):
                return node
        except Exception:
            logger.debug("predicate raised on node; continuing", exc_info=True)
        queue.extend(await _children_or_empty(node))
    return None


async def find_all(
    root: UiNode, predicate: NodePredicate, *, max_nodes: int = MAX_TREE_NODES
) -> List[UiNode]:
    """Breadth-first collection of every node matching `predicate`."""
    found: List[UiNode] = []
    queue = deque([root])
    visited = 0
    while queue and visited < max_nodes:
        node = queue.popleft()
        visited += 1
        try:
            if await predicate(node):
                found.append(node)
        except Exception:
            logger.debug("predicate raised on node; continuing", exc_info=True)
        queue.extend(await _children_or_empty(node))
    return found


def _type_is(type_name: str) -> NodePredicate:
    async def _pred(node: UiNode) -> bool:
        return _class_of(node) == type_name

    return _pred


async def locate_input(tree: UiTree, config: SelectorConfig) -> Optional[UiNode]:
    """Find the input field: configured selectors first, then a type-based BFS."""
    for selector in config.input_selectors:
        matches = await _query(tree, selector)
        if matches:
            logger.debug("input matched selector %r", selector)
            return matches[0]

    if not config.fallback_field_type:
        return None
    node = await find_first(tree.root, _type_is(config.fallback_field_type))
    if node is not None:
        logger.debug("input matched fallback type %r", config.fallback_field_type)
    return node


async def require_input(tree: UiTree, config: SelectorConfig) -> UiNode:
    """Like `locate_input` but raises `NoFieldFound` when nothing matches."""
    node = await locate_input(tree, config)
    if node is None:
        raise NoFieldFound(
            f"no node for selectors {list(config.input_selectors)} "
            f"or type {config.fallback_field_type!r}"
        )
    return node


async def _non_blank_text(node: UiNode) -> Optional[str]:
    try:
        text = await node.text()
    except Exception:
        return None
    return text if text and text.strip() else None


async def read_incoming_texts(tree: UiTree, config: SelectorConfig) -> List[str]:
    """Collect every non-blank incoming message text; the last one is the latest."""
    texts: List[str] = []
    for selector in config.incoming_text_selectors:
        for node in await _query(tree, selector):
            text = await _non_blank_text(node)
            if text is not None:
                texts.append(text)
    if texts or not config.incoming_text_type:
        return texts

    for node in await find_all(tree.root, _type_is(config.incoming_text_type)):
        text = await _non_blank_text(node)
        if text is not None:
            texts.append(text)
    return texts


async def dump_hierarchy(root: UiNode, *, max_nodes: int = MAX_TREE_NODES) -> str:
    """Return an indented `id [type] text='...'` listing of the tree, depth-first."""
    lines: List[str] = []

    async def _visit(node: UiNode, indent: str) -> None:
        if len(lines) >= max_nodes:
            return
        try:
            node_id = node.node_id or "<no-id>"
            cls = node.class_name or "<no-class>"
            text = await node.text()
        except Exception:
            lines.append(f"{indent}<stale>")
            return
        lines.append(f"{indent}{node_id} [{cls}] text='{text}'")
        for child in await _children_or_empty(node):
            await _visit(child, indent + "  ")

    await _visit(root, "")
    for line in lines:
        logger.debug(line)
    return "\n".join(lines)
