from .nodes import Rect, UiNode, UiTree
from .memory import MemoryNode, MemoryTree
from .locator import locate_input, read_incoming_texts, find_first, dump_hierarchy

# The zendriver backend is imported explicitly: humantyper.tree.zendriver_tree

__all__ = [
    "Rect",
    "UiNode",
    "UiTree",
    "MemoryNode",
    "MemoryTree",
    "locate_input",
    "read_incoming_texts",
    "find_first",
    "dump_hierarchy",
]
