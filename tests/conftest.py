"""Shared fixtures: a small chat screen on the in-memory tree, a virtual clock."""
import os
import random
import sys

import pytest

# allow running the suite from a plain checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from humantyper.keyboard.scheduler import TimerQueue, VirtualClock
from humantyper.registry import SelectorConfig
from humantyper.tree.memory import MemoryNode, MemoryTree
from humantyper.tree.nodes import Rect

CHAT_APP = "chat.app"

CHAT_CONFIG = SelectorConfig(
    input_selectors=("field1",),
    send_selectors=("sendBtn",),
    incoming_text_selectors=("msg",),
    fallback_field_type="EditText",
)


def build_chat(*, field=None, send=None, messages=("hello?",), extra=()):
    """root > [list > msg*, composer > [field1, sendBtn], *extra]"""
    field = field if field is not None else MemoryNode("field1", "EditText", bounds=Rect(10, 500, 280, 40))
    composer_children = [field]
    if send is not False:
        composer_children.append(
            send
            if send is not None
            else MemoryNode(
                "sendBtn",
                "ImageButton",
                description="Send",
                clickable=True,
                bounds=Rect(300, 500, 40, 40),
            )
        )
    root = MemoryNode(
        "root",
        "FrameLayout",
        children=[
            MemoryNode("list", "RecyclerView", children=[MemoryNode("msg", "TextView", t) for t in messages]),
            MemoryNode("composer", "LinearLayout", children=composer_children),
            *extra,
        ],
    )
    return MemoryTree(root), field


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def queue(clock):
    return TimerQueue(clock)


@pytest.fixture
def chat():
    return build_chat()
