import pytest

from humantyper.errors import NoSendControlFound
from humantyper.registry import SelectorConfig
from humantyper.send import SendOutcome, describe, find_send_candidate, first_clickable_ancestor, try_send
from humantyper.tree.memory import MemoryNode, MemoryTree
from humantyper.tree.nodes import Rect

from .conftest import CHAT_CONFIG, build_chat

NO_SEND_IDS = SelectorConfig(input_selectors=("field1",), fallback_field_type="EditText")


def chain(depth, clickable_at, leaf):
    """root > a1 > ... > a{depth} > leaf; `clickable_at` names which ancestors are clickable."""
    node = leaf
    for i in range(depth, 0, -1):
        node = MemoryNode(f"a{i}", "Layout", clickable=f"a{i}" in clickable_at, children=[node])
    return MemoryNode("root", "Frame", clickable="root" in clickable_at, children=[node])


class TestSelectorStrategy:
    @pytest.mark.asyncio
    async def test_click_by_id_short_circuits(self, chat):
        tree, field = chat
        outcome = await try_send(tree, field, CHAT_CONFIG)
        assert outcome is SendOutcome.COMMITTED_BY_ID
        assert tree.kinds() == ["click"]
        assert field.current_text == ""

    @pytest.mark.asyncio
    async def test_later_selector_used_when_first_missing(self, chat):
        tree, field = chat
        config = SelectorConfig(send_selectors=("nope", "sendBtn"))
        assert await try_send(tree, field, config) is SendOutcome.COMMITTED_BY_ID

    @pytest.mark.asyncio
    async def test_clickable_ancestor(self):
        send = MemoryNode("sendIcon", "ImageView")
        field = MemoryNode("field1", "EditText")
        tree = MemoryTree(MemoryNode("root", children=[field, chain(2, {"a1"}, send)]))
        config = SelectorConfig(send_selectors=("sendIcon",))

        assert await try_send(tree, field, config) is SendOutcome.COMMITTED_BY_ANCESTOR_CLICK
        assert [(k, n, d) for k, n, d in tree.actions if k == "click"] == [
            ("click", "sendIcon", False),
            ("click", "a1", True),
        ]

    @pytest.mark.asyncio
    async def test_ancestor_search_stops_after_four_hops(self):
        near = MemoryNode("leaf")
        chain(4, {"a1"}, near)  # a1 is four hops up
        assert (await first_clickable_ancestor(near)).node_id == "a1"

        far = MemoryNode("leaf")
        chain(4, {"root"}, far)  # root is five hops up
        assert await first_clickable_ancestor(far) is None

    @pytest.mark.asyncio
    async def test_gesture_tap_at_center(self):
        send = MemoryNode("sendIcon", "ImageView", bounds=Rect(300, 500, 40, 40))
        field = MemoryNode("field1", "EditText")
        tree = MemoryTree(MemoryNode("root", children=[field, send]))
        config = SelectorConfig(send_selectors=("sendIcon",))

        assert await try_send(tree, field, config) is SendOutcome.COMMITTED_BY_GESTURE
        assert ("tap", None, (320.0, 520.0)) in tree.actions

    @pytest.mark.asyncio
    async def test_failed_gestures_fall_through_to_newline(self):
        send = MemoryNode("sendBtn", "ImageButton", description="Send", bounds=Rect(300, 500, 40, 40))
        tree, field = build_chat(send=send)
        tree.gestures_ok = False

        outcome = await try_send(tree, field, CHAT_CONFIG)
        assert outcome is SendOutcome.COMMITTED_BY_IME_FALLBACK
        assert tree.kinds() == ["click", "tap", "click", "tap", "set_text"]
        assert field.current_text == "\n"

    @pytest.mark.asyncio
    async def test_stale_send_node_falls_through(self):
        tree, field = build_chat(send=MemoryNode("sendBtn", stale=True))
        await field.set_text("hi")
        assert await try_send(tree, field, CHAT_CONFIG) is SendOutcome.COMMITTED_BY_IME_FALLBACK
        assert field.current_text == "hi\n"


class TestKeywordStrategy:
    @pytest.mark.asyncio
    async def test_visible_text_match(self):
        field = MemoryNode("field1", "EditText")
        hidden = MemoryNode("ghost", "Button", "Send", clickable=True, visible=False)
        button = MemoryNode("b", "Button", "SEND", clickable=True)
        tree = MemoryTree(MemoryNode("root", children=[field, hidden, MemoryNode("row", children=[button])]))

        assert await try_send(tree, field, NO_SEND_IDS) is SendOutcome.COMMITTED_BY_TEXT_MATCH
        assert ("click", "b", True) in tree.actions
        assert ("click", "ghost", True) not in tree.actions

    @pytest.mark.asyncio
    async def test_description_match_through_ancestor(self):
        field = MemoryNode("field1", "EditText")
        icon = MemoryNode("icon", "ImageView", description="Send message")
        tree = MemoryTree(
            MemoryNode("root", children=[field, MemoryNode("wrap", clickable=True, children=[icon])])
        )
        assert await try_send(tree, field, NO_SEND_IDS) is SendOutcome.COMMITTED_BY_TEXT_MATCH
        assert ("click", "wrap", True) in tree.actions

    @pytest.mark.asyncio
    async def test_input_field_is_never_the_candidate(self):
        field = MemoryNode("field1", "EditText", "please send this", clickable=True)
        tree = MemoryTree(MemoryNode("root", children=[field]))
        with pytest.raises(NoSendControlFound):
            await find_send_candidate(tree, field)

        outcome = await try_send(tree, field, NO_SEND_IDS)
        assert outcome is SendOutcome.COMMITTED_BY_IME_FALLBACK
        assert field.current_text == "please send this\n"

    @pytest.mark.asyncio
    async def test_ids_are_tried_before_keywords(self):
        field = MemoryNode("field1", "EditText")
        dead = MemoryNode("sendBtn", "ImageButton")
        button = MemoryNode("b", "Button", "Send", clickable=True)
        tree = MemoryTree(MemoryNode("root", children=[field, dead, button]))

        outcome = await try_send(tree, field, CHAT_CONFIG)
        assert outcome is SendOutcome.COMMITTED_BY_TEXT_MATCH
        clicks = [n for k, n, _ in tree.actions if k == "click"]
        assert clicks == ["sendBtn", "b"]


class TestNewlineFallback:
    @pytest.mark.asyncio
    async def test_newline_appended(self):
        field = MemoryNode("field1", "EditText", "hi there")
        tree = MemoryTree(MemoryNode("root", children=[field]))
        assert await try_send(tree, field, NO_SEND_IDS) is SendOutcome.COMMITTED_BY_IME_FALLBACK
        assert field.current_text == "hi there\n"

    @pytest.mark.asyncio
    async def test_failed_when_field_refuses(self):
        field = MemoryNode("field1", "EditText", "hi there", accepts_text=False)
        tree = MemoryTree(MemoryNode("root", children=[field]))
        assert await try_send(tree, field, NO_SEND_IDS) is SendOutcome.FAILED
        assert field.current_text == "hi there"

    @pytest.mark.asyncio
    async def test_no_tree(self):
        field = MemoryNode("field1", "EditText")
        assert await try_send(None, field, CHAT_CONFIG) is SendOutcome.FAILED


class TestOutcomes:
    def test_committed_flag(self):
        assert SendOutcome.COMMITTED_BY_GESTURE.committed
        assert not SendOutcome.FAILED.committed

    def test_describe(self):
        assert describe(SendOutcome.COMMITTED_BY_ID) == "Send: clicked explicit id"
        assert describe(SendOutcome.FAILED).startswith("Send: failed")
