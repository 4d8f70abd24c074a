import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from humantyper.keyboard.scheduler import TimerQueue
from humantyper.session.guard import WindowIdentity
from humantyper.session.tracker import EventTracker
from humantyper.settings import Settings
from humantyper.tree.nodes import Rect
from humantyper.tree.zendriver_tree import (
    ElementNode,
    PageTree,
    _quad_to_rect,
    _send_cdp_event,
    watch_tab,
    window_identity,
)


def element(tag="DIV", attrs=None, backend_node_id=1, children=(), apply_result=True, node_type=1):
    return SimpleNamespace(
        tag_name=tag,
        attrs=attrs or {},
        backend_node_id=backend_node_id,
        node=SimpleNamespace(node_type=node_type),
        children=list(children),
        parent=None,
        apply=AsyncMock(return_value=apply_result),
        click=AsyncMock(),
        focus=AsyncMock(),
    )


def make_tab(url="https://chat.example/c/1", target_id="T1"):
    return SimpleNamespace(
        target=SimpleNamespace(url=url, target_id=target_id),
        send=AsyncMock(),
        query_selector=AsyncMock(),
        query_selector_all=AsyncMock(return_value=[]),
        evaluate=AsyncMock(return_value="10|2|BODY#"),
    )


class TestHelpers:
    def test_quad_to_rect(self):
        assert _quad_to_rect([10, 20, 110, 20, 110, 60, 10, 60]) == Rect(10, 20, 100, 40)
        assert _quad_to_rect([1, 2, 3]) is None
        assert _quad_to_rect(None) is None

    def test_window_identity(self):
        tab = make_tab(url="https://web.whatsapp.com/chat/1?x=2", target_id="T9")
        assert window_identity(tab) == ("web.whatsapp.com", "T9:/chat/1")

    @pytest.mark.asyncio
    async def test_send_cdp_event_reports_failure(self):
        async def boom():
            raise RuntimeError("socket closed")

        assert not await _send_cdp_event(None, boom, label="test")

        async def fine():
            return None

        assert await _send_cdp_event(None, fine, label="test")


class TestElementNode:
    @pytest.mark.asyncio
    async def test_attributes(self):
        tree = PageTree(make_tab(), element("BODY"))
        node = ElementNode(tree, element("DIV", {"id": "composer", "aria-label": "Type a message"}))
        assert node.node_id == "composer"
        assert node.class_name == "div"
        assert await node.description() == "Type a message"

    @pytest.mark.asyncio
    async def test_set_text_reports_refusal(self):
        tree = PageTree(make_tab(), element("BODY"))
        ok = ElementNode(tree, element("TEXTAREA"))
        assert await ok.set_text('say "hi"')
        js = ok.element.apply.await_args.args[0]
        assert '"say \\"hi\\""' in js

        refused = ElementNode(tree, element("SPAN", apply_result=False))
        assert not await refused.set_text("hi")

    @pytest.mark.asyncio
    async def test_children_skip_text_nodes_and_equality(self):
        kid = element("BUTTON", backend_node_id=7)
        text_node = element("#text", backend_node_id=8, node_type=3)
        tree = PageTree(make_tab(), element("BODY", children=[kid, text_node]))

        children = await tree.root.children()
        assert len(children) == 1
        assert children[0] == ElementNode(tree, kid)
        assert await tree.root.parent() is None

    @pytest.mark.asyncio
    async def test_bounds_from_box_model(self):
        tab = make_tab()
        tab.send.return_value = SimpleNamespace(content=[0, 0, 50, 0, 50, 20, 0, 20])
        tree = PageTree(tab, element("BODY"))
        assert await tree.root.bounds() == Rect(0, 0, 50, 20)

    @pytest.mark.asyncio
    async def test_paste_inserts_the_clipboard(self):
        tab = make_tab()
        tree = PageTree(tab, element("BODY"))
        field = ElementNode(tree, element("TEXTAREA"))
        assert not await field.paste()

        assert await tree.set_clipboard("hi there")
        assert await field.paste()
        tab.send.assert_awaited_once()
        field.element.focus.assert_awaited()


class TestPageTree:
    @pytest.mark.asyncio
    async def test_query_wraps_elements(self):
        tab = make_tab()
        tab.query_selector_all.return_value = [element("BUTTON", {"id": "send"})]
        tree = PageTree(tab, element("BODY"))
        nodes = await tree.query("#send")
        assert [n.node_id for n in nodes] == ["send"]
        tab.query_selector_all.assert_awaited_once_with("#send")

    @pytest.mark.asyncio
    async def test_tap_dispatches_press_and_release(self):
        tab = make_tab()
        tree = PageTree(tab, element("BODY"))
        assert await tree.tap(10, 20)
        assert tab.send.await_count == 2

    @pytest.mark.asyncio
    async def test_capture_without_body(self):
        tab = make_tab()
        tab.query_selector.return_value = None
        assert await PageTree.capture(tab) is None


class TestWatchTab:
    @pytest.mark.asyncio
    async def test_first_poll_reports_the_window(self):
        tab = make_tab()
        tab.query_selector.return_value = element("BODY")
        stop = asyncio.Event()

        async def snapshot(*args, **kwargs):
            stop.set()
            return "10|2|BODY#"

        tab.evaluate.side_effect = snapshot
        tracker = EventTracker(TimerQueue(), settings=Settings(service_active=True))

        await asyncio.wait_for(watch_tab(tab, tracker, stop), timeout=5)

        assert tracker.guard.state.identity == WindowIdentity("chat.example", "T1:/c/1")
        assert isinstance(tracker.tree, PageTree)
