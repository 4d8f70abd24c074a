from __future__ import annotations
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from ..errors import HumanTyperError, MutationRejected, PasteRejected
from ..tree.locator import find_first
from ..tree.nodes import UiNode, UiTree
from ..utils import attempt, preview, random_ms
from .config import kcfg
from .plan import PlanStep, TypingPlan
from .scheduler import TimerQueue
from .telemetry import KeystrokeRecorder

logger = logging.getLogger(__name__)

OnTyped = Callable[[], Awaitable[None]]
OnFailed = Callable[[HumanTyperError], Awaitable[None]]


async def _is_paste_item(node: UiNode) -> bool:
    label = f"{await node.text()} {await node.description()}".lower()
    if not any(word in label for word in kcfg.PASTE_MENU_LABELS):
        return False
    return await node.is_visible()


class PlanRunner:
    """
    Apply a TypingPlan to one field through the timer queue, then commit.

    Every callback is posted under `tag`, so cancelling the tag stops the run
    wherever it is. The first character step doubles as a probe: if the field
    refuses it, the remaining steps are dropped and the whole text goes in
    with one paste (paste action first, long-press menu second).
    """

    def __init__(
        self,
        queue: TimerQueue,
        tree: UiTree,
        node: UiNode,
        plan: TypingPlan,
        *,
        tag: str,
        on_typed: OnTyped,
        on_failed: OnFailed,
        rng: Any = None,
        recorder: Optional[KeystrokeRecorder] = None,
    ):
        self.queue = queue
        self.tree = tree
        self.node = node
        self.plan = plan
        self.tag = tag
        self.on_typed = on_typed
        self.on_failed = on_failed
        self.rng = rng
        self.recorder = recorder if recorder is not None else KeystrokeRecorder()
        self.pasted = False
        self.finished = False
        self._probe = plan.probe_step

    def start(self) -> None:
        for step in self.plan.steps:
            self.queue.post(step.delay_ms, partial(self._apply, step), tag=self.tag, label=step.kind)
        self.queue.post(self.plan.send_delay_ms, self._commit, tag=self.tag, label="commit")

    async def _apply(self, step: PlanStep) -> None:
        if self.finished:
            return
        try:
            await self._mutate(step)
        except MutationRejected as exc:
            logger.info("Direct typing refused (%s); falling back to paste", exc)
            self.queue.cancel(self.tag)
            self.queue.post(0, self._paste, tag=self.tag, label="paste")

    async def _mutate(self, step: PlanStep) -> None:
        ok = await attempt(self.node.set_text(step.text), f"set_text[{step.kind}]")
        now = self.queue.now()
        if ok:
            self.recorder.log(step.kind, step.text, step.delay_ms, t=now)
            return
        self.recorder.log("rejected", step.text, step.delay_ms, t=now)
        if step is self._probe:
            raise MutationRejected(f"field refused the first character of {preview(self.plan.target)!r}")
        logger.debug("set_text refused for %s step (may succeed later)", step.kind)

    async def _paste(self) -> None:
        text = self.plan.paste_text
        try:
            await self._require_base_text()
            await self._paste_direct(text)
        except PasteRejected as exc:
            await self._fail(exc)

    async def _require_base_text(self) -> None:
        """A paste only inserts, so the field must still hold what the plan starts from."""
        current = await attempt(self.node.text(), "text", default=None)
        if current != self.plan.base_text:
            raise PasteRejected(
                f"field holds {preview(current or '')!r}, expected {preview(self.plan.base_text)!r}; "
                "pasting would not produce the sentence"
            )

    async def _paste_direct(self, text: str) -> None:
        if not await attempt(self.tree.set_clipboard(text), "set_clipboard"):
            raise PasteRejected("clipboard is not writable")
        await attempt(self.node.focus(), "focus")
        if await attempt(self.node.paste(), "paste"):
            self._pasted("paste action")
            return

        rect = await attempt(self.node.bounds(), "bounds", default=None)
        if rect is None or rect.is_empty():
            raise PasteRejected("paste action refused and the field has no bounds")
        if not await attempt(self.tree.long_press(rect.cx, rect.cy), "long_press"):
            raise PasteRejected("paste action refused and long-press failed")
        self.queue.post(kcfg.MENU_SETTLE_MS, self._paste_from_menu, tag=self.tag, label="menu-paste")

    async def _paste_from_menu(self) -> None:
        if self.finished:
            return
        item = await find_first(self.tree.root, _is_paste_item)
        if item is None or not await attempt(item.click(), "click[paste-menu]"):
            await self._fail(PasteRejected("no usable paste entry in the long-press menu"))
            return
        self._pasted("long-press menu")

    def _pasted(self, how: str) -> None:
        self.pasted = True
        self.recorder.log("paste", self.plan.paste_text, 0, t=self.queue.now())
        logger.info("Pasted %r via %s", preview(self.plan.paste_text), how)
        pause = random_ms(kcfg.PASTE_SEND_PAUSE_MS, self.rng)
        self.queue.post(pause, self._commit, tag=self.tag, label="commit")

    async def _fail(self, exc: HumanTyperError) -> None:
        if self.finished:
            return
        self.finished = True
        logger.info("Typing failed: %s", exc)
        await self.on_failed(exc)

    async def _commit(self) -> None:
        if self.finished:
            return
        self.finished = True
        await self.on_typed()
