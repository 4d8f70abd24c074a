from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Optional

from ..errors import HumanTyperError, NoFieldFound
from ..keyboard.behaviors import PlanRunner
from ..keyboard.plan import TypingPlan, build_plan
from ..keyboard.scheduler import TimerQueue
from ..keyboard.telemetry import KeystrokeRecorder
from ..registry import SelectorConfig, SelectorDirectory
from ..send.dispatcher import try_send
from ..send.outcomes import SendOutcome
from ..sentences import SentenceRepository
from ..settings import Settings
from ..tree.locator import dump_hierarchy, read_incoming_texts, require_input
from ..tree.nodes import UiNode, UiTree
from ..utils import attempt, preview
from .guard import SessionGuard, WindowIdentity
from .telemetry import StatusRecorder, StatusSink

logger = logging.getLogger(__name__)

SCAN_TAG = "scan"


class EventKind(str, Enum):
    WINDOW_CHANGED = "window_changed"
    CONTENT_CHANGED = "content_changed"
    FOCUS_CHANGED = "focus_changed"


@dataclass(frozen=True)
class UiEvent:
    kind: EventKind
    app_id: Optional[str]
    window_id: Optional[str]
    tree: Optional[UiTree] = None

    @property
    def identity(self) -> WindowIdentity:
        return WindowIdentity(self.app_id, self.window_id)


class EventTracker:
    """
    Receives UI notifications and drives locate -> type -> send, once per window.

    Everything runs as callbacks on one TimerQueue: scans are debounced by
    `settings.scan_delay_ms`, the typing steps and the send belong to the
    run's tag, and a window change cancels whatever the old window left behind.
    """

    def __init__(
        self,
        queue: TimerQueue,
        *,
        directory: Optional[SelectorDirectory] = None,
        sentences: Optional[SentenceRepository] = None,
        settings: Optional[Settings] = None,
        guard: Optional[SessionGuard] = None,
        status: Optional[StatusSink] = None,
        recorder: Optional[KeystrokeRecorder] = None,
        rng: Any = None,
    ):
        self.queue = queue
        self.directory = directory if directory is not None else SelectorDirectory()
        self.sentences = sentences if sentences is not None else SentenceRepository()
        self.settings = settings if settings is not None else Settings()
        self.guard = guard if guard is not None else SessionGuard()
        self.status = status if status is not None else StatusRecorder()
        self.recorder = recorder if recorder is not None else KeystrokeRecorder()
        self.rng = rng
        self.tree: Optional[UiTree] = None
        self.last_plan: Optional[TypingPlan] = None
        self.runner: Optional[PlanRunner] = None

    # -- notifications ----------------------------------------------------

    async def on_event(self, event: UiEvent) -> None:
        if self.settings.is_ignored(event.app_id):
            return
        if event.tree is not None:
            self.tree = event.tree

        # Any event kind can reveal a new window; a repeated window event for
        # the same identity is just another content change.
        if self.guard.is_new_window(event.identity):
            self._window_changed(event.identity)
            self._schedule_scan()
            return

        if self._may_scan():
            self._schedule_scan()

    def _window_changed(self, identity: WindowIdentity) -> None:
        old_tag = self.guard.state.run_tag
        if old_tag is not None:
            self.queue.cancel(old_tag)
        self.queue.cancel(SCAN_TAG)

        app_id = identity.app_id
        config = self.directory.lookup(app_id)
        if config is None:
            status = "ignored" if app_id is not None else "unknown"
        elif self.settings.is_app_enabled(app_id):
            status = "supported"
        else:
            config = None
            status = "disabled"
        self.guard.on_window_changed(identity, config)
        self.runner = None
        logger.info("Window changed -> %s (%s)", app_id, status)

    def _may_scan(self) -> bool:
        s = self.guard.state
        return (
            self.settings.service_active
            and self.guard.armed
            and s.config is not None
            and not s.typed_once
            and not s.in_progress
        )

    def _schedule_scan(self) -> None:
        self.queue.cancel(SCAN_TAG)
        self.queue.post(self.settings.scan_delay_ms, self.scan, tag=SCAN_TAG, label="scan")

    # -- pipeline ---------------------------------------------------------

    async def scan(self) -> None:
        """Look at the current tree and start a run if the guard allows it."""
        tree = self.tree
        config = self.guard.state.config
        if tree is None or config is None or not self._may_scan():
            return
        app_id = self.guard.state.app_id

        latest = self.guard.observe_incoming(await read_incoming_texts(tree, config))
        if latest is not None:
            self.status.incoming_text(app_id, latest)

        try:
            node = await require_input(tree, config)
        except NoFieldFound as exc:
            logger.debug("scan: %s", exc)
            self.status.scan_result(app_id, False)
            return
        self.status.scan_result(app_id, True)

        reason = self.guard.blocked_reason(self.queue.now(), self.settings.cooldown_ms)
        if reason is not None:
            logger.debug("scan: input found in %s but %s", app_id, reason)
            return
        if self.settings.require_focus and not await attempt(node.is_focused(), "is_focused"):
            logger.debug("scan: input in %s not focused; waiting for the user", app_id)
            return
        await self._start_run(tree, node, config)

    async def _start_run(self, tree: UiTree, node: UiNode, config: SelectorConfig) -> None:
        tag = self.guard.begin_run()
        try:
            await self._launch(tag, tree, node, config)
        except Exception:
            # the run is latched already; end it as FAILED
            logger.warning("Run %s could not start", tag, exc_info=True)
            self._finish(tag, SendOutcome.FAILED)

    async def _launch(self, tag: str, tree: UiTree, node: UiNode, config: SelectorConfig) -> None:
        mode = self.settings.input_mode
        sentence = self.sentences.next()
        if not sentence:
            logger.info("No sentence to type; abort.")
            self.guard.finish_run(tag, None, self.queue.now())
            return

        existing = await attempt(node.text(), "text", default="")
        plan = build_plan(sentence, mode, existing, rng=self.rng)
        if plan is None:
            logger.info("Mode %s: field non-empty, nothing typed on this window.", mode)
            self.guard.finish_run(tag, None, self.queue.now())
            return

        await attempt(node.focus(), "focus")
        await attempt(node.click(), "click[input]")
        logger.info(
            "Typing %r into %s (%s, %d steps)", preview(sentence), self.guard.state.app_id, mode, len(plan.steps)
        )
        self.last_plan = plan
        self.runner = PlanRunner(
            self.queue,
            tree,
            node,
            plan,
            tag=tag,
            on_typed=partial(self._send, tag, node, config),
            on_failed=partial(self._typing_failed, tag),
            rng=self.rng,
            recorder=self.recorder,
        )
        self.runner.start()

    async def _send(self, tag: str, node: UiNode, config: SelectorConfig) -> None:
        outcome = await try_send(self.tree, node, config)
        self._finish(tag, outcome)

    async def _typing_failed(self, tag: str, exc: HumanTyperError) -> None:
        logger.info("Run %s ends without a send: %s", tag, exc)
        self._finish(tag, SendOutcome.FAILED)

    def _finish(self, tag: str, outcome: SendOutcome) -> None:
        if self.guard.finish_run(tag, outcome, self.queue.now()):
            self.status.send_outcome(self.guard.state.app_id, outcome)

    # -- control surface --------------------------------------------------

    def start(self) -> None:
        """Arm the guard and look at the current window right away."""
        self.guard.arm()
        logger.info("Service armed (active=%s)", self.settings.service_active)
        if self.settings.service_active:
            self._schedule_scan()

    def stop(self) -> None:
        """Cancel all outstanding work and disarm."""
        dropped = self.queue.cancel_all()
        self.guard.stop()
        self.runner = None
        logger.info("Service stopped (%d callbacks dropped)", dropped)

    def interrupt(self) -> None:
        """Host interrupt: drop pending work but keep this window's latch."""
        self.queue.cancel_all()
        self.guard.interrupt()
        logger.info("Interrupted")

    async def dump_hierarchy(self) -> str:
        if self.tree is None:
            logger.info("No window to dump")
            return ""
        logger.debug("---- WINDOW HIERARCHY (%s) ----", self.guard.state.app_id)
        return await dump_hierarchy(self.tree.root)

    def overlay_text(self) -> Optional[str]:
        """Debug snapshot of the guard, or None when the overlay is off."""
        if not self.settings.debug_overlay:
            return None
        s = self.guard.state
        return (
            f"pkg={s.app_id or 'none'}\n"
            f"win={s.identity.window_id or -1}\n"
            f"active={self.settings.service_active and self.guard.armed}\n"
            f"typedThisWin={s.typed_once}\n"
            f"typing={s.in_progress}"
        )
