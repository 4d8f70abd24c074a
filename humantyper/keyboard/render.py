from __future__ import annotations
import asyncio
import logging
from pathlib import Path as FSPath
from typing import Dict, Tuple
from PIL import Image, ImageDraw

from . import telemetry
from .plan import STEP_CHAR, STEP_CLEAR, STEP_DELETE, STEP_RETYPE, TypingPlan

_KIND_COLORS: Dict[str, Tuple[int, int, int]] = {
    STEP_CLEAR: (150, 150, 150),
    STEP_CHAR: (60, 205, 60),
    STEP_DELETE: (255, 60, 60),
    STEP_RETYPE: (255, 170, 40),
}
_SEND_COLOR = (0, 120, 255)


async def save_typing_timeline_jpeg(
    plan: TypingPlan,
    outfile: str = "typing_timeline.jpg",
    *,
    width: int = 960,
    height: int = 220,
    background_color: Tuple[int, int, int] = (12, 12, 14),
    canvas_margin: int = 24,
    annotate: bool = True,
) -> str:
    """
    Render a plan as a timeline: one tick per step, colored by kind
    (clear grey, char green, delete red, retype orange) and a blue send
    marker. Tick height follows the field length after the step.
    Rendering is offloaded to a worker thread to avoid blocking the event loop.
    """
    steps = list(plan.steps)
    span_ms = max(1, plan.send_delay_ms)
    longest = max([len(s.text) for s in steps] + [1])

    def _render() -> str:
        image = Image.new("RGB", (width, height), background_color)
        draw = ImageDraw.Draw(image)
        inner_w = width - canvas_margin * 2
        baseline = height - canvas_margin - 16
        inner_h = baseline - canvas_margin

        def x_of(ms: float) -> float:
            return canvas_margin + inner_w * (ms / span_ms)

        draw.line(
            [(canvas_margin, baseline), (width - canvas_margin, baseline)],
            fill=(90, 90, 90),
            width=1,
        )
        for step in steps:
            x = x_of(step.delay_ms)
            top = baseline - max(3.0, inner_h * (len(step.text) / longest))
            draw.line([(x, baseline), (x, top)], fill=_KIND_COLORS.get(step.kind), width=2)

        xs = x_of(plan.send_delay_ms)
        draw.line([(xs, baseline), (xs, canvas_margin)], fill=_SEND_COLOR, width=3)

        if annotate:
            delays = [s.delay_ms for s in plan.char_steps]
            gaps = [b - a for a, b in zip(delays, delays[1:])]
            avg_gap = sum(gaps) / len(gaps) if gaps else 0.0
            summary = (
                f"Steps: {len(steps)} | chars {len(delays)} | "
                f"correction at {plan.correction_index} | "
                f"avg gap {avg_gap:.0f} ms | send at {plan.send_delay_ms} ms"
            )
            draw.text((canvas_margin, height - canvas_margin), summary, fill=(200, 200, 200))

        image.save(outfile, format="JPEG", quality=92, optimize=True)
        return outfile

    outfile_path = await asyncio.to_thread(_render)

    cb = telemetry._TIMELINE_CALLBACK
    if cb is not None:
        try:
            asyncio.create_task(cb(FSPath(outfile_path)))
        except Exception:
            logging.getLogger(__name__).debug(
                "Failed to dispatch timeline callback", exc_info=True
            )
    else:
        logging.getLogger(__name__).debug(
            "Timeline saved to %s but no timeline callback is registered",
            outfile_path,
        )

    return outfile_path
