from __future__ import annotations

import logging
import random
from collections.abc import Callable

from .loop import EventLoop, Timer

logger = logging.getLogger(__name__)

FUNNY_NOTES = (
    "Coffee refills are a scheduling primitive.",
    "The next talk starts when the projector agrees.",
    "Please keep your questions shorter than the talk.",
    "Slides loading... the speaker is buffering too.",
    "If you can read this, the wifi still works.",
    "Breaks are the most attended session.",
    "Lunch is the keynote nobody skips.",
)


def random_note(rng: random.Random | None = None) -> str:
    chooser = rng or random
    return chooser.choice(FUNNY_NOTES)


class NoteTicker:
    """Swaps a display string on a fixed interval. Touches no record state."""

    def __init__(
        self,
        on_note: Callable[[str], None],
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.on_note = on_note
        self.rng = rng
        self.current = ""
        self._timer: Timer | None = None

    def tick(self) -> str:
        self.current = random_note(self.rng)
        logger.debug("funny note: %s", self.current)
        self.on_note(self.current)
        return self.current

    def start(self, loop: EventLoop, interval_s: float) -> Timer:
        self.stop(loop)
        self._timer = loop.call_every(interval_s, self.tick)
        return self._timer

    def stop(self, loop: EventLoop) -> None:
        if self._timer is not None:
            loop.cancel(self._timer)
            self._timer = None
