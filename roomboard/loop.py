from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

Task = Callable[[], None]


@dataclass(eq=False)
class Timer:
    interval_s: float
    callback: Task
    next_due: float
    active: bool = True


class EventLoop:
    """Single-threaded task queue.

    `post` is safe from any thread. Tasks and timers only ever run inside
    `run_pending`, `run_until_idle` or `run_forever` on the calling thread,
    one at a time and to completion.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._tasks: queue.SimpleQueue[Task] = queue.SimpleQueue()
        self._timers: list[Timer] = []
        self._background = 0
        self._background_lock = threading.Lock()
        self._stopped = threading.Event()

    def post(self, task: Task) -> None:
        self._tasks.put(task)

    def call_every(self, interval_s: float, callback: Task) -> Timer:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        timer = Timer(interval_s=interval_s, callback=callback, next_due=self._clock() + interval_s)
        self._timers.append(timer)
        return timer

    def cancel(self, timer: Timer) -> None:
        timer.active = False
        self._timers = [t for t in self._timers if t is not timer]

    @property
    def background_pending(self) -> int:
        with self._background_lock:
            return self._background

    def run_in_background(
        self,
        work: Callable[[], Any],
        on_done: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
        *,
        name: str = "roomboard-worker",
    ) -> threading.Thread:
        """Run `work` off-loop; its outcome is posted back as a loop task."""

        with self._background_lock:
            self._background += 1

        def _runner() -> None:
            try:
                result = work()
            except Exception as exc:
                failure = exc
                self.post(lambda: on_error(failure))
            else:
                self.post(lambda: on_done(result))
            finally:
                with self._background_lock:
                    self._background -= 1
                # Wake a loop that is blocked waiting for work.
                self.post(lambda: None)

        thread = threading.Thread(target=_runner, name=name, daemon=True)
        thread.start()
        return thread

    def _run_task(self, task: Task) -> None:
        try:
            task()
        except Exception:
            logger.exception("loop task failed")

    def _fire_due_timers(self) -> int:
        now = self._clock()
        fired = 0
        for timer in list(self._timers):
            if not timer.active or timer.next_due > now:
                continue
            timer.next_due = now + timer.interval_s
            self._run_task(timer.callback)
            fired += 1
        return fired

    def run_pending(self) -> int:
        ran = self._fire_due_timers()
        while True:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                return ran
            self._run_task(task)
            ran += 1

    def run_until_idle(self, timeout_s: float | None = None) -> bool:
        """Drain tasks until no background work is outstanding.

        Returns False if `timeout_s` elapsed first.
        """

        deadline = None if timeout_s is None else self._clock() + timeout_s
        while True:
            self.run_pending()
            if self.background_pending == 0 and self._tasks.empty():
                return True
            wait = 0.05
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return False
                wait = min(wait, remaining)
            try:
                task = self._tasks.get(timeout=wait)
            except queue.Empty:
                continue
            self._run_task(task)

    def _next_timer_delay(self) -> float:
        if not self._timers:
            return 0.5
        now = self._clock()
        return max(0.0, min(t.next_due for t in self._timers) - now)

    def run_forever(self) -> None:
        self._stopped.clear()
        while not self._stopped.is_set():
            self.run_pending()
            try:
                task = self._tasks.get(timeout=min(self._next_timer_delay(), 0.5))
            except queue.Empty:
                continue
            self._run_task(task)

    def stop(self) -> None:
        self._stopped.set()
        self.post(lambda: None)
