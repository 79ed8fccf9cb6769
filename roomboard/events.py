from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Record

logger = logging.getLogger(__name__)

ADD = "add"
REMOVE = "remove"
REFRESH = "refresh"
CHANGE = "change"
DESTROY = "destroy"
ALL = "all"

EVENT_KINDS = frozenset({ADD, REMOVE, REFRESH, CHANGE, DESTROY})


@dataclass(frozen=True)
class Event:
    kind: str
    record_id: str | None = None
    record: Record | None = None
    previous: dict[str, Any] | None = None
    current: dict[str, Any] | None = None

    def changed_keys(self) -> set[str]:
        if self.previous is None or self.current is None:
            return set()
        keys = set(self.previous) | set(self.current)
        return {k for k in keys if self.previous.get(k) != self.current.get(k)}


Handler = Callable[[Event], None]


@dataclass(eq=False)
class Subscription:
    """Handle returned by `Emitter.on`; pass it to `off` or call `cancel`."""

    emitter: Emitter | None
    kind: str
    handler: Handler
    active: bool = field(default=True)

    def cancel(self) -> None:
        if self.emitter is not None:
            self.emitter.off(self)


class Emitter:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def on(self, kind: str, handler: Handler) -> Subscription:
        if kind != ALL and kind not in EVENT_KINDS:
            raise ValueError(f"unknown event kind: {kind}")
        sub = Subscription(emitter=self, kind=kind, handler=handler)
        self._subscriptions.append(sub)
        return sub

    def off(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        subscription.active = False
        subscription.emitter = None
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            return

    def off_all(self) -> None:
        for sub in list(self._subscriptions):
            self.off(sub)

    def subscriber_count(self, kind: str | None = None) -> int:
        if kind is None:
            return len(self._subscriptions)
        return sum(1 for sub in self._subscriptions if sub.kind == kind)

    def emit(self, event: Event) -> None:
        # Snapshot so handlers may subscribe or unsubscribe while we fan out.
        for sub in list(self._subscriptions):
            if not sub.active:
                continue
            if sub.kind != event.kind and sub.kind != ALL:
                continue
            try:
                sub.handler(event)
            except Exception:
                logger.exception("%s handler failed for %s", event.kind, event.record_id)
