from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from . import templates
from .document import Element
from .events import CHANGE, DESTROY, Event
from .models import Countdown, Record, Session

logger = logging.getLogger(__name__)

RENDERED = "rendered"
EDITING = "editing"
ENTER_KEYS = frozenset({"Enter", "Return", "\r", "\n", 13})

R = TypeVar("R", bound=Record)


class ViewRegistry:
    """Maps a record id to its single live view."""

    def __init__(self) -> None:
        self._views: dict[str, BoundView[Any]] = {}

    def __len__(self) -> int:
        return len(self._views)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._views

    def get(self, record_id: str) -> BoundView[Any] | None:
        return self._views.get(record_id)

    def views(self) -> list[BoundView[Any]]:
        return list(self._views.values())

    def register(self, record_id: str, view: BoundView[Any]) -> None:
        existing = self._views.get(record_id)
        if existing is view:
            return
        self._views[record_id] = view
        if existing is not None:
            logger.debug("replacing view for %s", record_id)
            existing.remove()

    def forget(self, record_id: str, view: BoundView[Any]) -> None:
        if self._views.get(record_id) is view:
            del self._views[record_id]

    def detach(self, record_id: str) -> bool:
        view = self._views.pop(record_id, None)
        if view is None:
            return False
        view.remove()
        return True

    def detach_all(self) -> None:
        for record_id in list(self._views):
            self.detach(record_id)


class BoundView(Generic[R]):
    tag_name = "li"

    def __init__(self, record: R, *, registry: ViewRegistry | None = None) -> None:
        self.record = record
        self.registry = registry
        self.el = Element(tag=self.tag_name)
        self.render_count = 0
        self._removed = False
        self._subscriptions = [
            record.on(CHANGE, self._on_change),
            record.on(DESTROY, self._on_destroy),
        ]
        if registry is not None:
            registry.register(record.id, self)

    @property
    def removed(self) -> bool:
        return self._removed

    def template(self, attributes: dict[str, Any]) -> str:
        raise NotImplementedError

    def render(self) -> BoundView[R]:
        if self._removed:
            return self
        self.el.html = self.template(self.record.to_dict())
        self.render_count += 1
        return self

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions = []
        self.el.remove()
        if self.registry is not None:
            self.registry.forget(self.record.id, self)

    def clear(self) -> None:
        self.record.clear(self.registry)

    def _on_change(self, event: Event) -> None:
        self.render()

    def _on_destroy(self, event: Event) -> None:
        self.remove()


class CountdownView(BoundView[Countdown]):
    def __init__(self, record: Countdown, *, registry: ViewRegistry | None = None) -> None:
        self.state = RENDERED
        self.focused = False
        self.input_value = record.content
        super().__init__(record, registry=registry)

    def template(self, attributes: dict[str, Any]) -> str:
        if self.state == EDITING:
            return templates.countdown_item(attributes, input_value=self.input_value)
        self.input_value = str(attributes.get("content", ""))
        return templates.countdown_item(attributes)

    def render(self) -> CountdownView:
        super().render()
        if self.record.done:
            self.el.add_class("done")
        else:
            self.el.remove_class("done")
        return self

    def edit(self) -> None:
        if self._removed:
            return
        self.state = EDITING
        self.el.add_class("editing")
        self.input_value = self.record.content
        self.focused = True
        self.render()

    def set_input(self, value: str) -> None:
        self.input_value = value

    def close(self) -> None:
        if self._removed or self.state != EDITING:
            return
        self.record.save({"content": self.input_value})
        self.state = RENDERED
        self.focused = False
        self.el.remove_class("editing")
        self.render()

    def update_on_key(self, key: str | int) -> None:
        if key in ENTER_KEYS:
            self.close()

    def toggle_done(self) -> None:
        self.record.toggle()


class SessionView(BoundView[Session]):
    def template(self, attributes: dict[str, Any]) -> str:
        return templates.session_item(attributes)

    def render(self) -> SessionView:
        super().render()
        if self.record.is_this_room:
            self.el.add_class("this-room")
        else:
            self.el.remove_class("this-room")
        return self
