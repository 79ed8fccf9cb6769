from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar
from uuid import uuid4

from .errors import RecordDestroyedError
from .events import CHANGE, DESTROY, Emitter, Event, Handler, Subscription

if TYPE_CHECKING:
    from .store import RecordStore
    from .views import ViewRegistry

logger = logging.getLogger(__name__)


class Record:
    """Observable attribute bag persisted through a `RecordStore`.

    Attributes missing at construction are filled from `defaults`. Keys listed
    in `fallback_fields` are also replaced by their default when the supplied
    value is falsy, so an empty string or zero is overwritten too.
    """

    defaults: ClassVar[dict[str, Any]] = {}
    fallback_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        attributes: dict[str, Any] | None = None,
        *,
        record_id: str | None = None,
        store: RecordStore | None = None,
        persisted: bool = False,
    ):
        attrs = dict(self.defaults)
        attrs.update(attributes or {})
        supplied_id = attrs.pop("id", None)
        if record_id is None and supplied_id not in (None, ""):
            record_id = str(supplied_id)
        self._id = record_id or uuid4().hex
        self._attributes = attrs
        # TODO: confirm whether blank user input should really be replaced;
        # this mirrors the board's historic behaviour and likely hides a bug.
        for key in self.fallback_fields:
            if not self._attributes.get(key):
                self._attributes[key] = self.defaults[key]
        self.store = store
        self._persisted = persisted
        self._destroyed = False
        self._events = Emitter()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, attributes={self._attributes!r})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return not self._persisted

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._attributes)

    def to_json(self) -> dict[str, Any]:
        payload = self.to_dict()
        payload["id"] = self._id
        return payload

    def on(self, kind: str, handler: Handler) -> Subscription:
        return self._events.on(kind, handler)

    def off(self, subscription: Subscription) -> None:
        self._events.off(subscription)

    def subscriber_count(self, kind: str | None = None) -> int:
        return self._events.subscriber_count(kind)

    def save(self, partial: dict[str, Any] | None = None) -> Record:
        if self._destroyed:
            raise RecordDestroyedError(self._id)
        changes = dict(partial or {})
        changes.pop("id", None)
        previous = dict(self._attributes)
        self._attributes.update(changes)
        try:
            if self.store is not None:
                if self._persisted:
                    self.store.update(self._id, self.to_dict())
                else:
                    self.store.create(self._id, self.to_dict())
        except Exception:
            self._attributes = previous
            raise
        if self.store is not None:
            self._persisted = True
        self._events.emit(
            Event(
                CHANGE,
                record_id=self._id,
                record=self,
                previous=previous,
                current=self.to_dict(),
            )
        )
        return self

    def destroy(self) -> None:
        if self._destroyed:
            return
        if self.store is not None and self._persisted:
            self.store.destroy(self._id)
        self._destroyed = True
        self._persisted = False
        logger.debug("destroyed %s %s", type(self).__name__, self._id)
        self._events.emit(Event(DESTROY, record_id=self._id, record=self))
        self._events.off_all()

    def clear(self, views: ViewRegistry | None = None) -> None:
        self.destroy()
        if views is not None:
            views.detach(self._id)


class Countdown(Record):
    defaults: ClassVar[dict[str, Any]] = {
        "author": "",
        "content": "empty countdown...",
        "done": False,
    }
    fallback_fields: ClassVar[tuple[str, ...]] = ("content",)

    @property
    def content(self) -> str:
        return str(self.get("content", ""))

    @property
    def done(self) -> bool:
        return bool(self.get("done"))

    @property
    def order(self) -> int | None:
        value = self.get("order")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    def toggle(self) -> Countdown:
        self.save({"done": not self.done})
        return self


class Session(Record):
    defaults: ClassVar[dict[str, Any]] = {
        "onDay": "",
        "startsAt": "",
        "inRoom": "",
        "isThisRoom": False,
        "speaker": "",
        "topic": "",
    }
    fallback_fields: ClassVar[tuple[str, ...]] = ("isThisRoom",)

    @property
    def is_this_room(self) -> bool:
        return bool(self.get("isThisRoom"))
